import logging
import os
import time
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.deps import require_auth_token
from app.api.routes import appointments, availability, services
from app.core.config import _ENV_FILE, settings
from app.core.exceptions import BookingAPIError
from app.core.timeutils import to_rfc3339
from app.services.square_client import SquareClient

if os.getenv("ENV") != "production":
    logging.basicConfig(level=logging.DEBUG)
else:
    logging.basicConfig(
        level=logging.INFO,
        format='{"time": "%(asctime)s", "level": "%(levelname)s", "message": "%(message)s"}',
    )
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Loading .env from: %s (exists: %s)", _ENV_FILE, _ENV_FILE.exists())
    logger.info("Square API: %s (version %s)", settings.square_api_base_url, settings.square_api_version)
    app.state.square_http = SquareClient.create_http_client()
    yield
    await app.state.square_http.aclose()


app = FastAPI(
    title="Square Booking API",
    description="Appointment booking backend over Square: services, team members, availability, bookings",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)

protected = [Depends(require_auth_token)]
app.include_router(services.router, dependencies=protected)
app.include_router(availability.router, dependencies=protected)
app.include_router(appointments.router, dependencies=protected)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    logger.info(
        "%s %s -> %d (%.1f ms)",
        request.method,
        request.url.path,
        response.status_code,
        (time.perf_counter() - started) * 1000,
    )
    return response


def _now_iso() -> str:
    return to_rfc3339(datetime.now(UTC))


def _error_response(
    status_code: int,
    message: str,
    code: str,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": {"message": message, "code": code}, "timestamp": _now_iso()},
        headers=headers,
    )


def _cors_headers(origin: str | None) -> dict[str, str]:
    """CORS headers for responses produced outside the CORS middleware (500s)."""
    headers = {
        "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
        "Access-Control-Allow-Headers": "Authorization, Content-Type",
    }
    if origin and origin in settings.cors_origins_list:
        headers["Access-Control-Allow-Origin"] = origin
    elif settings.cors_origins_list:
        headers["Access-Control-Allow-Origin"] = settings.cors_origins_list[0]
    return headers


@app.exception_handler(BookingAPIError)
async def booking_error_handler(request: Request, exc: BookingAPIError) -> JSONResponse:
    if exc.status_code >= 500 or not settings.is_production:
        logger.warning("%s %s failed: %d %s", request.method, request.url.path, exc.status_code, exc.message)
    return _error_response(exc.status_code, exc.message, exc.code)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    messages = [str(err.get("msg", "")) for err in exc.errors()]
    return _error_response(
        status.HTTP_400_BAD_REQUEST,
        "Validation failed: " + ", ".join(messages),
        "VALIDATION_ERROR",
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        return _error_response(exc.status_code, "Endpoint not found", "NOT_FOUND")
    return _error_response(
        exc.status_code,
        str(exc.detail),
        f"HTTP_{exc.status_code}",
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception: %s", exc)
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "Internal server error",
        "INTERNAL_ERROR",
        headers=_cors_headers(request.headers.get("origin")),
    )


@app.get("/health")
async def health() -> dict:
    return {"status": "ok", "timestamp": _now_iso(), "environment": settings.env}
