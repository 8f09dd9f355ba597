from fastapi import Header, HTTPException, Request, status

from app.core.security import extract_bearer_token, verify_auth_token
from app.services.square_client import SquareClient


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def require_auth_token(authorization: str | None = Header(default=None)) -> None:
    if not authorization:
        raise _unauthorized("Authorization header is required")
    token = extract_bearer_token(authorization)
    if token is None:
        raise _unauthorized("Authorization header must use Bearer token")
    if not verify_auth_token(token):
        raise _unauthorized("Invalid or expired token")


def get_square_client(request: Request) -> SquareClient:
    """Square client bound to the connection pool opened in the app lifespan."""
    return SquareClient(request.app.state.square_http)
