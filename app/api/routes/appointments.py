from fastapi import APIRouter, Depends, Form, status

from app.api.deps import get_square_client
from app.api.schemas.booking import AppointmentRequest, BookingCreated, Envelope, ParsedDateTime
from app.core.config import settings
from app.core.timeutils import parse_date_time
from app.services.booking_service import create_booking
from app.services.square_client import SquareClient

router = APIRouter(tags=["appointments"])


@router.post(
    "/appointment",
    response_model=Envelope[BookingCreated],
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
async def book_appointment(
    body: AppointmentRequest,
    client: SquareClient = Depends(get_square_client),
) -> Envelope[BookingCreated]:
    result = await create_booking(client, body.to_booking_request())
    return Envelope(
        data=BookingCreated(booking_id=result.booking_id, status=result.status, start_at=result.start_at),
        message="Booking created successfully",
    )


@router.post("/parse_date_time", response_model=Envelope[ParsedDateTime], response_model_exclude_none=True)
async def parse_date_time_form(
    date: str = Form(..., pattern=r"^\d{4}-\d{2}-\d{2}$"),
    time: str = Form(..., pattern=r"^\d{1,2}:\d{2}$"),
    timezone: str | None = Form(None),
) -> Envelope[ParsedDateTime]:
    """Turn a local date and HH:MM time into an ISO 8601 instant."""
    iso = parse_date_time(date, time, timezone or settings.default_timezone)
    return Envelope(data=ParsedDateTime(iso_date=iso))
