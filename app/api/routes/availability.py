from fastapi import APIRouter, Depends, Query

from app.api.deps import get_square_client
from app.api.schemas.booking import AvailabilityArrayRequest, Envelope, TimeBuckets
from app.core.config import settings
from app.core.exceptions import BadRequestError
from app.models.availability import AvailabilitySlot
from app.services.availability_service import (
    get_availability,
    get_availability_buckets,
    get_availability_times,
)
from app.services.square_client import SquareClient

router = APIRouter(tags=["availability"])


def _require_params(date_param: str | None, service_name: str | None) -> tuple[str, str]:
    if not date_param or not service_name:
        raise BadRequestError("Missing required query params: date, serviceName")
    return date_param, service_name


@router.get("/availability", response_model=Envelope[list[AvailabilitySlot]], response_model_exclude_none=True)
async def availability(
    date_param: str | None = Query(None, alias="date"),
    service_name: str | None = Query(None, alias="serviceName"),
    client: SquareClient = Depends(get_square_client),
) -> Envelope[list[AvailabilitySlot]]:
    """Raw Square slots for one service on one day."""
    day, name = _require_params(date_param, service_name)
    slots = await get_availability(client, day, name)
    return Envelope(data=slots, count=len(slots))


@router.get("/availability-times", response_model=Envelope[TimeBuckets], response_model_exclude_none=True)
async def availability_times(
    date_param: str | None = Query(None, alias="date"),
    service_name: str | None = Query(None, alias="serviceName"),
    timezone: str | None = Query(None),
    client: SquareClient = Depends(get_square_client),
) -> Envelope[TimeBuckets]:
    """Slot start times as HH:MM grouped into morning/afternoon/night."""
    day, name = _require_params(date_param, service_name)
    buckets = await get_availability_buckets(client, day, name, timezone or settings.default_timezone)
    return Envelope(data=TimeBuckets(result=buckets))


@router.post("/availability-array", response_model=Envelope[list[str]], response_model_exclude_none=True)
async def availability_array(
    body: AvailabilityArrayRequest,
    client: SquareClient = Depends(get_square_client),
) -> Envelope[list[str]]:
    times = await get_availability_times(
        client, body.date, body.service_name, body.timezone or settings.default_timezone
    )
    return Envelope(data=times, count=len(times))
