import logging
from collections.abc import Collection
from datetime import datetime, timedelta
from typing import Any

from app.core.config import settings
from app.core.exceptions import BadRequestError, NotFoundError
from app.core.timeutils import DATE_RE, bucket_by_period, get_zone, to_local_strings, to_rfc3339
from app.models.availability import AvailabilitySlot, TimeBucket
from app.services.catalog_service import list_services
from app.services.square_client import SquareClient, parse_upstream

logger = logging.getLogger(__name__)


def _day_range(date_str: str) -> tuple[str, str]:
    if not DATE_RE.match(date_str):
        raise BadRequestError("Invalid date format (YYYY-MM-DD)")
    offset = settings.availability_day_utc_offset
    return f"{date_str}T00:00:00{offset}", f"{date_str}T23:59:59{offset}"


def _availability_filter(
    variation_id: str,
    start_at: str,
    end_at: str,
    team_member_ids: Collection[str] | None = None,
) -> dict[str, Any]:
    segment_filter: dict[str, Any] = {"service_variation_id": variation_id}
    if team_member_ids:
        segment_filter["team_member_id_filter"] = {"any": list(team_member_ids)}
    return {
        "location_id": settings.square_location_id,
        "start_at_range": {"start_at": start_at, "end_at": end_at},
        "segment_filters": [segment_filter],
    }


async def _search_slots(client: SquareClient, filter: dict[str, Any]) -> list[AvailabilitySlot]:
    raw = await client.search_availability(filter)
    return [parse_upstream(AvailabilitySlot, a, "availability slot") for a in raw]


async def get_availability(
    client: SquareClient, date_str: str, service_name: str
) -> list[AvailabilitySlot]:
    """All open slots for the named service on the given day."""
    services = await list_services(client)
    service = services.get(service_name)
    if service is None:
        raise NotFoundError("Service not found")
    start, end = _day_range(date_str)
    return await _search_slots(
        client,
        _availability_filter(service.variation_id, start, end, service.team_member_ids),
    )


async def find_matching_slots(
    client: SquareClient,
    variation_id: str,
    start_at: datetime,
    team_member_id: str | None = None,
) -> list[AvailabilitySlot]:
    """Slots in [start_at, start_at + window] that start no later than window - buffer.

    The buffer tolerates Square returning a start a couple of minutes after
    the requested one.
    """
    end_at = start_at + timedelta(minutes=settings.slot_window_minutes)
    latest_start = end_at - timedelta(minutes=settings.slot_buffer_minutes)
    slots = await _search_slots(
        client,
        _availability_filter(
            variation_id,
            to_rfc3339(start_at),
            to_rfc3339(end_at),
            [team_member_id] if team_member_id else None,
        ),
    )
    return [s for s in slots if s.start_at <= latest_start]


async def is_slot_available(
    client: SquareClient,
    variation_id: str,
    start_at: datetime,
    team_member_id: str | None = None,
) -> bool:
    slots = await find_matching_slots(client, variation_id, start_at, team_member_id)
    return len(slots) > 0


async def find_available_team_member(
    client: SquareClient,
    variation_id: str,
    start_at: datetime,
    allowed_team_member_ids: Collection[str] | None = None,
) -> str | None:
    """Pick the first team member Square offers for a slot at start_at."""
    slots = await find_matching_slots(client, variation_id, start_at)
    for slot in slots:
        for segment in slot.appointment_segments:
            if segment.service_variation_id != variation_id:
                continue
            if allowed_team_member_ids is not None and segment.team_member_id not in allowed_team_member_ids:
                continue
            return segment.team_member_id
    logger.info("No team member free for variation %s at %s", variation_id, to_rfc3339(start_at))
    return None


async def get_availability_buckets(
    client: SquareClient, date_str: str, service_name: str, zone: str
) -> list[TimeBucket]:
    get_zone(zone)
    slots = await get_availability(client, date_str, service_name)
    return bucket_by_period(slots, zone)


async def get_availability_times(
    client: SquareClient, date_str: str, service_name: str, zone: str
) -> list[str]:
    get_zone(zone)
    slots = await get_availability(client, date_str, service_name)
    return to_local_strings(slots, zone)
