import re
from collections.abc import Iterable
from datetime import UTC, datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.core.exceptions import BadRequestError
from app.models.availability import AvailabilitySlot, TimeBucket

DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})$")

MORNING = "morning"
AFTERNOON = "afternoon"
NIGHT = "night"


def get_zone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        raise BadRequestError(f"Invalid timezone: {name}")


def parse_timestamp(value: str, error_message: str = "Invalid timestamp") -> datetime:
    """Parse an RFC 3339 timestamp; values without an offset are taken as UTC."""
    try:
        dt = datetime.fromisoformat(value.strip())
    except (AttributeError, ValueError):
        raise BadRequestError(error_message)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt


def to_rfc3339(dt: datetime) -> str:
    """UTC with millisecond precision and a trailing Z, e.g. 2025-06-01T14:00:00.000Z."""
    return dt.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def format_in_zone(ts: datetime, zone: str) -> str:
    return ts.astimezone(get_zone(zone)).strftime("%H:%M")


def hour_in_zone(ts: datetime, zone: str) -> int:
    return ts.astimezone(get_zone(zone)).hour


def _period_for_hour(hour: int) -> str:
    if hour < 12:
        return MORNING
    if hour < 18:
        return AFTERNOON
    return NIGHT


def bucket_by_period(slots: Iterable[AvailabilitySlot], zone: str) -> list[TimeBucket]:
    """Group slot start times into morning/afternoon/night, dropping empty periods."""
    buckets: dict[str, list[str]] = {MORNING: [], AFTERNOON: [], NIGHT: []}
    for slot in slots:
        category = _period_for_hour(hour_in_zone(slot.start_at, zone))
        buckets[category].append(format_in_zone(slot.start_at, zone))
    return [
        TimeBucket(category=category, times=times)
        for category, times in buckets.items()
        if times
    ]


def _locale_string(local: datetime) -> str:
    hour = local.hour % 12 or 12
    meridiem = "a.m." if local.hour < 12 else "p.m."
    return f"{local:%Y-%m-%d}, {hour}:{local:%M:%S} {meridiem}"


def to_local_strings(slots: Iterable[AvailabilitySlot], zone: str) -> list[str]:
    """Display strings such as '2025-06-01, 8:00:00 a.m.' (one per slot, same order)."""
    tz = get_zone(zone)
    return [_locale_string(slot.start_at.astimezone(tz)) for slot in slots]


def parse_date_time(date_str: str, time_str: str, zone: str) -> str:
    """Combine a local date and HH:MM time in `zone` into an ISO 8601 instant."""
    tz = get_zone(zone)
    time_match = TIME_RE.match(time_str or "")
    if not DATE_RE.match(date_str or "") or not time_match:
        raise BadRequestError("Invalid date/time: expected YYYY-MM-DD and HH:MM")
    hour, minute = int(time_match.group(1)), int(time_match.group(2))
    try:
        day = datetime.strptime(date_str, "%Y-%m-%d")
        local = datetime(day.year, day.month, day.day, hour, minute, tzinfo=tz)
    except ValueError as e:
        raise BadRequestError(f"Invalid date/time: {e}")
    # Wall-clock times skipped by a DST transition do not survive a round trip
    if local.astimezone(UTC).astimezone(tz).replace(tzinfo=None) != local.replace(tzinfo=None):
        raise BadRequestError(f"Invalid date/time: {date_str} {time_str} does not exist in {zone}")
    return local.isoformat(timespec="milliseconds")
