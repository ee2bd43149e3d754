"""Service-day time arithmetic and timezone-qualified ISO instants."""

import logging
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from transit_api.errors import FeedError

logger = logging.getLogger(__name__)

# Instants are rendered on this date; times past 24:00:00 roll onto the next day.
SERVICE_DAY_ANCHOR = date(1970, 1, 1)


def resolve_timezone(name: str) -> ZoneInfo:
    """Resolve an IANA timezone name."""
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise FeedError(f"Unresolvable timezone: {name!r}") from e


def utc_offset(zone: ZoneInfo, reference_date: date) -> timedelta:
    """UTC offset of a zone at noon on the reference date."""
    offset = zone.utcoffset(datetime.combine(reference_date, time(12)))
    if offset is None:
        raise FeedError(f"Timezone {zone.key} has no UTC offset")
    return offset


def format_offset(offset: timedelta) -> str:
    """Render an offset as +HH:MM / -HH:MM."""
    total_minutes = int(offset.total_seconds()) // 60
    sign = "-" if total_minutes < 0 else "+"
    hours, minutes = divmod(abs(total_minutes), 60)
    return f"{sign}{hours:02d}:{minutes:02d}"


def to_iso_instant(seconds: int, offset: timedelta) -> str:
    """
    Convert seconds after service-day midnight into an ISO instant.

    25:10:00 with a -10:00 offset becomes 1970-01-02T01:10:00-10:00.
    """
    midnight = datetime.combine(SERVICE_DAY_ANCHOR, time(0), tzinfo=timezone(offset))
    return (midnight + timedelta(seconds=seconds)).isoformat()


def format_gtfs_time(seconds: int) -> str:
    """Convert seconds since midnight to HH:MM:SS, keeping hours past 24."""
    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    secs = seconds % 60
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"
