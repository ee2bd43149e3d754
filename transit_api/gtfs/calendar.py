"""Service calendar resolution: weekday bitsets, summaries and exceptions."""

import logging
from collections.abc import Iterable

from transit_api.gtfs.models import Calendar, CalendarDate, CalendarDoc
from transit_api.gtfs.reader import FeedReader

logger = logging.getLogger(__name__)

WEEKDAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]

NO_WEEKDAYS = [False] * 7

EXCEPTION_ADDED = 1
EXCEPTION_REMOVED = 2


def to_weekdays(calendar: Calendar) -> list[bool]:
    """Weekday bitset of a calendar row, Sunday first."""
    return [
        calendar.sunday,
        calendar.monday,
        calendar.tuesday,
        calendar.wednesday,
        calendar.thursday,
        calendar.friday,
        calendar.saturday,
    ]


def describe_weekdays(days: list[bool]) -> str:
    """
    Summarize a Sunday-first weekday bitset for riders.

    Rules are checked in order: every day is "Daily"; the weekend alone is
    "Saturday - Sunday"; a single day is its name; a contiguous run is
    "<First> - <Last>"; anything else lists the day names.
    """
    if all(days):
        return "Daily"
    if days[0] and days[6] and not any(days[1:6]):
        return "Saturday - Sunday"
    if not any(days):
        return "No regular service"

    first_day = days.index(True)
    last_day = len(days) - 1 - days[::-1].index(True)
    if first_day == last_day:
        return WEEKDAY_NAMES[first_day]
    if all(days[first_day : last_day + 1]):
        return f"{WEEKDAY_NAMES[first_day]} - {WEEKDAY_NAMES[last_day]}"
    return ", ".join(name for name, active in zip(WEEKDAY_NAMES, days) if active)


def merge_weekdays(bitsets: Iterable[list[bool]]) -> list[bool]:
    """Union of several weekday bitsets."""
    merged = list(NO_WEEKDAYS)
    for days in bitsets:
        merged = [a or b for a, b in zip(merged, days)]
    return merged


def gtfs_date_to_iso(value: str) -> str:
    """Convert a compact YYYYMMDD date to YYYY-MM-DD."""
    if len(value) != 8 or not value.isdigit():
        raise ValueError(f"Invalid GTFS date: {value!r}")
    return f"{value[:4]}-{value[4:6]}-{value[6:]}"


def resolve_calendar(
    service_id: str, calendar: Calendar | None, exceptions: Iterable[CalendarDate]
) -> CalendarDoc:
    """
    Build the published calendar of a service.

    Args:
        service_id: Service to resolve
        calendar: Weekly pattern row, or None for services defined only by dates
        exceptions: calendar_dates rows of the service

    Returns:
        CalendarDoc with weekday bitset, summary and raw exception lists
    """
    days = to_weekdays(calendar) if calendar is not None else list(NO_WEEKDAYS)
    doc = CalendarDoc(service_id=service_id, days=days, description=describe_weekdays(days))

    for exception in exceptions:
        if exception.exception_type == EXCEPTION_ADDED:
            doc.added.append(gtfs_date_to_iso(exception.date))
        elif exception.exception_type == EXCEPTION_REMOVED:
            doc.removed.append(gtfs_date_to_iso(exception.date))
        else:
            logger.warning(
                f"Service {service_id} has unknown exception_type "
                f"{exception.exception_type} on {exception.date}, ignoring"
            )

    return doc


def build_calendars(reader: FeedReader) -> dict[str, CalendarDoc]:
    """Resolve every service referenced by calendar.txt or calendar_dates.txt."""
    logger.info("Resolving service calendars")

    calendars: dict[str, CalendarDoc] = {}
    for calendar in reader.calendar:
        calendars[calendar.service_id] = resolve_calendar(
            calendar.service_id,
            calendar,
            reader.exceptions_for_service(calendar.service_id),
        )

    date_only = 0
    for calendar_date in reader.calendar_dates:
        service_id = calendar_date.service_id
        if service_id not in calendars:
            calendars[service_id] = resolve_calendar(
                service_id, None, reader.exceptions_for_service(service_id)
            )
            date_only += 1

    logger.info(
        f"Resolved {len(calendars)} calendars ({date_only} defined only by calendar_dates)"
    )
    return calendars
