"""Closest-trip resolution over published route documents."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime, timedelta, tzinfo
from typing import Any

from transit_api.transform.times import SERVICE_DAY_ANCHOR

logger = logging.getLogger(__name__)

ONE_MILLISECOND = timedelta(milliseconds=1)


@dataclass(frozen=True)
class ClosestTrip:
    """Trip and stop reached soonest after "now"."""

    trip_id: str
    stop_id: str
    eta_millis: int
    next_day: bool = False  # nothing left today, earliest trip of the next cycle

    @property
    def minutes(self) -> int:
        return self.eta_millis // 60000

    def format_eta(self) -> str:
        return "1 minute" if self.minutes == 1 else f"{self.minutes} minutes"


def parse_instant(value: str) -> datetime:
    """Parse a published stop time (timezone-qualified ISO instant)."""
    return datetime.fromisoformat(value)


def service_day_now(now: datetime, tz: tzinfo | None) -> datetime:
    """
    Place "now" on the service-day anchor.

    Aware values are first converted into the route's zone; naive values are
    taken as local wall-clock time already.
    """
    local = now.astimezone(tz) if now.tzinfo is not None and tz is not None else now
    return datetime.combine(SERVICE_DAY_ANCHOR, local.time(), tzinfo=tz)


def closest_trip(trips: Mapping[str, Mapping[str, Any]], now: datetime) -> ClosestTrip | None:
    """
    Find the trip/stop pair with the smallest strictly positive time until arrival.

    Trips are scanned in their mapping order and the first of equal durations
    wins. If no stop time is still ahead, the earliest stop time of all trips
    is returned with its ETA computed as if it recurs on the next service day.
    Returns None only when there are no stop times at all.
    """
    now_by_tz: dict[Any, datetime] = {}

    def now_for(moment: datetime) -> datetime:
        tz = moment.tzinfo
        if tz not in now_by_tz:
            now_by_tz[tz] = service_day_now(now, tz)
        return now_by_tz[tz]

    best: tuple[timedelta, str, str] | None = None
    earliest: tuple[datetime, str, str] | None = None

    for trip_id, trip in trips.items():
        for stop_time in trip["stop_times"]:
            moment = parse_instant(stop_time["time"])
            duration = moment - now_for(moment)
            if duration > timedelta(0) and (best is None or duration < best[0]):
                best = (duration, trip_id, stop_time["stop_id"])
            if earliest is None or moment < earliest[0]:
                earliest = (moment, trip_id, stop_time["stop_id"])

    if best is not None:
        duration, trip_id, stop_id = best
        return ClosestTrip(trip_id=trip_id, stop_id=stop_id, eta_millis=duration // ONE_MILLISECOND)

    if earliest is None:
        return None

    # Service is over for today: only the time of day of the earliest trip counts
    moment, trip_id, stop_id = earliest
    tomorrow = datetime.combine(SERVICE_DAY_ANCHOR + timedelta(days=1), moment.timetz())
    duration = tomorrow - now_for(moment)
    return ClosestTrip(
        trip_id=trip_id,
        stop_id=stop_id,
        eta_millis=duration // ONE_MILLISECOND,
        next_day=True,
    )


def service_runs_on(calendar: Mapping[str, Any], day: date) -> bool:
    """Whether a published calendar operates on a date, exceptions first."""
    exceptions = calendar.get("exceptions", {})
    iso = day.isoformat()
    if iso in exceptions.get("removed", []):
        return False
    if iso in exceptions.get("added", []):
        return True
    # days are Sunday-first, date.weekday() is Monday-first
    return bool(calendar["days"][(day.weekday() + 1) % 7])


def active_trips(
    trips: Mapping[str, Mapping[str, Any]],
    calendars: Mapping[str, Mapping[str, Any]],
    day: date,
) -> dict[str, Mapping[str, Any]]:
    """Trips whose service runs on a date, in their original order."""
    active: dict[str, Mapping[str, Any]] = {}
    for trip_id, trip in trips.items():
        calendar = calendars.get(trip["service_id"])
        if calendar is None:
            logger.warning(f"Trip {trip_id} has unknown service {trip['service_id']}")
            continue
        if service_runs_on(calendar, day):
            active[trip_id] = trip
    return active
