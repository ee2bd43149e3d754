"""View models for the route, trip and stop panels."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from transit_api.client.schedule import ClosestTrip, closest_trip, parse_instant
from transit_api.gtfs.calendar import describe_weekdays

logger = logging.getLogger(__name__)


@dataclass
class TripOption:
    trip_id: str
    label: str


@dataclass
class RoutePanel:
    """Summary shown when a route is open."""

    route_id: str
    name: str
    color: str
    text_color: str
    place: str
    time_range: str
    weekdays: str
    closest: ClosestTrip | None
    next_stop: str | None
    trip_options: list[TripOption] = field(default_factory=list)
    stop_ids: set[str] = field(default_factory=set)

    @property
    def best_trip_id(self) -> str | None:
        return self.closest.trip_id if self.closest else None


@dataclass
class ScheduleRow:
    stop_id: str
    stop_name: str
    time: str
    clock: str


@dataclass
class TripPanel:
    route_id: str
    trip_id: str
    weekdays: str
    rows: list[ScheduleRow] = field(default_factory=list)


@dataclass
class Connection:
    route_id: str
    name: str
    color: str
    active: bool


@dataclass
class StopPanel:
    stop_id: str
    name: str
    lat: float
    lon: float
    connections: list[Connection] = field(default_factory=list)


def format_clock(value: str | datetime) -> str:
    """Render a stop time as a 12-hour clock, e.g. "8:05 AM"."""
    moment = parse_instant(value) if isinstance(value, str) else value
    suffix = "AM" if moment.hour < 12 else "PM"
    return f"{moment.hour % 12 or 12}:{moment.minute:02d} {suffix}"


def _stop_name(stops: Mapping[str, Mapping[str, Any]], stop_id: str) -> str:
    stop = stops.get(stop_id)
    return stop["name"] if stop else stop_id


def build_route_panel(data: Mapping[str, Any], route_id: str, now: datetime) -> RoutePanel | None:
    """
    Build the route panel for "now".

    Returns None, after logging, for a route id that is not in the schedule.
    """
    route = data["routes"].get(route_id)
    if route is None:
        logger.error(f"Invalid route {route_id}")
        return None

    stops = data["stops"]
    trips = route["trips"]
    closest = closest_trip(trips, now)

    next_stop = None
    if closest is not None:
        next_stop = f"Reaches {_stop_name(stops, closest.stop_id)} in {closest.format_eta()}"

    return RoutePanel(
        route_id=route_id,
        name=route["name"],
        color=route["color"],
        text_color=route["text_color"],
        place=(
            f"Between {_stop_name(stops, route['first_stop'])}"
            f" - {_stop_name(stops, route['last_stop'])}"
        ),
        time_range=f"{format_clock(route['start_time'])} - {format_clock(route['end_time'])}",
        weekdays=describe_weekdays(route["days"]),
        closest=closest,
        next_stop=next_stop,
        trip_options=[
            TripOption(trip_id=trip_id, label=trip["name"] or trip["headsign"] or trip_id)
            for trip_id, trip in trips.items()
        ],
        stop_ids={st["stop_id"] for trip in trips.values() for st in trip["stop_times"]},
    )


def build_trip_panel(data: Mapping[str, Any], route_id: str | None, trip_id: str) -> TripPanel | None:
    """Schedule rows of one trip; None for unknown ids."""
    route = data["routes"].get(route_id) if route_id else None
    if route is None:
        logger.error(f"Invalid route {route_id}")
        return None
    trip = route["trips"].get(trip_id)
    if trip is None:
        logger.error(f"Invalid trip {trip_id} in route {route_id}")
        return None

    calendar = data["calendar"].get(trip["service_id"])
    if calendar is not None:
        weekdays = calendar["description"]
    else:
        logger.warning(f"Trip {trip_id} has unknown service {trip['service_id']}")
        weekdays = ""

    stops = data["stops"]
    return TripPanel(
        route_id=route_id,
        trip_id=trip_id,
        weekdays=weekdays,
        rows=[
            ScheduleRow(
                stop_id=st["stop_id"],
                stop_name=_stop_name(stops, st["stop_id"]),
                time=st["time"],
                clock=format_clock(st["time"]),
            )
            for st in trip["stop_times"]
        ],
    )


def build_stop_panel(
    data: Mapping[str, Any], stop_id: str, current_route: str | None = None
) -> StopPanel | None:
    """Stop details with its connecting routes; None for an unknown stop."""
    stop = data["stops"].get(stop_id)
    if stop is None:
        logger.error(f"Invalid stop {stop_id}")
        return None

    connections = []
    for route_id in stop["route_ids"]:
        route = data["routes"].get(route_id)
        if route is None:
            continue
        connections.append(
            Connection(
                route_id=route_id,
                name=route["name"],
                color=route["color"],
                active=route_id == current_route,
            )
        )

    return StopPanel(
        stop_id=stop_id,
        name=stop["name"],
        lat=stop["lat"],
        lon=stop["lon"],
        connections=connections,
    )
