"""JSON API output."""

import json
import logging
from pathlib import Path
from typing import Any

from transit_api.gtfs.models import CalendarDoc, RouteDetails, RouteDoc, StopDoc, TripDoc

logger = logging.getLogger(__name__)


def route_to_dict(route: RouteDoc) -> dict[str, Any]:
    """Serialize an entry of the routes index."""
    return {
        "route_id": route.route_id,
        "name": route.name,
        "short_name": route.short_name,
        "source_url": route.source_url,
        "color": route.color,
        "text_color": route.text_color,
        "sort_order": route.sort_order,
        "timezone": route.timezone,
        "trip_ids": route.trip_ids,
    }


def trip_to_dict(trip: TripDoc) -> dict[str, Any]:
    """Serialize a trip; stop times keep their assembly order."""
    return {
        "trip_id": trip.trip_id,
        "route_id": trip.route_id,
        "service_id": trip.service_id,
        "direction_id": trip.direction_id,
        "headsign": trip.headsign,
        "name": trip.name,
        "stop_times": [{"stop_id": st.stop_id, "time": st.time} for st in trip.stop_times],
    }


def route_details_to_dict(details: RouteDetails) -> dict[str, Any]:
    """Serialize a per-route document."""
    data = route_to_dict(details.route)
    data.update(
        {
            "trips": {trip_id: trip_to_dict(trip) for trip_id, trip in details.trips.items()},
            "days": details.days,
            "first_stop": details.first_stop,
            "last_stop": details.last_stop,
            "start_time": details.start_time,
            "end_time": details.end_time,
        }
    )
    return data


def stop_to_dict(stop: StopDoc) -> dict[str, Any]:
    return {
        "stop_id": stop.stop_id,
        "name": stop.name,
        "lat": stop.lat,
        "lon": stop.lon,
        "route_ids": stop.route_ids,
    }


def calendar_to_dict(calendar: CalendarDoc) -> dict[str, Any]:
    return {
        "service_id": calendar.service_id,
        "days": calendar.days,
        "description": calendar.description,
        "exceptions": {"added": calendar.added, "removed": calendar.removed},
    }


def write_json(path: Path, data: Any, pretty: bool = True) -> str:
    """Write one JSON document, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        if pretty:
            json.dump(data, f, indent=2, ensure_ascii=False)
        else:
            json.dump(data, f, separators=(",", ":"), ensure_ascii=False)
    logger.debug(f"Wrote {path}")
    return str(path)


def write_route_details(output_path: Path, details: RouteDetails, pretty: bool = True) -> str:
    """Write routes/{route_id}.json."""
    path = output_path / "routes" / f"{details.route.route_id}.json"
    return write_json(path, route_details_to_dict(details), pretty=pretty)


def write_json_files(
    output_path: Path,
    routes: list[RouteDetails],
    stops: dict[str, StopDoc],
    calendars: dict[str, CalendarDoc],
    indexes: dict[str, Any],
    pretty: bool = True,
) -> dict[str, str]:
    """
    Write the aggregate API documents.

    Args:
        output_path: Output directory
        routes: Route details, already ordered by sort_order
        stops: Stops keyed by stop_id
        calendars: Calendars keyed by service_id
        indexes: Search index structures
        pretty: Indent output

    Returns:
        Mapping of written filename to path
    """
    logger.info(f"Writing JSON API files to {output_path}")

    output_path.mkdir(parents=True, exist_ok=True)

    stops_data = {stop_id: stop_to_dict(stops[stop_id]) for stop_id in sorted(stops)}
    calendar_data = {
        service_id: calendar_to_dict(calendars[service_id]) for service_id in sorted(calendars)
    }

    documents: dict[str, Any] = {
        "routes.json": [route_to_dict(details.route) for details in routes],
        "stops.json": stops_data,
        "calendar.json": calendar_data,
        "indexes.json": indexes,
        "api.json": {
            "routes": {
                details.route.route_id: route_details_to_dict(details) for details in routes
            },
            "stops": stops_data,
            "calendar": calendar_data,
        },
    }

    files_written = {}
    for filename, data in documents.items():
        files_written[filename] = write_json(output_path / filename, data, pretty=pretty)
        logger.info(f"Wrote {output_path / filename}")

    return files_written
