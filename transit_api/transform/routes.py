"""Route and trip assembly with derived route bounds."""

import logging
import math
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import date
from pathlib import Path

from transit_api.errors import RouteBuildError
from transit_api.gtfs.calendar import merge_weekdays
from transit_api.gtfs.models import CalendarDoc, Route, RouteDetails, RouteDoc, StopTimeDoc, TripDoc
from transit_api.gtfs.reader import FeedReader
from transit_api.output.json import write_route_details
from transit_api.transform.times import (
    format_gtfs_time,
    format_offset,
    resolve_timezone,
    to_iso_instant,
    utc_offset,
)

logger = logging.getLogger(__name__)


def build_route_details(
    reader: FeedReader,
    route: Route,
    calendars: dict[str, CalendarDoc],
    reference_date: date,
) -> RouteDetails:
    """
    Assemble a route's trips and derived bounds.

    Stop times are converted to ISO instants in the route's UTC offset. The
    first and last stops come from direction 0 trips only (lowest and highest
    stop_sequence); start and end times span every trip.

    Raises:
        FeedError: agency or timezone cannot be resolved
        RouteBuildError: no direction 0 stop time exists
    """
    timezone_name = reader.agency_timezone(route.agency_id)
    offset = utc_offset(resolve_timezone(timezone_name), reference_date)

    first_stop: str | None = None
    first_sequence = math.inf
    last_stop: str | None = None
    last_sequence = -math.inf
    start_time: int | None = None
    end_time: int | None = None

    trips: dict[str, TripDoc] = {}
    for trip in reader.trips_for_route(route.route_id):
        trip_doc = TripDoc(
            trip_id=trip.trip_id,
            route_id=trip.route_id,
            service_id=trip.service_id,
            direction_id=trip.direction_id,
            headsign=trip.trip_headsign,
            name=trip.trip_short_name,
        )

        for st in reader.stop_times_for_trip(trip.trip_id):
            if trip.direction_id == 0:
                if st.stop_sequence < first_sequence:
                    first_stop = st.stop_id
                    first_sequence = st.stop_sequence
                if st.stop_sequence > last_sequence:
                    last_stop = st.stop_id
                    last_sequence = st.stop_sequence

            if end_time is None or st.arrival_time > end_time:
                end_time = st.arrival_time
            if start_time is None or st.arrival_time < start_time:
                start_time = st.arrival_time

            trip_doc.stop_times.append(
                StopTimeDoc(stop_id=st.stop_id, time=to_iso_instant(st.arrival_time, offset))
            )

        trips[trip.trip_id] = trip_doc

    if first_stop is None or last_stop is None or start_time is None or end_time is None:
        raise RouteBuildError(route.route_id, "could not find first or last stop")

    service_days = []
    for service_id in dict.fromkeys(t.service_id for t in trips.values()):
        calendar = calendars.get(service_id)
        if calendar is None:
            logger.warning(f"Route {route.route_id}: service {service_id} has no calendar")
            continue
        service_days.append(calendar.days)

    logger.debug(
        f"Route {route.route_id}: {len(trips)} trips, {format_gtfs_time(start_time)}-"
        f"{format_gtfs_time(end_time)} {timezone_name} ({format_offset(offset)})"
    )

    return RouteDetails(
        route=RouteDoc(
            route_id=route.route_id,
            name=route.route_long_name or route.route_short_name,
            short_name=route.route_short_name,
            source_url=route.route_url,
            color=route.route_color,
            text_color=route.route_text_color,
            sort_order=route.route_sort_order,
            timezone=timezone_name,
            trip_ids=list(trips),
        ),
        trips=trips,
        days=merge_weekdays(service_days),
        first_stop=first_stop,
        last_stop=last_stop,
        start_time=to_iso_instant(start_time, offset),
        end_time=to_iso_instant(end_time, offset),
    )


def _route_sort_key(details: RouteDetails) -> tuple[bool, int, str]:
    sort_order = details.route.sort_order
    return (sort_order is None, sort_order or 0, details.route.route_id)


def build_routes(
    reader: FeedReader,
    calendars: dict[str, CalendarDoc],
    output_path: Path,
    reference_date: date,
    jobs: int = 1,
    pretty: bool = True,
) -> tuple[list[RouteDetails], dict[str, str]]:
    """
    Build and write every route, one task per route.

    Each task writes only its own routes/{route_id}.json. All tasks are awaited;
    if any failed, the first failure is raised so that no aggregate document
    is written for an incomplete route set.

    Returns:
        Routes sorted by sort_order, and the per-route files written
    """
    logger.info(f"Building {len(reader.routes)} routes with {jobs} job(s)")

    def task(route: Route) -> tuple[RouteDetails, str]:
        details = build_route_details(reader, route, calendars, reference_date)
        path = write_route_details(output_path, details, pretty=pretty)
        return details, path

    with ThreadPoolExecutor(max_workers=max(1, jobs)) as executor:
        futures: list[tuple[Route, Future[tuple[RouteDetails, str]]]] = [
            (route, executor.submit(task, route)) for route in reader.routes
        ]

    failures: list[BaseException] = []
    routes: list[RouteDetails] = []
    files_written: dict[str, str] = {}
    for route, future in futures:
        error = future.exception()
        if error is not None:
            logger.error(f"Route {route.route_id} failed: {error}")
            failures.append(error)
            continue
        details, path = future.result()
        routes.append(details)
        files_written[f"routes/{route.route_id}.json"] = path

    if failures:
        raise failures[0]

    routes.sort(key=_route_sort_key)
    logger.info(f"Built {len(routes)} routes")
    return routes, files_written
