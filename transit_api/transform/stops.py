"""Stop documents with reachable-route references."""

import logging

from transit_api.gtfs.models import StopDoc
from transit_api.gtfs.reader import FeedReader

logger = logging.getLogger(__name__)


def build_stops(reader: FeedReader) -> dict[str, StopDoc]:
    """Build StopDoc entries keyed by stop_id, each listing the routes that serve it."""
    logger.info("Building stop data with route references")

    route_by_trip = {trip.trip_id: trip.route_id for trip in reader.trips}

    # Create mapping from stop to routes
    stop_to_routes: dict[str, set[str]] = {}
    for st in reader.stop_times:
        route_id = route_by_trip.get(st.trip_id)
        if route_id is None:
            continue
        stop_to_routes.setdefault(st.stop_id, set()).add(route_id)

    stops: dict[str, StopDoc] = {}
    for stop in reader.stops:
        stops[stop.stop_id] = StopDoc(
            stop_id=stop.stop_id,
            name=stop.name,
            lat=stop.lat,
            lon=stop.lon,
            route_ids=sorted(stop_to_routes.get(stop.stop_id, set())),
        )

    unserved = sum(1 for stop in stops.values() if not stop.route_ids)
    if unserved:
        logger.info(f"{unserved} stops are not served by any trip")

    logger.info(f"Built {len(stops)} stops")
    return stops
