"""Location helpers for picking the stop to show."""

import logging
import math
from collections.abc import Mapping
from typing import Any

from transit_api.client.state import Focus, LatLng, NavigationState

logger = logging.getLogger(__name__)

EARTH_RADIUS_M = 6371000


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate haversine distance between two points in meters."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    delta_phi = math.radians(lat2 - lat1)
    delta_lambda = math.radians(lon2 - lon1)

    a = (
        math.sin(delta_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(delta_lambda / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_M * c


def nearest_stop(stops: Mapping[str, Mapping[str, Any]], location: LatLng | None) -> str | None:
    """ID of the stop closest to a location, or None without a location or stops."""
    if location is None:
        return None

    best_id: str | None = None
    best_distance = math.inf
    for stop_id, stop in stops.items():
        distance = haversine_distance(location.lat, location.lng, stop["lat"], stop["lon"])
        if distance < best_distance:
            best_id, best_distance = stop_id, distance
    return best_id


def closest_to_user(stops: Mapping[str, Mapping[str, Any]], state: NavigationState) -> str | None:
    return nearest_stop(stops, state.user_location)


def closest_to_search(
    stops: Mapping[str, Mapping[str, Any]], state: NavigationState
) -> str | None:
    return nearest_stop(stops, state.search_location)


def stop_to_display(stops: Mapping[str, Mapping[str, Any]], state: NavigationState) -> str | None:
    """
    Stop the stop panel should show for a state.

    An explicitly opened stop wins while the focus is on it. With the focus on
    the rider or a searched place, the nearest stop to that location is shown,
    falling back to the open stop when there is no location yet.
    """
    if state.focus is Focus.USER:
        return closest_to_user(stops, state) or state.stop_id
    if state.focus is Focus.SEARCH:
        return closest_to_search(stops, state) or state.stop_id
    return state.stop_id
