"""URL projection of the navigation state."""

import logging
from enum import Enum
from typing import Any
from urllib.parse import parse_qs, quote, urlencode, urlsplit

from transit_api.client.state import Focus, NavigationState, View

logger = logging.getLogger(__name__)


class LinkType(str, Enum):
    """Kind of entity a link opens."""

    ROUTE = "route"
    TRIP = "trip"
    STOP = "stop"


# Query parameter -> NavigationState field
ID_PARAMS = {"route": "route_id", "trip": "trip_id", "stop": "stop_id"}

VIEW_PARAM = "view"
VIEW_VALUES = {"map": View.MAP_PRIMARY, "street": View.STREET_PRIMARY}


def encode(state: NavigationState, base_path: str = "/") -> str:
    """
    Encode the URL-projected fields of a state.

    Only route, trip, stop and the stop view are projected. Empty ids count as
    unset and the default map-primary view is left out of the query.
    """
    params = [
        (param, getattr(state, field))
        for param, field in ID_PARAMS.items()
        if getattr(state, field)
    ]
    if state.view is View.STREET_PRIMARY:
        params.append((VIEW_PARAM, "street"))

    query = urlencode(params, quote_via=quote)
    return f"{base_path}?{query}" if query else base_path


def decode(url: str) -> dict[str, Any]:
    """
    Decode a URL into a state patch.

    Every projected field is present in the patch. Absent or blank ids decode
    to None and an absent or unrecognized view decodes to map-primary, so
    applying the patch leaves those fields unset.
    """
    query = parse_qs(urlsplit(url).query)

    patch: dict[str, Any] = {}
    for param, field in ID_PARAMS.items():
        values = query.get(param)
        patch[field] = values[0] if values else None

    view_values = query.get(VIEW_PARAM)
    view = VIEW_VALUES.get(view_values[0]) if view_values else None
    if view_values and view is None:
        logger.debug(f"Ignoring unrecognized view {view_values[0]!r} in {url}")
    patch["view"] = view or View.MAP_PRIMARY
    return patch


def state_with_link(state: NavigationState, link_type: LinkType, value: str) -> NavigationState:
    """State reached by following a link from the given state."""
    if link_type is LinkType.ROUTE:
        return state.merge({"route_id": value, "trip_id": None, "focus": Focus.ROUTE})
    if link_type is LinkType.TRIP:
        return state.merge({"trip_id": value})
    return state.merge({"stop_id": value, "focus": Focus.STOP})


def create_link(
    link_type: LinkType, value: str, state: NavigationState, base_path: str = "/"
) -> str:
    """href for a link that keeps whatever else is active in the state."""
    return encode(state_with_link(state, link_type, value), base_path)
