"""Navigation state snapshots shared between the store, URL and history."""

import dataclasses
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class View(str, Enum):
    """Which widget fills the stop panel's primary slot."""

    MAP_PRIMARY = "map-primary"
    STREET_PRIMARY = "street-primary"


class Focus(str, Enum):
    """What the map is centered on."""

    ROUTE = "route"
    STOP = "stop"
    SEARCH = "search"
    USER = "user"


@dataclass(frozen=True)
class LatLng:
    lat: float
    lng: float

    @classmethod
    def coerce(cls, value: Any) -> "LatLng | None":
        """Accept a LatLng, a {lat, lng} mapping or a (lat, lng) pair."""
        if value is None or isinstance(value, LatLng):
            return value
        if isinstance(value, Mapping):
            return cls(lat=float(value["lat"]), lng=float(value["lng"]))
        lat, lng = value
        return cls(lat=float(lat), lng=float(lng))


@dataclass(frozen=True)
class NavigationState:
    """Immutable snapshot of what the rider is looking at."""

    route_id: str | None = None
    trip_id: str | None = None
    stop_id: str | None = None
    focus: Focus = Focus.ROUTE
    view: View = View.MAP_PRIMARY
    user_location: LatLng | None = None
    search_location: LatLng | None = None

    def merge(self, patch: Mapping[str, Any]) -> "NavigationState":
        """Shallow-merge a patch; unknown keys are ignored."""
        changes: dict[str, Any] = {}
        for key, value in patch.items():
            if key not in _FIELD_NAMES:
                logger.warning(f"Ignoring unknown navigation field {key!r}")
                continue
            changes[key] = _coerce_field(key, value)
        return dataclasses.replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        """JSON-compatible form stored in history entries."""
        return {
            "route_id": self.route_id,
            "trip_id": self.trip_id,
            "stop_id": self.stop_id,
            "focus": self.focus.value,
            "view": {"stop": self.view.value},
            "user_location": dataclasses.asdict(self.user_location) if self.user_location else None,
            "search_location": (
                dataclasses.asdict(self.search_location) if self.search_location else None
            ),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "NavigationState":
        return cls().merge(data)


_FIELD_NAMES = {f.name for f in dataclasses.fields(NavigationState)}


def _coerce_field(key: str, value: Any) -> Any:
    if key == "focus":
        return Focus(value) if value is not None else Focus.ROUTE
    if key == "view":
        if isinstance(value, Mapping):
            value = value.get("stop")
        return View(value) if value is not None else View.MAP_PRIMARY
    if key in ("user_location", "search_location"):
        return LatLng.coerce(value)
    return value
