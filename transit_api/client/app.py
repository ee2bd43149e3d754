"""Composition root of the rider app: wires loader, store, panels and map."""

import logging
from collections.abc import Callable, Mapping
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Protocol

from transit_api.client.geo import closest_to_search, closest_to_user, stop_to_display
from transit_api.client.history import History, LinkStateStore
from transit_api.client.loader import ClientConfig, fetch_schedule
from transit_api.client.state import Focus, LatLng, NavigationState, View
from transit_api.client.views import (
    RoutePanel,
    StopPanel,
    TripPanel,
    build_route_panel,
    build_stop_panel,
    build_trip_panel,
)

logger = logging.getLogger(__name__)

ROUTE_STOP_Z_INDEX = 200
SELECTED_STOP_Z_INDEX = 300
LOCATION_Z_INDEX = 1000


class MarkerStyle(str, Enum):
    NORMAL = "normal"
    UNIMPORTANT = "unimportant"
    STOP = "stop"
    USER = "user"
    PLACE = "place"


@dataclass(frozen=True)
class MarkerInstruction:
    stop_id: str
    style: MarkerStyle
    z_index: int | None = None


class MapWidget(Protocol):
    """Map and street-view surface; rendering is up to the implementation."""

    def place_markers(self, markers: list[MarkerInstruction]) -> None: ...

    def fit_bounds(self, stop_ids: list[str]) -> None: ...

    def show_street_view(self, stop_id: str) -> None: ...

    def place_location_marker(
        self, style: MarkerStyle, location: LatLng, stop_id: str | None, z_index: int
    ) -> None: ...


@dataclass
class AppContext:
    """Everything the app works with, passed around explicitly."""

    data: dict[str, Any]
    navigation: LinkStateStore
    map_widget: MapWidget | None = None
    clock: Callable[[], datetime] = lambda: datetime.now(UTC)
    offline: bool = False
    geolocation: bool = True
    route_panel: RoutePanel | None = None
    trip_panel: TripPanel | None = None
    stop_panel: StopPanel | None = None
    markers: list[MarkerInstruction] = field(default_factory=list)

    @property
    def no_map(self) -> bool:
        return self.map_widget is None


def active_ids(stops: Mapping[str, Any], state: NavigationState) -> dict[str, str | None]:
    return {
        "route_id": state.route_id,
        "trip_id": state.trip_id,
        "stop_id": stop_to_display(stops, state),
    }


def marker_instructions(
    stops: Mapping[str, Any], route_panel: RoutePanel | None, stop_id: str | None
) -> list[MarkerInstruction]:
    """
    Marker style for every stop.

    Stops on the open route are drawn normally above the rest, other stops are
    muted while a route is open, and the selected stop is drawn on top.
    """
    markers = []
    for candidate in stops:
        if candidate == stop_id:
            markers.append(MarkerInstruction(candidate, MarkerStyle.STOP, SELECTED_STOP_Z_INDEX))
        elif route_panel is None:
            markers.append(MarkerInstruction(candidate, MarkerStyle.NORMAL))
        elif candidate in route_panel.stop_ids:
            markers.append(MarkerInstruction(candidate, MarkerStyle.NORMAL, ROUTE_STOP_Z_INDEX))
        else:
            markers.append(MarkerInstruction(candidate, MarkerStyle.UNIMPORTANT))
    return markers


class App:
    def __init__(self, context: AppContext) -> None:
        self.context = context
        self._unsubscribes: list[Callable[[], None]] = []

    @property
    def navigation(self) -> LinkStateStore:
        return self.context.navigation

    def start(self) -> None:
        """Subscribe the panels and map to the navigation state and render once."""
        stops = self.context.data["stops"]
        if self.context.map_widget is not None:
            self.context.map_widget.fit_bounds(list(stops))

        self._unsubscribes.append(
            self.navigation.subscribe(
                lambda state: active_ids(stops, state), self.open_active, immediate=True
            )
        )
        if self.context.map_widget is not None:
            self._unsubscribes.append(
                self.navigation.subscribe(
                    lambda state: (state.user_location, closest_to_user(stops, state)),
                    lambda value: self._place_location(MarkerStyle.USER, *value),
                )
            )
            self._unsubscribes.append(
                self.navigation.subscribe(
                    lambda state: (state.search_location, closest_to_search(stops, state)),
                    lambda value: self._place_location(MarkerStyle.PLACE, *value),
                )
            )

    def stop(self) -> None:
        for unsubscribe in self._unsubscribes:
            unsubscribe()
        self._unsubscribes.clear()

    def open_active(self, ids: Mapping[str, str | None]) -> None:
        """Rebuild the panels for the active route, trip and stop."""
        context = self.context
        route_id, trip_id, stop_id = ids["route_id"], ids["trip_id"], ids["stop_id"]

        context.route_panel = None
        context.trip_panel = None
        if route_id:
            context.route_panel = build_route_panel(context.data, route_id, context.clock())
            if context.route_panel is not None:
                trip_id = trip_id or context.route_panel.best_trip_id
                if trip_id:
                    context.trip_panel = build_trip_panel(context.data, route_id, trip_id)

        context.stop_panel = build_stop_panel(context.data, stop_id, route_id) if stop_id else None

        if context.map_widget is None:
            return
        selected = context.stop_panel.stop_id if context.stop_panel else None
        context.markers = marker_instructions(context.data["stops"], context.route_panel, selected)
        context.map_widget.place_markers(context.markers)
        if context.route_panel is not None:
            context.map_widget.fit_bounds(sorted(context.route_panel.stop_ids))
        if selected is not None:
            context.map_widget.show_street_view(selected)

    def _place_location(self, style: MarkerStyle, location: LatLng | None, stop_id: str | None) -> None:
        if location is None or self.context.map_widget is None:
            return
        self.context.map_widget.place_location_marker(style, location, stop_id, LOCATION_Z_INDEX)

    def set_user_location(self, location: Any) -> bool:
        """Focus the stop nearest the rider; refused once geolocation was denied."""
        if not self.context.geolocation:
            logger.info("Ignoring user location, geolocation was denied")
            return False
        self.navigation.update({"user_location": location, "focus": Focus.USER})
        return True

    def geolocation_denied(self) -> None:
        logger.warning("Geolocation unavailable, nearby stops disabled")
        self.context.geolocation = False

    def set_search_location(self, location: Any) -> None:
        self.navigation.update({"search_location": location, "focus": Focus.SEARCH})

    def toggle_view(self) -> View:
        """Swap map and street view in the stop panel."""
        if self.context.no_map:
            logger.error("Map and street view have not loaded")
            return self.navigation.get_state().view
        current = self.navigation.get_state().view
        view = View.STREET_PRIMARY if current is View.MAP_PRIMARY else View.MAP_PRIMARY
        self.navigation.update({"view": view})
        return view


def bootstrap(
    config: ClientConfig,
    url: str = "/",
    history_state: Mapping[str, Any] | None = None,
    map_factory: Callable[[], MapWidget] | None = None,
    history: History | None = None,
    clock: Callable[[], datetime] | None = None,
    base_path: str = "/",
) -> App:
    """
    Load the schedule and the map side by side, then start the app.

    A map that fails to initialize leaves the app in no-map mode.
    """
    with ThreadPoolExecutor(max_workers=2) as executor:
        schedule_future = executor.submit(fetch_schedule, config)
        map_future = executor.submit(map_factory) if map_factory is not None else None

        result = schedule_future.result()
        map_widget = None
        if map_future is not None:
            try:
                map_widget = map_future.result()
            except Exception as e:
                logger.warning(f"Map unavailable, continuing without it: {e}")

    if map_widget is None:
        logger.info("Running in no-map mode")

    navigation = LinkStateStore(history=history, base_path=base_path)
    navigation.initialize(url, history_state)

    context = AppContext(
        data=result.data,
        navigation=navigation,
        map_widget=map_widget,
        offline=result.offline,
    )
    if clock is not None:
        context.clock = clock

    app = App(context)
    app.start()
    return app
