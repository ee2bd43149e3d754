"""Tests for navigation state snapshots."""

import json

import pytest

from transit_api.client.state import Focus, LatLng, NavigationState, View


def test_merge_is_shallow_and_immutable() -> None:
    state = NavigationState(route_id="R1", trip_id="T1")

    merged = state.merge({"trip_id": None, "focus": "stop"})

    assert merged.route_id == "R1"
    assert merged.trip_id is None
    assert merged.focus is Focus.STOP
    assert state.trip_id == "T1"


def test_merge_ignores_unknown_fields(caplog: pytest.LogCaptureFixture) -> None:
    state = NavigationState().merge({"zoom": 12, "stop_id": "A"})

    assert state.stop_id == "A"
    assert "zoom" in caplog.text


def test_merge_coerces_values() -> None:
    state = NavigationState().merge(
        {
            "view": {"stop": "street-primary"},
            "user_location": {"lat": 19.7, "lng": -155.1},
            "search_location": (19.6, -155.0),
        }
    )

    assert state.view is View.STREET_PRIMARY
    assert state.user_location == LatLng(19.7, -155.1)
    assert state.search_location == LatLng(19.6, -155.0)


def test_dict_round_trip() -> None:
    state = NavigationState(
        route_id="R1",
        stop_id="A",
        focus=Focus.SEARCH,
        view=View.STREET_PRIMARY,
        search_location=LatLng(19.6, -155.0),
    )

    data = json.loads(json.dumps(state.to_dict()))

    assert data["view"] == {"stop": "street-primary"}
    assert NavigationState.from_dict(data) == state
