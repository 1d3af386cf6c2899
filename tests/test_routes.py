"""Tests for switching between routes."""
import pytest

from routetracker.geometry import distance_meters
from routetracker.playback import PlaybackStatus, SpeedLevel
from routetracker.polyline import DecodeError
from routetracker.routes import RouteNotFoundError, RouteSelector


@pytest.fixture
def selector(registry, clock) -> RouteSelector:
    return RouteSelector(registry, clock)


def test_select_route_returns_idle_state(selector):
    state = selector.select_route("three")

    assert selector.active_key == "three"
    assert state.route.key == "three"
    assert len(state.route) == 3
    assert state.cursor_index == 0
    assert state.distance_covered_m == 0.0
    assert not state.running
    assert state.status is PlaybackStatus.IDLE


def test_two_point_route_scenario(selector, clock):
    state = selector.select_route("two")
    assert len(state.route) == 2

    selector.engine.start()
    clock.advance(500)

    assert state.status is PlaybackStatus.COMPLETED
    assert state.distance_covered_m == pytest.approx(distance_meters(state.route[0], state.route[1]))


def test_unknown_route_leaves_state_untouched(selector, clock):
    selector.select_route("three")
    engine = selector.engine
    engine.start()
    clock.advance(500)

    with pytest.raises(RouteNotFoundError) as excinfo:
        selector.select_route("route99")

    assert isinstance(excinfo.value, KeyError)
    assert "route99" in str(excinfo.value)
    assert selector.engine is engine
    assert selector.active_key == "three"
    assert engine.cursor_index == 1
    assert engine.running
    clock.advance(500)
    assert engine.status is PlaybackStatus.COMPLETED


def test_decode_failure_leaves_state_untouched(selector):
    selector.select_route("two")
    engine = selector.engine

    with pytest.raises(DecodeError):
        selector.select_route("broken")

    assert selector.engine is engine
    assert selector.active_key == "two"
    assert not engine.closed


def test_switch_cancels_pending_tick(selector, clock):
    selector.select_route("three")
    old_engine = selector.engine
    old_engine.start()
    clock.advance(500)

    state = selector.select_route("two")

    assert old_engine.closed
    assert clock.pending() == 0
    clock.advance(10_000)
    assert state.cursor_index == 0
    assert state.distance_covered_m == 0.0
    assert not state.running
    assert old_engine.cursor_index == 1


def test_speed_carries_over_between_routes(selector):
    selector.select_route("three")
    selector.engine.set_speed("High")

    selector.select_route("two")

    assert selector.engine.speed_level is SpeedLevel.HIGH


def test_speed_set_before_first_route(registry, clock):
    selector = RouteSelector(registry, clock, speed_level="Low")
    selector.speed_level = "High"

    selector.select_route("single")

    assert selector.speed_level is SpeedLevel.HIGH
    assert selector.route_keys() == ["two", "three", "single", "broken"]
