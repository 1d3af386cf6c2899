"""Shared fixtures for the route tracker tests."""
import pytest

from routetracker.config import RouteRegistry
from routetracker.geometry import Coordinate, Route
from routetracker.playback import PlaybackEngine
from routetracker.scheduler import SimulatedClock

# Reference polyline: (38.5, -120.2), (40.7, -120.95), (43.252, -126.453)
REFERENCE_POLYLINE = "_p~iF~ps|U_ulLnnqC_mqNvxq`@"
TWO_POINT_POLYLINE = "_p~iF~ps|U_ulLnnqC"


@pytest.fixture
def clock() -> SimulatedClock:
    return SimulatedClock()


@pytest.fixture
def square_route() -> Route:
    """Five waypoints around a small block, closing back on the start."""
    points = (
        Coordinate(30.2844, 78.0701),
        Coordinate(30.2854, 78.0701),
        Coordinate(30.2854, 78.0714),
        Coordinate(30.2844, 78.0714),
        Coordinate(30.2844, 78.0701),
    )
    return Route(key="square", points=points)


@pytest.fixture
def engine(square_route, clock) -> PlaybackEngine:
    return PlaybackEngine(square_route, clock)


@pytest.fixture
def registry() -> RouteRegistry:
    return RouteRegistry(
        {
            "two": TWO_POINT_POLYLINE,
            "three": REFERENCE_POLYLINE,
            "single": "_p~iF~ps|U",
            "broken": "_p~i",
        }
    )
