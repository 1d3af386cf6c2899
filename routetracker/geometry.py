"""Geospatial utility helpers for route playback."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterator, List, NamedTuple, Sequence, Tuple


EARTH_RADIUS_M = 6_371_000.0


class Coordinate(NamedTuple):
    """A single waypoint expressed in degrees."""

    latitude: float
    longitude: float


@dataclass(frozen=True)
class Route:
    """An immutable, ordered sequence of waypoints identified by a route key."""

    key: str
    points: Tuple[Coordinate, ...]

    def __post_init__(self) -> None:
        if not self.points:
            raise ValueError("A route requires at least one waypoint.")

    def __len__(self) -> int:
        return len(self.points)

    def __getitem__(self, index: int) -> Coordinate:
        return self.points[index]

    def __iter__(self) -> Iterator[Coordinate]:
        return iter(self.points)

    @property
    def last_index(self) -> int:
        return len(self.points) - 1

    def midpoint(self) -> Coordinate:
        """The waypoint halfway through the route, used to centre the map on load."""

        return self.points[len(self.points) // 2]

    def total_distance_m(self) -> float:
        return cumulative_distances(self.points)[-1]


def distance_meters(a: Tuple[float, float], b: Tuple[float, float]) -> float:
    """Compute the great-circle distance between two lat/lon points in metres."""

    lat1, lon1 = map(math.radians, a)
    lat2, lon2 = map(math.radians, b)
    delta_lat = lat2 - lat1
    delta_lon = lon2 - lon1
    sin_lat = math.sin(delta_lat / 2.0)
    sin_lon = math.sin(delta_lon / 2.0)
    h = sin_lat**2 + math.cos(lat1) * math.cos(lat2) * sin_lon**2
    central_angle = 2.0 * math.asin(min(1.0, math.sqrt(h)))
    return EARTH_RADIUS_M * central_angle


def bearing_degrees(a: Tuple[float, float], b: Tuple[float, float]) -> float:
    """Return the initial bearing from coordinate ``a`` to coordinate ``b`` in degrees."""

    lat1, lon1 = map(math.radians, a)
    lat2, lon2 = map(math.radians, b)
    delta_lon = lon2 - lon1
    x = math.sin(delta_lon) * math.cos(lat2)
    y = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(delta_lon)
    bearing = math.degrees(math.atan2(x, y))
    return (bearing + 360.0) % 360.0


def cumulative_distances(points: Sequence[Tuple[float, float]]) -> List[float]:
    """Return cumulative travel distance in metres along a sequence of coordinates."""

    distances: List[float] = [0.0]
    for start, end in zip(points[:-1], points[1:]):
        distances.append(distances[-1] + distance_meters(start, end))
    return distances


def route_bounds(points: Sequence[Tuple[float, float]]) -> Tuple[float, float, float, float]:
    """Return ``(lat_min, lat_max, lon_min, lon_max)`` for a non-empty point sequence."""

    if not points:
        raise ValueError("Cannot compute bounds of an empty point sequence.")
    lats = [lat for lat, _ in points]
    lons = [lon for _, lon in points]
    return min(lats), max(lats), min(lons), max(lons)
