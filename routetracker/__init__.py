"""Vehicle route playback along encoded polylines."""

from .config import RouteRegistry, TrackerConfig, VehicleConfig, load_config, load_routes
from .geometry import Coordinate, Route, distance_meters
from .playback import SPEED_TABLE, PlaybackEngine, PlaybackState, PlaybackStatus, SpeedLevel
from .polyline import DecodeError, decode, encode
from .renderer import TrackerRenderer
from .routes import RouteNotFoundError, RouteSelector
from .scheduler import ScheduledTask, SimulatedClock
from .tracker import TelemetrySnapshot, VehicleTracker

__all__ = [
    "Coordinate",
    "DecodeError",
    "PlaybackEngine",
    "PlaybackState",
    "PlaybackStatus",
    "Route",
    "RouteNotFoundError",
    "RouteRegistry",
    "RouteSelector",
    "SPEED_TABLE",
    "ScheduledTask",
    "SimulatedClock",
    "SpeedLevel",
    "TelemetrySnapshot",
    "TrackerConfig",
    "TrackerRenderer",
    "VehicleConfig",
    "VehicleTracker",
    "decode",
    "distance_meters",
    "encode",
    "load_config",
    "load_routes",
]
