"""Configuration loading utilities for the vehicle route tracker."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Union
import json

from .playback import SpeedLevel


DEFAULT_ROUTES_PATH = Path(__file__).resolve().parent / "data" / "routes.json"

CONTROL_ACTIONS = ("start", "pause", "toggle", "speed", "route")


class RouteRegistry(Mapping[str, str]):
    """Read-only mapping of route keys to encoded polylines."""

    def __init__(self, routes: Mapping[str, str]) -> None:
        self._routes: Dict[str, str] = dict(routes)

    def __getitem__(self, key: str) -> str:
        return self._routes[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._routes)

    def __len__(self) -> int:
        return len(self._routes)

    def __repr__(self) -> str:
        return f"RouteRegistry({sorted(self._routes)!r})"

    @staticmethod
    def from_mapping(data: Any) -> "RouteRegistry":
        if not isinstance(data, Mapping):
            raise ValueError("Routes must be provided as a mapping of route key to encoded polyline.")
        routes: Dict[str, str] = {}
        for key, encoded in data.items():
            if not isinstance(encoded, str):
                raise ValueError(f"Route {key!r} must be an encoded polyline string.")
            routes[str(key)] = encoded
        if not routes:
            raise ValueError("At least one route is required.")
        return RouteRegistry(routes)


@dataclass
class VehicleConfig:
    """Configuration for how the vehicle marker should be rendered."""

    colour: str = "#1f77b4"
    icon_path: Optional[Path] = None
    icon_scale: float = 1.0

    @staticmethod
    def from_mapping(data: Optional[Dict[str, Any]]) -> "VehicleConfig":
        if not data:
            return VehicleConfig()
        icon_path = data.get("icon") or data.get("icon_path")
        return VehicleConfig(
            colour=str(data.get("colour", data.get("color", "#1f77b4"))),
            icon_path=Path(icon_path) if icon_path else None,
            icon_scale=float(data.get("icon_scale", 1.0)),
        )


@dataclass
class ControlEvent:
    """A user control applied at a point on the animation timeline."""

    at_seconds: float
    action: str
    value: Optional[str] = None

    @staticmethod
    def from_mapping(data: Dict[str, Any]) -> "ControlEvent":
        try:
            action = str(data["action"]).lower()
        except KeyError as exc:
            raise ValueError("Control event missing field: action") from exc
        if action not in CONTROL_ACTIONS:
            raise ValueError(f"Unknown control action {action!r}; expected one of {', '.join(CONTROL_ACTIONS)}.")
        value = data.get("value")
        if action in ("speed", "route") and value is None:
            raise ValueError(f"Control action {action!r} requires a value.")
        if action == "speed":
            value = SpeedLevel.parse(value).label
        at_seconds = float(data.get("at", data.get("at_seconds", 0.0)))
        if at_seconds < 0:
            raise ValueError("Control events cannot be scheduled before the start of the animation.")
        return ControlEvent(at_seconds=at_seconds, action=action, value=None if value is None else str(value))


@dataclass
class TrackerConfig:
    """Top-level configuration for a tracker animation."""

    title: str = "Vehicle Route Tracker"
    route: Optional[str] = None
    speed: SpeedLevel = SpeedLevel.MEDIUM
    routes: RouteRegistry = field(default_factory=lambda: load_routes(DEFAULT_ROUTES_PATH))
    frame_rate: int = 30
    output_path: Path = Path("vehicle_route.mp4")
    width: int = 1280
    height: int = 720
    margin_degrees: float = 0.002
    vehicle: VehicleConfig = field(default_factory=VehicleConfig)
    pause_at_end: float = 1.0
    max_duration_seconds: float = 600.0
    controls: List[ControlEvent] = field(default_factory=list)

    @property
    def initial_route(self) -> str:
        """The configured route key, falling back to the first registry entry."""

        if self.route is not None:
            return self.route
        return next(iter(self.routes))

    @staticmethod
    def from_mapping(data: Dict[str, Any], base_dir: Optional[Path] = None) -> "TrackerConfig":
        if "routes" in data:
            routes = RouteRegistry.from_mapping(data["routes"])
        elif "routes_file" in data:
            routes_file = Path(data["routes_file"])
            if base_dir is not None and not routes_file.is_absolute():
                routes_file = base_dir / routes_file
            routes = load_routes(routes_file)
        else:
            routes = load_routes(DEFAULT_ROUTES_PATH)

        controls_data = data.get("controls") or []
        if not isinstance(controls_data, list):
            raise ValueError("Controls must be provided as a list of mappings.")
        controls = sorted(
            (ControlEvent.from_mapping(item) for item in controls_data),
            key=lambda event: event.at_seconds,
        )

        output_path = data.get("output") or data.get("output_path") or "vehicle_route.mp4"
        frame_rate = int(data.get("frame_rate", data.get("fps", 30)))
        if frame_rate <= 0:
            raise ValueError("frame_rate must be positive.")

        route = data.get("route")
        return TrackerConfig(
            title=str(data.get("title", "Vehicle Route Tracker")),
            route=str(route) if route is not None else None,
            speed=SpeedLevel.parse(data.get("speed", SpeedLevel.MEDIUM)),
            routes=routes,
            frame_rate=frame_rate,
            output_path=Path(output_path),
            width=int(data.get("width", 1280)),
            height=int(data.get("height", 720)),
            margin_degrees=float(data.get("margin_degrees", data.get("margin", 0.002))),
            vehicle=VehicleConfig.from_mapping(data.get("vehicle")),
            pause_at_end=float(data.get("pause_at_end", 1.0)),
            max_duration_seconds=float(data.get("max_duration_seconds", 600.0)),
            controls=controls,
        )


def _load_yaml(path: Path) -> Any:
    try:  # pragma: no cover - optional dependency
        import yaml  # type: ignore
    except Exception as exc:  # pragma: no cover - optional dependency
        raise RuntimeError(
            "YAML configuration requested but PyYAML is not available. Install with 'pip install pyyaml'."
        ) from exc
    with path.open("r", encoding="utf8") as handle:
        return yaml.safe_load(handle)


def _load_document(path: Union[str, Path]) -> Any:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(path)

    if path.suffix.lower() in {".yaml", ".yml"}:
        return _load_yaml(path)
    with path.open("r", encoding="utf8") as handle:
        return json.load(handle)


def load_routes(path: Union[str, Path]) -> RouteRegistry:
    """Load a :class:`RouteRegistry` from a JSON or YAML mapping of key to polyline."""

    return RouteRegistry.from_mapping(_load_document(path))


def load_config(path: Optional[Union[str, Path]] = None) -> TrackerConfig:
    """Load a :class:`TrackerConfig` from a JSON or YAML file.

    Without a path the defaults are returned, using the bundled sample routes.
    """

    if path is None:
        return TrackerConfig()

    path = Path(path)
    raw = _load_document(path)
    if not isinstance(raw, dict):
        raise ValueError("Configuration file must contain a mapping at the top level.")

    return TrackerConfig.from_mapping(raw, base_dir=path.parent)
