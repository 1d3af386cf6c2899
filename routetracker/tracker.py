"""Presentation layer that turns playback state into telemetry snapshots."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Mapping, Optional, Union

from .geometry import Coordinate, Route
from .playback import PlaybackEngine, PlaybackStatus, SpeedLevel
from .polyline import DecodeError
from .routes import RouteNotFoundError, RouteSelector
from .scheduler import Scheduler

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TelemetrySnapshot:
    """Read-only view of the playback state handed to renderers."""

    route_key: str
    route: Route
    cursor_index: int
    position: Coordinate
    progress_percent: float
    distance_m: float
    speed_level: SpeedLevel
    running: bool
    status: PlaybackStatus
    recenter: Optional[Coordinate] = None

    @property
    def distance_km(self) -> float:
        return self.distance_m / 1000.0

    @property
    def location_text(self) -> str:
        return f"{self.position.latitude:.5f}, {self.position.longitude:.5f}"

    @property
    def distance_text(self) -> str:
        return f"{self.distance_km:.2f} km"

    @property
    def speed_label(self) -> str:
        return self.speed_level.label

    @property
    def button_label(self) -> str:
        return "Pause Vehicle" if self.running else "Start Vehicle"

    def telemetry_lines(self) -> List[str]:
        return [
            f"Location: {self.location_text}",
            f"Speed: {self.speed_label}",
            f"Distance Covered: {self.distance_text}",
        ]


Subscriber = Callable[[TelemetrySnapshot], None]


class VehicleTracker:
    """Forward user intents to the playback engine and publish snapshots."""

    def __init__(
        self,
        registry: Mapping[str, str],
        scheduler: Scheduler,
        speed_level: Union[SpeedLevel, str] = SpeedLevel.MEDIUM,
    ) -> None:
        self._selector = RouteSelector(registry, scheduler, speed_level=speed_level)
        self._subscribers: List[Subscriber] = []

    @property
    def engine(self) -> Optional[PlaybackEngine]:
        return self._selector.engine

    @property
    def route_keys(self) -> List[str]:
        return self._selector.route_keys()

    def subscribe(self, subscriber: Subscriber) -> Callable[[], None]:
        """Register ``subscriber`` and return a callable that removes it again."""

        self._subscribers.append(subscriber)

        def unsubscribe() -> None:
            if subscriber in self._subscribers:
                self._subscribers.remove(subscriber)

        return unsubscribe

    def snapshot(self, recenter: bool = False) -> TelemetrySnapshot:
        engine = self._require_engine()
        state = engine.state
        return TelemetrySnapshot(
            route_key=state.route.key,
            route=state.route,
            cursor_index=state.cursor_index,
            position=engine.current_position(),
            progress_percent=engine.progress_percent(),
            distance_m=state.distance_covered_m,
            speed_level=state.speed_level,
            running=state.running,
            status=state.status,
            recenter=state.route.midpoint() if recenter else None,
        )

    # ------------------------------------------------------------------
    # User intents
    # ------------------------------------------------------------------

    def select_route(self, key: str) -> TelemetrySnapshot:
        try:
            self._selector.select_route(key)
        except RouteNotFoundError:
            logger.error("Cannot select route %r: no such route", key)
            raise
        except DecodeError as exc:
            logger.error("Route %r unavailable: %s", key, exc)
            raise
        engine = self._require_engine()
        engine.add_listener(self._on_engine_change)
        snapshot = self.snapshot(recenter=True)
        self._publish(snapshot)
        return snapshot

    def set_speed(self, level: Union[SpeedLevel, str]) -> None:
        self._selector.speed_level = level

    def start(self) -> None:
        self._require_engine().start()

    def pause(self) -> None:
        self._require_engine().pause()

    def toggle(self) -> None:
        self._require_engine().toggle()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_engine(self) -> PlaybackEngine:
        engine = self._selector.engine
        if engine is None:
            raise RuntimeError("No route selected.")
        return engine

    def _on_engine_change(self, engine: PlaybackEngine) -> None:
        if engine is not self._selector.engine:
            return
        self._publish(self.snapshot())

    def _publish(self, snapshot: TelemetrySnapshot) -> None:
        for subscriber in list(self._subscribers):
            subscriber(snapshot)
