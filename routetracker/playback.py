"""Playback engine that moves a cursor along a route on a timer."""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, List, Mapping, Optional, Union

from .geometry import Coordinate, Route, distance_meters
from .scheduler import ScheduledTask, Scheduler

logger = logging.getLogger(__name__)


class SpeedLevel(enum.Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"

    @property
    def label(self) -> str:
        return self.value

    @property
    def interval_ms(self) -> int:
        return SPEED_TABLE[self]

    @classmethod
    def parse(cls, value: Union["SpeedLevel", str]) -> "SpeedLevel":
        if isinstance(value, SpeedLevel):
            return value
        for level in cls:
            if str(value).strip().lower() == level.value.lower():
                return level
        choices = ", ".join(level.value for level in cls)
        raise ValueError(f"Unknown speed level {value!r}; expected one of {choices}.")


SPEED_TABLE: Mapping[SpeedLevel, int] = MappingProxyType(
    {
        SpeedLevel.LOW: 1000,
        SpeedLevel.MEDIUM: 500,
        SpeedLevel.HIGH: 200,
    }
)


class PlaybackStatus(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"


@dataclass
class PlaybackState:
    """Mutable playback state owned by a :class:`PlaybackEngine`."""

    route: Route
    cursor_index: int = 0
    running: bool = False
    speed_level: SpeedLevel = SpeedLevel.MEDIUM
    distance_covered_m: float = 0.0

    @property
    def status(self) -> PlaybackStatus:
        if self.running:
            return PlaybackStatus.RUNNING
        if self.cursor_index == 0:
            return PlaybackStatus.IDLE
        if self.cursor_index == self.route.last_index:
            return PlaybackStatus.COMPLETED
        return PlaybackStatus.PAUSED


Listener = Callable[["PlaybackEngine"], None]


class PlaybackEngine:
    """Advance a route cursor one waypoint per tick while running.

    Ticks are scheduled on the injected scheduler at the interval of the
    current speed level. The engine keeps at most one pending tick: every
    reschedule cancels the previous handle first, and a timer whose handle is
    no longer current is ignored when it fires.
    """

    def __init__(
        self,
        route: Route,
        scheduler: Scheduler,
        speed_level: Union[SpeedLevel, str] = SpeedLevel.MEDIUM,
    ) -> None:
        self.state = PlaybackState(route=route, speed_level=SpeedLevel.parse(speed_level))
        self._scheduler = scheduler
        self._pending: Optional[ScheduledTask] = None
        self._listeners: List[Listener] = []
        self._closed = False

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def route(self) -> Route:
        return self.state.route

    @property
    def cursor_index(self) -> int:
        return self.state.cursor_index

    @property
    def running(self) -> bool:
        return self.state.running

    @property
    def speed_level(self) -> SpeedLevel:
        return self.state.speed_level

    @property
    def distance_covered_m(self) -> float:
        return self.state.distance_covered_m

    @property
    def status(self) -> PlaybackStatus:
        return self.state.status

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def has_pending_tick(self) -> bool:
        return self._pending is not None and self._pending.active

    def current_position(self) -> Coordinate:
        return self.state.route[self.state.cursor_index]

    def progress_percent(self) -> float:
        return (self.state.cursor_index + 1) / len(self.state.route) * 100.0

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def start(self) -> None:
        if self._closed:
            raise RuntimeError("Cannot start a closed playback engine.")
        if len(self.state.route) < 2:
            logger.debug("Route %r has fewer than two points; not starting", self.state.route.key)
            return
        if self.state.running:
            return
        if self.state.cursor_index == self.state.route.last_index:
            # Replay from the beginning after completion.
            self.state.cursor_index = 0
            self.state.distance_covered_m = 0.0
        self.state.running = True
        self._schedule_next()
        logger.debug("Playback of %r started at index %d", self.state.route.key, self.state.cursor_index)
        self._notify()

    def pause(self) -> None:
        self._cancel_pending()
        if not self.state.running:
            return
        self.state.running = False
        logger.debug("Playback of %r paused at index %d", self.state.route.key, self.state.cursor_index)
        self._notify()

    def toggle(self) -> None:
        if self.state.running:
            self.pause()
        else:
            self.start()

    def set_speed(self, level: Union[SpeedLevel, str]) -> None:
        level = SpeedLevel.parse(level)
        if level is self.state.speed_level:
            return
        self.state.speed_level = level
        if self.state.running:
            self._schedule_next()
        logger.debug("Playback speed set to %s (%d ms)", level.label, level.interval_ms)
        self._notify()

    def tick(self) -> bool:
        """Advance the cursor by one waypoint, returning ``False`` at the end of the route."""

        if self._closed:
            return False
        route = self.state.route
        old_index = self.state.cursor_index
        if old_index >= route.last_index:
            return False
        new_index = old_index + 1
        self.state.cursor_index = new_index
        self.state.distance_covered_m += distance_meters(route[old_index], route[new_index])

        if new_index == route.last_index:
            self._cancel_pending()
            if self.state.running:
                logger.debug("Playback of %r completed", route.key)
            self.state.running = False
        elif self.state.running:
            self._schedule_next()
        self._notify()
        return True

    def close(self) -> None:
        """Cancel any pending tick and detach listeners; the engine never ticks again."""

        self._cancel_pending()
        self.state.running = False
        self._closed = True
        self._listeners.clear()

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _schedule_next(self) -> None:
        self._cancel_pending()
        task: Optional[ScheduledTask] = None

        def fire() -> None:
            if task is not self._pending or not self.state.running:
                return
            self._pending = None
            self.tick()

        task = self._scheduler.call_later(self.state.speed_level.interval_ms, fire)
        self._pending = task
