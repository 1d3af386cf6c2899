"""Selection of the active route from a registry of encoded polylines."""
from __future__ import annotations

import logging
from typing import List, Mapping, Optional, Union

from .playback import PlaybackEngine, PlaybackState, SpeedLevel
from .polyline import decode
from .scheduler import Scheduler

logger = logging.getLogger(__name__)


class RouteNotFoundError(KeyError):
    """Raised when a route key is missing from the registry."""

    def __init__(self, key: str) -> None:
        super().__init__(key)
        self.key = key

    def __str__(self) -> str:
        return f"Unknown route {self.key!r}"


class RouteSelector:
    """Owns the active :class:`PlaybackEngine` and swaps it on route changes."""

    def __init__(
        self,
        registry: Mapping[str, str],
        scheduler: Scheduler,
        speed_level: Union[SpeedLevel, str] = SpeedLevel.MEDIUM,
    ) -> None:
        self._registry = registry
        self._scheduler = scheduler
        self._speed_level = SpeedLevel.parse(speed_level)
        self._engine: Optional[PlaybackEngine] = None
        self._active_key: Optional[str] = None

    @property
    def engine(self) -> Optional[PlaybackEngine]:
        return self._engine

    @property
    def speed_level(self) -> SpeedLevel:
        if self._engine is not None:
            return self._engine.speed_level
        return self._speed_level

    @speed_level.setter
    def speed_level(self, level: Union[SpeedLevel, str]) -> None:
        self._speed_level = SpeedLevel.parse(level)
        if self._engine is not None:
            self._engine.set_speed(self._speed_level)

    @property
    def active_key(self) -> Optional[str]:
        return self._active_key

    def route_keys(self) -> List[str]:
        return list(self._registry)

    def select_route(self, key: str) -> PlaybackState:
        """Decode the route stored under ``key`` and install a fresh, idle engine.

        Lookup and decoding happen before anything is replaced, so a failure
        leaves the current engine untouched.
        """

        try:
            encoded = self._registry[key]
        except KeyError:
            raise RouteNotFoundError(key) from None

        route = decode(encoded, key=key)

        previous = self._engine
        if previous is not None:
            self._speed_level = previous.speed_level
            previous.close()

        self._engine = PlaybackEngine(route, self._scheduler, speed_level=self._speed_level)
        self._active_key = key
        logger.info("Loaded route %r with %d waypoints", key, len(route))
        return self._engine.state
