"""Rendering logic for producing vehicle route tracker videos."""
from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Callable, Iterator, List, Optional

import imageio.v2 as imageio
import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt
from matplotlib.offsetbox import AnnotationBbox, OffsetImage
from matplotlib.patches import Rectangle
import numpy as np

from .config import ControlEvent, TrackerConfig
from .geometry import Coordinate, bearing_degrees, route_bounds
from .icons import load_vehicle_icon, rotate_icon
from .polyline import decode
from .routes import RouteNotFoundError
from .scheduler import SimulatedClock
from .tracker import TelemetrySnapshot, VehicleTracker

logger = logging.getLogger(__name__)

_PROGRESS_LEFT = 0.02
_PROGRESS_WIDTH = 0.96


class TrackerRenderer:
    """Draw telemetry snapshots onto a map-like canvas and export them as video."""

    def __init__(self, config: TrackerConfig) -> None:
        self.config = config
        self._vehicle_icon = load_vehicle_icon(config.vehicle)
        self._snapshot: Optional[TelemetrySnapshot] = None
        self._bearing = 0.0
        self._route_key: Optional[str] = None
        self._setup_canvas()

    # ------------------------------------------------------------------
    # Canvas construction
    # ------------------------------------------------------------------

    def _setup_canvas(self) -> None:
        dpi = 100
        figsize = (self.config.width / dpi, self.config.height / dpi)
        self._fig, self._ax = plt.subplots(figsize=figsize, dpi=dpi)
        self._fig.patch.set_facecolor("#f4f6f8")
        self._ax.set_facecolor("#e8edf2")
        self._fig.subplots_adjust(left=0.01, right=0.99, top=0.92, bottom=0.07)

        self._ax.set_xticks([])
        self._ax.set_yticks([])

        if self.config.title:
            self._ax.set_title(self.config.title, color="#1b1f24", fontsize=14, pad=10)

        self._route_line, = self._ax.plot([], [], color="#2f6fdb", linewidth=3, solid_capstyle="round")
        self._trail_line, = self._ax.plot([], [], color="#0b3d91", linewidth=4, solid_capstyle="round")

        self._vehicle_image_box = OffsetImage(self._vehicle_icon, zoom=0.5)
        self._vehicle_artist = AnnotationBbox(self._vehicle_image_box, (0.0, 0.0), frameon=False)
        self._vehicle_artist.set_visible(False)
        self._ax.add_artist(self._vehicle_artist)

        self._telemetry_text = self._ax.text(
            0.02,
            0.97,
            "",
            transform=self._ax.transAxes,
            color="#1b1f24",
            fontsize=10,
            ha="left",
            va="top",
            bbox=dict(facecolor="#ffffff", alpha=0.85, boxstyle="round,pad=0.5"),
        )
        self._status_text = self._ax.text(
            0.98,
            0.97,
            "",
            transform=self._ax.transAxes,
            color="#1b1f24",
            fontsize=10,
            ha="right",
            va="top",
            bbox=dict(facecolor="#ffffff", alpha=0.85, boxstyle="round,pad=0.5"),
        )

        self._progress_background = Rectangle(
            (_PROGRESS_LEFT, 0.02),
            _PROGRESS_WIDTH,
            0.025,
            transform=self._fig.transFigure,
            facecolor="#d0d7de",
            edgecolor="none",
        )
        self._progress_bar = Rectangle(
            (_PROGRESS_LEFT, 0.02),
            0.0,
            0.025,
            transform=self._fig.transFigure,
            facecolor="#2da44e",
            edgecolor="none",
        )
        self._fig.add_artist(self._progress_background)
        self._fig.add_artist(self._progress_bar)

    def _recenter(self, snapshot: TelemetrySnapshot, target: Coordinate) -> None:
        """Centre the view on ``target`` while keeping the whole route in sight."""

        lat_min, lat_max, lon_min, lon_max = route_bounds(snapshot.route.points)
        margin = self.config.margin_degrees
        half_lat = max(target.latitude - lat_min, lat_max - target.latitude) + margin
        half_lon = max(target.longitude - lon_min, lon_max - target.longitude) + margin

        # Match the screen aspect so the route is not stretched.
        ratio = self.config.width / max(self.config.height, 1)
        cos_lat = max(math.cos(math.radians(target.latitude)), 1e-6)
        if half_lon * cos_lat < half_lat * ratio:
            half_lon = half_lat * ratio / cos_lat
        else:
            half_lat = half_lon * cos_lat / ratio

        self._ax.set_xlim(target.longitude - half_lon, target.longitude + half_lon)
        self._ax.set_ylim(target.latitude - half_lat, target.latitude + half_lat)
        logger.debug("Recentred map on %.5f, %.5f", target.latitude, target.longitude)

    # ------------------------------------------------------------------
    # Snapshot handling
    # ------------------------------------------------------------------

    def update(self, snapshot: TelemetrySnapshot) -> None:
        """Receive a snapshot from the tracker; the next captured frame shows it."""

        if snapshot.route_key != self._route_key:
            self._route_key = snapshot.route_key
            self._bearing = 0.0
            lats = [point.latitude for point in snapshot.route]
            lons = [point.longitude for point in snapshot.route]
            self._route_line.set_data(lons, lats)
        if snapshot.recenter is not None:
            self._recenter(snapshot, snapshot.recenter)
        self._bearing = self._heading(snapshot)
        self._snapshot = snapshot

    def _heading(self, snapshot: TelemetrySnapshot) -> float:
        route = snapshot.route
        index = snapshot.cursor_index
        if index + 1 < len(route):
            start, end = route[index], route[index + 1]
        elif index > 0:
            start, end = route[index - 1], route[index]
        else:
            return self._bearing
        if start == end:
            return self._bearing
        return bearing_degrees(start, end)

    def _draw_frame(self) -> None:
        snapshot = self._snapshot
        if snapshot is None:
            return

        traveled = snapshot.route.points[: snapshot.cursor_index + 1]
        self._trail_line.set_data(
            [point.longitude for point in traveled],
            [point.latitude for point in traveled],
        )

        self._vehicle_image_box.set_data(rotate_icon(self._vehicle_icon, self._bearing))
        self._vehicle_artist.xy = (snapshot.position.longitude, snapshot.position.latitude)
        self._vehicle_artist.set_visible(True)

        self._telemetry_text.set_text("\n".join(["Vehicle Info:"] + snapshot.telemetry_lines()))
        self._status_text.set_text(
            f"Route: {snapshot.route_key}\n{snapshot.button_label} | {snapshot.progress_percent:.0f}%"
        )
        self._progress_bar.set_width(_PROGRESS_WIDTH * snapshot.progress_percent / 100.0)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def capture_frame(self) -> np.ndarray:
        """Draw the latest snapshot and return the canvas as an RGBA array."""

        self._draw_frame()
        self._fig.canvas.draw()
        return np.asarray(self._fig.canvas.buffer_rgba()).copy()

    def frames(self) -> Iterator[np.ndarray]:
        """Play the configured route on a simulated clock, yielding one frame per step.

        The initial route is selected before this returns, so an unknown or
        undecodable route is reported before any frame is produced.
        """

        clock = SimulatedClock()
        tracker = VehicleTracker(self.config.routes, clock, speed_level=self.config.speed)
        unsubscribe = tracker.subscribe(self.update)
        try:
            tracker.select_route(self.config.initial_route)
        except Exception:
            unsubscribe()
            raise
        return self._play(clock, tracker, unsubscribe)

    def _play(
        self, clock: SimulatedClock, tracker: VehicleTracker, unsubscribe: Callable[[], None]
    ) -> Iterator[np.ndarray]:
        config = self.config
        controls: List[ControlEvent] = list(config.controls) or [ControlEvent(at_seconds=0.0, action="start")]
        frame_ms = 1000.0 / config.frame_rate
        max_frames = max(1, int(math.ceil(config.max_duration_seconds * config.frame_rate)))
        end_frames = int(round(max(config.pause_at_end, 0.0) * config.frame_rate))
        idle_frames = 0

        try:
            for frame_index in range(max_frames):
                now_ms = frame_index * frame_ms
                while controls and controls[0].at_seconds * 1000.0 <= now_ms:
                    event = controls.pop(0)
                    clock.advance_to(max(event.at_seconds * 1000.0, clock.now_ms))
                    self._apply_control(tracker, event)
                clock.advance_to(now_ms)

                yield self.capture_frame()

                engine = tracker.engine
                if controls or (engine is not None and engine.running):
                    idle_frames = 0
                    continue
                idle_frames += 1
                if idle_frames > end_frames:
                    break
            else:
                logger.warning("Stopped after reaching max_duration_seconds=%s", config.max_duration_seconds)
        finally:
            unsubscribe()

    def _apply_control(self, tracker: VehicleTracker, event: ControlEvent) -> None:
        logger.info("t=%.2fs control %s%s", event.at_seconds, event.action, f" {event.value}" if event.value else "")
        if event.action == "start":
            tracker.start()
        elif event.action == "pause":
            tracker.pause()
        elif event.action == "toggle":
            tracker.toggle()
        elif event.action == "speed":
            tracker.set_speed(event.value or "")
        elif event.action == "route":
            tracker.select_route(event.value or "")
        else:
            raise ValueError(f"Unknown control action {event.action!r}")

    def check_controls(self) -> None:
        """Resolve every route the control script switches to, before any output is written."""

        for event in self.config.controls:
            if event.action != "route":
                continue
            key = event.value or ""
            try:
                encoded = self.config.routes[key]
            except KeyError:
                raise RouteNotFoundError(key) from None
            decode(encoded, key=key)

    def render(self) -> Path:
        output_path = Path(self.config.output_path)
        try:
            self.check_controls()
            frames = self.frames()
        except Exception:
            self.close()
            raise
        output_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            writer_ctx = imageio.get_writer(
                output_path,
                fps=self.config.frame_rate,
                codec="libx264",
                format="FFMPEG",
                macro_block_size=None,
                quality=8,
            )
        except ImportError as exc:
            raise ImportError(
                "FFMPEG support is required to export videos. Install the "
                "'imageio-ffmpeg' package (for example via 'pip install "
                "imageio-ffmpeg') and try again."
            ) from exc

        frame_count = 0
        try:
            with writer_ctx as writer:
                for frame in frames:
                    # Drop the alpha channel for the video encoder.
                    writer.append_data(frame[:, :, :3])
                    frame_count += 1
        except Exception:
            output_path.unlink(missing_ok=True)
            raise
        finally:
            self.close()
        logger.info("Wrote %d frames to %s", frame_count, output_path)
        return output_path

    def close(self) -> None:
        plt.close(self._fig)
