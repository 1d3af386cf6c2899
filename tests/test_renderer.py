"""Tests for frame rendering."""
import pytest

from routetracker.config import ControlEvent, RouteRegistry, TrackerConfig
from routetracker.playback import SpeedLevel
from routetracker.polyline import DecodeError
from routetracker.renderer import TrackerRenderer
from routetracker.routes import RouteNotFoundError


@pytest.fixture
def small_config(tmp_path) -> TrackerConfig:
    return TrackerConfig(
        route="three",
        speed=SpeedLevel.HIGH,
        routes=RouteRegistry({"three": "_p~iF~ps|U_ulLnnqC_mqNvxq`@", "two": "_p~iF~ps|U_ulLnnqC"}),
        frame_rate=10,
        width=160,
        height=120,
        pause_at_end=0.2,
        output_path=tmp_path / "out.mp4",
    )


def test_frames_play_route_to_completion(small_config):
    renderer = TrackerRenderer(small_config)
    snapshots = []
    original_update = renderer.update

    def record(snapshot):
        snapshots.append(snapshot)
        original_update(snapshot)

    renderer.update = record
    try:
        frames = list(renderer.frames())
    finally:
        renderer.close()

    # Two ticks of 200 ms at 10 fps, then the end pause.
    assert 5 <= len(frames) <= 10
    assert frames[0].shape == (120, 160, 4)
    assert snapshots[0].recenter is not None
    assert snapshots[-1].progress_percent == pytest.approx(100.0)


def test_control_script_switches_route(small_config):
    small_config.controls = [
        ControlEvent(at_seconds=0.0, action="start"),
        ControlEvent(at_seconds=0.1, action="route", value="two"),
    ]
    renderer = TrackerRenderer(small_config)
    try:
        frames = list(renderer.frames())
        assert renderer._snapshot.route_key == "two"  # pylint: disable=protected-access
        assert renderer._snapshot.cursor_index == 0  # pylint: disable=protected-access
    finally:
        renderer.close()

    assert frames


def test_capture_frame_before_any_snapshot(small_config):
    renderer = TrackerRenderer(small_config)
    try:
        frame = renderer.capture_frame()
    finally:
        renderer.close()

    assert frame.shape == (120, 160, 4)


@pytest.mark.parametrize(
    "key, error",
    [("route99", RouteNotFoundError), ("broken", DecodeError)],
)
def test_bad_route_control_fails_before_writing(small_config, key, error):
    small_config.routes = RouteRegistry({"three": "_p~iF~ps|U_ulLnnqC_mqNvxq`@", "broken": "_p~i"})
    small_config.controls = [
        ControlEvent(at_seconds=0.0, action="start"),
        ControlEvent(at_seconds=0.2, action="route", value=key),
    ]
    renderer = TrackerRenderer(small_config)

    with pytest.raises(error):
        renderer.render()

    assert not small_config.output_path.exists()


def test_check_controls_accepts_known_routes(small_config):
    small_config.controls = [ControlEvent(at_seconds=0.5, action="route", value="two")]
    renderer = TrackerRenderer(small_config)
    try:
        renderer.check_controls()
    finally:
        renderer.close()
