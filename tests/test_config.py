"""Tests for configuration loading."""
import json
from pathlib import Path

import pytest

from routetracker.config import ControlEvent, RouteRegistry, TrackerConfig, load_config, load_routes
from routetracker.playback import SpeedLevel
from routetracker.polyline import decode


def write_json(path: Path, data) -> Path:
    path.write_text(json.dumps(data), encoding="utf8")
    return path


def test_defaults_use_bundled_routes():
    config = load_config()

    assert list(config.routes) == ["route1", "route2"]
    assert config.initial_route == "route1"
    assert config.speed is SpeedLevel.MEDIUM
    assert config.controls == []


@pytest.mark.parametrize("key, points", [("route1", 46), ("route2", 198)])
def test_bundled_routes_decode(key, points):
    registry = load_config().routes

    assert len(decode(registry[key], key=key)) == points


def test_load_config_from_json(tmp_path):
    path = write_json(
        tmp_path / "tracker.json",
        {
            "title": "Demo",
            "route": "b",
            "speed": "high",
            "routes": {"a": "_p~iF~ps|U", "b": "_p~iF~ps|U_ulLnnqC"},
            "fps": 12,
            "output": "out/demo.mp4",
            "vehicle": {"color": "#d62728", "icon_scale": 0.5},
            "controls": [
                {"at": 4, "action": "pause"},
                {"at": 1, "action": "start"},
                {"at": 2, "action": "speed", "value": "low"},
            ],
        },
    )

    config = load_config(path)

    assert config.title == "Demo"
    assert config.initial_route == "b"
    assert config.speed is SpeedLevel.HIGH
    assert config.frame_rate == 12
    assert config.output_path == Path("out/demo.mp4")
    assert config.vehicle.colour == "#d62728"
    assert config.vehicle.icon_scale == 0.5
    assert [event.action for event in config.controls] == ["start", "speed", "pause"]
    assert config.controls[1] == ControlEvent(at_seconds=2.0, action="speed", value="Low")


def test_routes_file_is_relative_to_config(tmp_path):
    (tmp_path / "data").mkdir()
    write_json(tmp_path / "data" / "routes.json", {"only": "_p~iF~ps|U"})
    path = write_json(tmp_path / "tracker.json", {"routes_file": "data/routes.json"})

    config = load_config(path)

    assert list(config.routes) == ["only"]
    assert config.initial_route == "only"


def test_load_config_from_yaml(tmp_path):
    pytest.importorskip("yaml")
    path = tmp_path / "tracker.yaml"
    path.write_text(
        "route: route2\nspeed: Low\ncontrols:\n  - at: 0\n    action: toggle\n",
        encoding="utf8",
    )

    config = load_config(path)

    assert config.initial_route == "route2"
    assert config.speed is SpeedLevel.LOW
    assert config.controls == [ControlEvent(at_seconds=0.0, action="toggle")]


def test_load_routes(tmp_path):
    registry = load_routes(write_json(tmp_path / "routes.json", {"x": "_p~iF~ps|U"}))

    assert isinstance(registry, RouteRegistry)
    assert registry["x"] == "_p~iF~ps|U"
    assert len(registry) == 1


@pytest.mark.parametrize(
    "data",
    [
        {"routes": []},
        {"routes": {}},
        {"routes": {"a": 5}},
        {"speed": "warp"},
        {"controls": [{"at": 1, "action": "jump"}]},
        {"controls": [{"at": 1, "action": "route"}]},
        {"controls": [{"at": -1, "action": "start"}]},
        {"controls": [{"at": 1}]},
        {"controls": {"at": 1, "action": "start"}},
        {"frame_rate": 0},
    ],
)
def test_invalid_configuration(data):
    with pytest.raises(ValueError):
        TrackerConfig.from_mapping(data)


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.json")


def test_top_level_must_be_mapping(tmp_path):
    with pytest.raises(ValueError):
        load_config(write_json(tmp_path / "list.json", [1, 2]))
