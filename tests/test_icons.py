"""Tests for the vehicle marker."""
import numpy as np
import pytest
from PIL import Image

from routetracker.config import VehicleConfig
from routetracker.icons import draw_car_marker, load_vehicle_icon, rotate_icon


def test_default_marker_is_drawn_car():
    icon = load_vehicle_icon(VehicleConfig())

    assert icon.shape == (64, 64, 4)
    assert icon[0, 0, 3] == 0  # transparent corner
    assert icon[32, 32, 3] == 255  # solid body


def test_marker_scale():
    assert load_vehicle_icon(VehicleConfig(icon_scale=0.5)).shape == (32, 32, 4)


def test_custom_icon_path(tmp_path):
    path = tmp_path / "marker.png"
    Image.new("RGB", (10, 20), (255, 0, 0)).save(path)

    icon = load_vehicle_icon(VehicleConfig(icon_path=path), base_size=40)

    assert icon.shape == (40, 40, 4)
    red, green, blue, alpha = (int(v) for v in icon[20, 20])
    assert red >= 250 and green <= 5 and blue <= 5
    assert alpha >= 250


def test_missing_icon_path(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_vehicle_icon(VehicleConfig(icon_path=tmp_path / "missing.png"))


def test_rotate_icon_turns_heading_arrow():
    icon = np.array(draw_car_marker("#1f77b4", size=64))

    unchanged = rotate_icon(icon, 0.0)
    east = rotate_icon(icon, 90.0)

    assert np.array_equal(unchanged, icon)
    assert east.shape == (64, 64, 4)
    # the arrow tip moves from the top edge to the right edge
    assert icon[3, 32, 3] > 0
    assert east[32, 60, 3] > 0
    assert east[3, 32, 3] == 0
