"""The car marker drawn at the vehicle's current waypoint."""
from __future__ import annotations

from pathlib import Path

import numpy as np
from PIL import Image, ImageDraw

from .config import VehicleConfig

_GLASS = "#cfe3f7"
_OUTLINE = "#0d2a4a"


def draw_car_marker(colour: str, size: int = 64) -> Image.Image:
    """Top-down car facing north, so a bearing of 0 needs no rotation."""

    image = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    draw = ImageDraw.Draw(image)
    left, right = size * 0.28, size * 0.72
    top, bottom = size * 0.1, size * 0.92
    radius = int(size * 0.12)

    draw.rounded_rectangle([left, top, right, bottom], radius=radius, fill=colour, outline=_OUTLINE, width=2)
    # windscreen then rear window
    draw.rectangle([left + size * 0.06, size * 0.3, right - size * 0.06, size * 0.42], fill=_GLASS)
    draw.rectangle([left + size * 0.07, size * 0.72, right - size * 0.07, size * 0.8], fill=_GLASS)
    # heading arrow above the bonnet
    draw.polygon([(size / 2.0, 0), (size * 0.4, top + 2), (size * 0.6, top + 2)], fill=_OUTLINE)
    return image


def load_vehicle_icon(config: VehicleConfig, base_size: int = 64) -> np.ndarray:
    """Return the configured marker as an RGBA array, drawing the car when no image is set."""

    size = max(8, int(round(base_size * config.icon_scale)))
    if config.icon_path is not None:
        path = Path(config.icon_path)
        if not path.exists():
            raise FileNotFoundError(path)
        with Image.open(path) as source:
            image = source.convert("RGBA").resize((size, size), Image.LANCZOS)
    else:
        image = draw_car_marker(config.colour, size=size)
    return np.array(image)


def rotate_icon(icon: np.ndarray, bearing: float) -> np.ndarray:
    """Turn a north-facing marker clockwise to ``bearing`` degrees."""

    rotated = Image.fromarray(icon).rotate(-bearing, resample=Image.BICUBIC, expand=True)
    return np.array(rotated)
