"""Command line entry point for the vehicle route tracker."""
from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Optional

from . import logging_config
from .config import load_config
from .playback import SpeedLevel
from .polyline import DecodeError
from .renderer import TrackerRenderer
from .routes import RouteNotFoundError

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Animate a vehicle along an encoded polyline route.")
    parser.add_argument(
        "config",
        type=Path,
        nargs="?",
        help="Path to a JSON or YAML configuration file. Uses the bundled sample routes when omitted.",
    )
    parser.add_argument("--route", help="Key of the route to play, overriding the configuration.")
    parser.add_argument(
        "--speed",
        choices=[level.label for level in SpeedLevel],
        help="Playback speed level, overriding the configuration.",
    )
    parser.add_argument("--output", type=Path, help="Where to write the rendered video.")
    parser.add_argument("--list-routes", action="store_true", help="Print the available route keys and exit.")
    parser.add_argument("--log-level", default="INFO", help="Logging level (default: INFO).")
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    logging_config.configure(args.log_level)

    config = load_config(args.config)
    if args.list_routes:
        for key in config.routes:
            print(key)
        return 0

    if args.route:
        config.route = args.route
    if args.speed:
        config.speed = SpeedLevel.parse(args.speed)
    if args.output:
        config.output_path = args.output

    renderer = TrackerRenderer(config)
    try:
        output_path = renderer.render()
    except RouteNotFoundError as exc:
        logger.error("%s. Available routes: %s", exc, ", ".join(config.routes))
        return 1
    except DecodeError as exc:
        logger.error("Animation aborted, route unavailable: %s", exc)
        return 1
    print(f"Saved animation to {output_path}")
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
