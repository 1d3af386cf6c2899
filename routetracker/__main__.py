"""Module entry point to run the tracker via ``python -m routetracker``."""
from __future__ import annotations

from .main import main


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
