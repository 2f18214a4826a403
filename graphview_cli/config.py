"""Configuration paths and defaults for local GraphView state."""

from __future__ import annotations

import os
from pathlib import Path

BASE_DIR = Path(os.environ.get("GRAPHVIEW_HOME", str(Path.home() / ".graphview"))).expanduser()
MEMORY_DIR = BASE_DIR / "memory"
STATE_FILE = BASE_DIR / "state.json"
CONFIG_FILE = BASE_DIR / "config.toml"

DEFAULT_STALE_EXPANSIONS = "apply"
DEFAULT_MAX_NEIGHBOURS = 100
DEFAULT_INITIAL_NODES = 25


def ensure_base_dirs() -> None:
    """Create base directories for local storage if needed."""
    MEMORY_DIR.mkdir(parents=True, exist_ok=True)
    BASE_DIR.mkdir(parents=True, exist_ok=True)
