"""Configuration manager for GraphView CLI using TOML files."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import toml

from . import config
from .events import STALE_POLICIES

logger = logging.getLogger(__name__)


DEFAULT_EXPLORE_CONFIG: Dict[str, Any] = {
    "stale_expansions": config.DEFAULT_STALE_EXPANSIONS,
    "max_neighbours": config.DEFAULT_MAX_NEIGHBOURS,
    "initial_nodes": config.DEFAULT_INITIAL_NODES,
    "deferred_fetch": False,
}


def load_full_config() -> Dict[str, Any]:
    """Load the entire TOML config (all sections)."""
    if not config.CONFIG_FILE.exists():
        return {}
    try:
        with open(config.CONFIG_FILE, "r") as f:
            return toml.load(f)
    except (OSError, toml.TomlDecodeError) as exc:
        logger.warning("Ignoring unreadable config %s: %s", config.CONFIG_FILE, exc)
        return {}


def _save_full_config(data: Dict[str, Any]) -> None:
    """Write entire config dict to TOML file, preserving all sections."""
    config.ensure_base_dirs()
    with open(config.CONFIG_FILE, "w") as f:
        toml.dump(data, f)


def validate_explore_config(settings: Dict[str, Any]) -> Dict[str, Any]:
    """Check value ranges; raises ``ValueError`` on the first bad entry."""
    if settings["stale_expansions"] not in STALE_POLICIES:
        raise ValueError(
            f"stale_expansions must be one of {', '.join(STALE_POLICIES)}, got {settings['stale_expansions']!r}"
        )
    for key in ("max_neighbours", "initial_nodes"):
        value = settings[key]
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise ValueError(f"{key} must be a positive integer, got {value!r}")
    if not isinstance(settings["deferred_fetch"], bool):
        raise ValueError(f"deferred_fetch must be true or false, got {settings['deferred_fetch']!r}")
    return settings


def load_explore_config() -> Dict[str, Any]:
    """Load the ``[explore]`` section merged over defaults.

    Invalid values in the file are reported and replaced by defaults.
    """
    settings = DEFAULT_EXPLORE_CONFIG.copy()
    section = load_full_config().get("explore", {})
    settings.update({k: v for k, v in section.items() if k in DEFAULT_EXPLORE_CONFIG})
    try:
        return validate_explore_config(settings)
    except ValueError as exc:
        logger.warning("Invalid [explore] config, using defaults: %s", exc)
        return DEFAULT_EXPLORE_CONFIG.copy()


def save_explore_config(
    stale_expansions: Optional[str] = None,
    max_neighbours: Optional[int] = None,
    initial_nodes: Optional[int] = None,
    deferred_fetch: Optional[bool] = None,
) -> Dict[str, Any]:
    """Update the ``[explore]`` section; unspecified keys keep their value.

    Returns:
        The settings now stored.
    """
    settings = load_explore_config()
    updates = {
        "stale_expansions": stale_expansions,
        "max_neighbours": max_neighbours,
        "initial_nodes": initial_nodes,
        "deferred_fetch": deferred_fetch,
    }
    settings.update({k: v for k, v in updates.items() if v is not None})
    validate_explore_config(settings)

    data = load_full_config()
    data["explore"] = settings
    _save_full_config(data)
    return settings
