"""Tests for TOML-backed exploration settings."""

import pytest
import toml

from graphview_cli import config
from graphview_cli.config_manager import DEFAULT_EXPLORE_CONFIG, load_explore_config, save_explore_config


def test_defaults_without_file():
    assert load_explore_config() == DEFAULT_EXPLORE_CONFIG


def test_save_and_load_roundtrip():
    saved = save_explore_config(stale_expansions="discard", max_neighbours=10)
    assert saved["stale_expansions"] == "discard"
    assert saved["initial_nodes"] == DEFAULT_EXPLORE_CONFIG["initial_nodes"]

    loaded = load_explore_config()
    assert loaded["stale_expansions"] == "discard"
    assert loaded["max_neighbours"] == 10


def test_save_preserves_other_sections():
    config.ensure_base_dirs()
    config.CONFIG_FILE.write_text('[display]\ntheme = "dark"\n', encoding="utf-8")

    save_explore_config(deferred_fetch=True)

    data = toml.loads(config.CONFIG_FILE.read_text(encoding="utf-8"))
    assert data["display"] == {"theme": "dark"}
    assert data["explore"]["deferred_fetch"] is True


@pytest.mark.parametrize("kwargs", [
    {"stale_expansions": "cancel"},
    {"max_neighbours": 0},
    {"initial_nodes": -3},
])
def test_save_rejects_invalid(kwargs):
    with pytest.raises(ValueError):
        save_explore_config(**kwargs)
    assert not config.CONFIG_FILE.exists()


def test_invalid_file_values_fall_back_to_defaults():
    config.ensure_base_dirs()
    config.CONFIG_FILE.write_text('[explore]\nmax_neighbours = "many"\n', encoding="utf-8")
    assert load_explore_config() == DEFAULT_EXPLORE_CONFIG


def test_unreadable_file_falls_back_to_defaults():
    config.ensure_base_dirs()
    config.CONFIG_FILE.write_text("[explore\n", encoding="utf-8")
    assert load_explore_config() == DEFAULT_EXPLORE_CONFIG
