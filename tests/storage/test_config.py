"""Tests for config storage: defaults, partial updates and persistence."""

import json

from promptpack import storage
from promptpack.defaults import DEFAULT_TEMPLATES


def test_get_config_after_init():
    config = storage.get_config()
    assert config["active_bundle"] == "default"
    assert set(config["default_baseline"]) == {t.id for t in DEFAULT_TEMPLATES}


def test_update_active_bundle():
    result = storage.update_config({"active_bundle": "noir"})
    assert result["active_bundle"] == "noir"
    assert storage.get_config()["active_bundle"] == "noir"


def test_partial_update_keeps_baseline():
    before = storage.get_config()["default_baseline"]
    storage.update_config({"active_bundle": "noir"})
    assert storage.get_config()["default_baseline"] == before


def test_unknown_keys_ignored():
    result = storage.update_config({"theme": "dark"})
    assert "theme" not in result


def test_garbage_values_fall_back_to_defaults():
    path = storage.data_dir() / "config.json"
    path.write_text(json.dumps({"active_bundle": 5, "default_baseline": "nope"}))
    config = storage.get_config()
    assert config["active_bundle"] == "default"
    assert config["default_baseline"] == {}
