"""Persisted settings (active bundle, shipped template baseline)."""

import json
from pathlib import Path
from typing import Any

from .core import data_dir

_CONFIG_DEFAULTS: dict[str, Any] = {
    "active_bundle": "default",
    "default_baseline": {},
}


def _config_path() -> Path:
    return data_dir() / "config.json"


def get_config() -> dict[str, Any]:
    """Read config, returning defaults merged with stored values."""
    config: dict[str, Any] = {
        "active_bundle": _CONFIG_DEFAULTS["active_bundle"],
        "default_baseline": dict(_CONFIG_DEFAULTS["default_baseline"]),
    }
    path = _config_path()
    if path.is_file():
        stored = json.loads(path.read_text())
        if isinstance(stored.get("active_bundle"), str) and stored["active_bundle"]:
            config["active_bundle"] = stored["active_bundle"]
        if isinstance(stored.get("default_baseline"), dict):
            config["default_baseline"] = stored["default_baseline"]
    return config


def update_config(fields: dict[str, Any]) -> dict[str, Any]:
    """Merge fields into config and persist. Returns full config."""
    config = get_config()
    if "active_bundle" in fields:
        config["active_bundle"] = fields["active_bundle"]
    if "default_baseline" in fields:
        config["default_baseline"] = dict(fields["default_baseline"])
    _config_path().write_text(json.dumps(config, indent=2))
    return config
