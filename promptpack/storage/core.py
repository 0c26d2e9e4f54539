"""Storage initialization, path helpers, and slug utilities."""

import re
import unicodedata
from pathlib import Path

_data_dir: Path | None = None


def slugify(title: str) -> str:
    """Convert a bundle name to a filesystem-safe id.

    "Dark Fantasy Pack" → "dark-fantasy-pack"
    """
    text = unicodedata.normalize("NFKD", title)
    text = text.encode("ascii", "ignore").decode("ascii")
    text = text.lower()
    text = re.sub(r"['\"]", "", text)  # strip apostrophes/quotes before hyphenation
    text = re.sub(r"[^a-z0-9]+", "-", text)
    text = text.strip("-")
    return text or "untitled"


def init_storage(data_dir: Path) -> None:
    """Point storage at *data_dir*, creating it and seeding the default bundle."""
    global _data_dir
    from . import bundles as _bundles_mod

    _data_dir = data_dir
    _data_dir.mkdir(parents=True, exist_ok=True)
    bundles_dir().mkdir(exist_ok=True)
    _bundles_mod.seed_default_bundle()


def data_dir() -> Path:
    assert _data_dir is not None, "Call init_storage() before using storage"
    return _data_dir


def bundles_dir() -> Path:
    return data_dir() / "bundles"
