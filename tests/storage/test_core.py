"""Tests for slugify and storage initialisation."""

from pathlib import Path

from promptpack import storage

TEST_DATA_DIR = Path("data-tests")


def test_slugify_basic():
    assert storage.slugify("Dark Fantasy Pack") == "dark-fantasy-pack"


def test_slugify_apostrophe():
    assert storage.slugify("Dragon's Hollow") == "dragons-hollow"


def test_slugify_unicode():
    assert storage.slugify("Café Münch") == "cafe-munch"


def test_slugify_empty():
    assert storage.slugify("") == "untitled"


def test_init_creates_layout():
    assert storage.data_dir() == TEST_DATA_DIR
    assert storage.bundles_dir().is_dir()
    assert (storage.bundles_dir() / "default.json").is_file()
    assert (TEST_DATA_DIR / "config.json").is_file()


def test_init_is_idempotent():
    storage.create_bundle("Mine")
    storage.init_storage(TEST_DATA_DIR)
    assert storage.get_bundle("mine") is not None
    assert [b.id for b in storage.list_bundles()] == ["default", "mine"]
