"""Tests for the variable catalog: built-in names, custom merging, collisions
and typed value coercion."""

import pytest

from promptpack.builtins import BUILTINS, DERIVED, SUPPLIED
from promptpack.catalog import Catalog, coerce_value, empty_value
from promptpack.errors import InvalidValueError, NameCollisionError
from promptpack.models import VariableDescriptor


# ── Building ─────────────────────────────────────────────


def test_builtins_only():
    catalog = Catalog.build()
    assert len(catalog) == len(BUILTINS)
    assert "protagonistName" in catalog
    assert "userInput" in catalog
    assert catalog.names_by_origin("custom") == frozenset()


def test_builtin_names_unique():
    names = [d.name for d in BUILTINS]
    assert len(names) == len(set(names))


def test_builtin_origins():
    assert all(d.origin == "derived" for d in DERIVED)
    assert all(d.origin == "supplied" for d in SUPPLIED)


def test_custom_variables_added():
    custom = [VariableDescriptor(name="mood", default_value="calm")]
    catalog = Catalog.build(custom)
    assert "mood" in catalog
    assert catalog.describe("mood").origin == "custom"
    assert catalog.names_by_origin("custom") == frozenset({"mood"})
    assert [d.name for d in catalog.descriptors("custom")] == ["mood"]


def test_describe_unknown():
    assert Catalog.build().describe("nothing") is None


def test_custom_colliding_with_builtin():
    with pytest.raises(NameCollisionError) as exc:
        Catalog.build([VariableDescriptor(name="genre")])
    assert exc.value.name == "genre"
    assert exc.value.origin == "derived"


def test_custom_colliding_with_supplied():
    with pytest.raises(NameCollisionError) as exc:
        Catalog.build([VariableDescriptor(name="userInput")])
    assert exc.value.origin == "supplied"


def test_custom_using_reserved_word():
    with pytest.raises(NameCollisionError) as exc:
        Catalog.build([VariableDescriptor(name="each")])
    assert exc.value.origin == "reserved"


def test_duplicate_descriptors():
    with pytest.raises(NameCollisionError):
        Catalog([VariableDescriptor(name="x"), VariableDescriptor(name="x")])


# ── Typed values ─────────────────────────────────────────


class TestCoerce:
    def test_text(self):
        d = VariableDescriptor(name="t")
        assert coerce_value(d, "hi") == "hi"
        assert coerce_value(d, ("a", "b")) == ["a", "b"]
        with pytest.raises(InvalidValueError):
            coerce_value(d, 5)

    def test_number(self):
        d = VariableDescriptor(name="n", value_type="number")
        assert coerce_value(d, 3) == 3
        assert coerce_value(d, 2.5) == 2.5
        assert coerce_value(d, "4") == 4
        assert coerce_value(d, "0.5") == 0.5
        for bad in ("four", True, None, [1]):
            with pytest.raises(InvalidValueError):
                coerce_value(d, bad)

    def test_boolean(self):
        d = VariableDescriptor(name="b", value_type="boolean")
        assert coerce_value(d, True) is True
        assert coerce_value(d, "yes") is True
        assert coerce_value(d, "False") is False
        with pytest.raises(InvalidValueError):
            coerce_value(d, "maybe")
        with pytest.raises(InvalidValueError):
            coerce_value(d, 1)

    def test_enum(self):
        d = VariableDescriptor(name="e", value_type="enum", enum_options=["low", "high"])
        assert coerce_value(d, "low") == "low"
        with pytest.raises(InvalidValueError) as exc:
            coerce_value(d, "medium")
        assert exc.value.name == "e"
        assert "low, high" in exc.value.reason


def test_empty_values():
    assert empty_value(VariableDescriptor(name="t")) == ""
    assert empty_value(VariableDescriptor(name="n", value_type="number")) == 0
    assert empty_value(VariableDescriptor(name="b", value_type="boolean")) is False
