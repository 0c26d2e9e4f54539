"""The variable catalog: every name a template may reference.

A Catalog is built once per active bundle from the built-in descriptors plus
the bundle's custom ones, and is read-only afterwards, so one instance can be
shared by any number of concurrent resolutions.
"""

import logging
from collections.abc import Iterable, Iterator
from types import MappingProxyType
from typing import Any

from promptpack.builtins import BUILTINS
from promptpack.errors import InvalidValueError, NameCollisionError
from promptpack.models import Origin, VariableDescriptor, parse_boolean, parse_number
from promptpack.syntax import is_reserved

logger = logging.getLogger(__name__)


class Catalog:
    def __init__(self, descriptors: Iterable[VariableDescriptor]):
        by_name: dict[str, VariableDescriptor] = {}
        for d in descriptors:
            if d.name in by_name:
                raise NameCollisionError(d.name, by_name[d.name].origin)
            by_name[d.name] = d
        self._by_name = MappingProxyType(by_name)

    @classmethod
    def build(
        cls,
        custom: Iterable[VariableDescriptor] = (),
        builtins: Iterable[VariableDescriptor] = BUILTINS,
    ) -> "Catalog":
        """Merge *builtins* with a bundle's *custom* descriptors.

        Fails with NameCollisionError when a custom name shadows a built-in
        or a word of the template language.
        """
        builtins = list(builtins)
        known = {d.name: d.origin for d in builtins}
        custom = list(custom)
        for d in custom:
            if d.name in known:
                raise NameCollisionError(d.name, known[d.name])
            if is_reserved(d.name):
                raise NameCollisionError(d.name, "reserved")
        catalog = cls(builtins + custom)
        logger.debug("Built catalog with %d variables (%d custom)", len(catalog), len(custom))
        return catalog

    def describe(self, name: str) -> VariableDescriptor | None:
        return self._by_name.get(name)

    def all_names(self) -> frozenset[str]:
        return frozenset(self._by_name)

    def names_by_origin(self, origin: Origin) -> frozenset[str]:
        return frozenset(n for n, d in self._by_name.items() if d.origin == origin)

    def descriptors(self, origin: Origin | None = None) -> list[VariableDescriptor]:
        return [d for d in self._by_name.values() if origin is None or d.origin == origin]

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __iter__(self) -> Iterator[str]:
        return iter(self._by_name)

    def __len__(self) -> int:
        return len(self._by_name)


# ── Typed values ─────────────────────────────────────────


def empty_value(descriptor: VariableDescriptor) -> Any:
    """The value an optional variable takes when nothing supplies one."""
    if descriptor.value_type == "number":
        return 0
    if descriptor.value_type == "boolean":
        return False
    return ""


def coerce_value(descriptor: VariableDescriptor, value: Any) -> Any:
    """Check *value* against the descriptor's type and normalise it.

    Raises InvalidValueError when the value does not fit.
    """
    name = descriptor.name
    kind = descriptor.value_type

    if kind == "text":
        if isinstance(value, str):
            return value
        if isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value):
            return list(value)
        raise InvalidValueError(name, value, "expected text or a list of text")

    if kind == "number":
        if isinstance(value, bool):
            raise InvalidValueError(name, value, "expected a number")
        if isinstance(value, (int, float)):
            return value
        if isinstance(value, str):
            number = parse_number(value)
            if number is not None:
                return number
        raise InvalidValueError(name, value, "expected a number")

    if kind == "boolean":
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            flag = parse_boolean(value)
            if flag is not None:
                return flag
        raise InvalidValueError(name, value, "expected true or false")

    if not isinstance(value, str) or value not in descriptor.enum_options:
        options = ", ".join(descriptor.enum_options)
        raise InvalidValueError(name, value, f"expected one of: {options}")
    return value
