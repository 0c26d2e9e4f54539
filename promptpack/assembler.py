"""Per-invocation context assembly and paired evaluation.

A calling service builds an Assembler (usually through ActiveBundle), merges
the values it owns, and calls ``evaluate(template_id)`` to get the primary
and secondary prompt text rendered from one context snapshot.
"""

import logging
import threading
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, NamedTuple

from promptpack.bundles import activate
from promptpack.catalog import Catalog, coerce_value, empty_value
from promptpack.engine import evaluate
from promptpack.errors import (
    InvalidValueError,
    MissingRequiredVariableError,
    ReadOnlyVariableError,
    TemplateNotFoundError,
)
from promptpack.models import Bundle, is_templated
from promptpack.syntax import DEFAULT_LIMITS, Limits
from promptpack.validator import dependency_graph, resolution_order

logger = logging.getLogger(__name__)


class RenderedPair(NamedTuple):
    primary: str
    secondary: str


class Assembler:
    """Accumulates variable values for one resolution and renders templates.

    Not thread-safe: one Assembler belongs to one caller. The bundle and
    catalog it holds are never modified, so any number of Assemblers may
    share them.
    """

    def __init__(
        self,
        bundle: Bundle,
        catalog: Catalog | None = None,
        *,
        derived: Mapping[str, Any] | None = None,
        limits: Limits = DEFAULT_LIMITS,
    ):
        self.bundle = bundle
        self.catalog = catalog if catalog is not None else Catalog.build(bundle.custom_variables)
        self.limits = limits
        self._values: dict[str, Any] = {}
        self._inert: dict[str, Any] = {}
        self._defaults: dict[str, Any] | None = None
        if derived:
            self._apply(derived, allow_derived=True)

    def _apply(self, values: Mapping[str, Any], allow_derived: bool = False):
        accepted: dict[str, Any] = {}
        inert: dict[str, Any] = {}
        for name, value in values.items():
            descriptor = self.catalog.describe(name)
            if descriptor is None:
                inert[name] = value
                continue
            if descriptor.origin == "derived" and not allow_derived:
                raise ReadOnlyVariableError(name)
            if descriptor.origin != "derived" and allow_derived:
                raise InvalidValueError(name, value, "only derived variables can be set at construction")
            accepted[name] = coerce_value(descriptor, value)
        self._values.update(accepted)
        if accepted:
            self._defaults = None
        self._inert.update(inert)
        if inert:
            logger.debug("Ignoring undeclared keys: %s", ", ".join(sorted(inert)))

    def merge(self, values: Mapping[str, Any] | None = None, /, **kwargs: Any) -> "Assembler":
        """Add or overwrite values; later merges win. Returns self for chaining.

        Each value is checked against its variable's type. Either every value
        in the call is applied or, on InvalidValueError, none is.
        """
        combined = dict(values or {})
        combined.update(kwargs)
        self._apply(combined)
        logger.debug("Merged %d value(s)", len(combined))
        return self

    def _resolve_defaults(self) -> dict[str, Any]:
        if self._defaults is not None:
            return self._defaults
        custom = {d.name: d for d in self.catalog.descriptors("custom")}
        order = resolution_order(dependency_graph(custom.values(), self.limits))
        resolved: dict[str, Any] = {}
        for name in order:
            if name in self._values:
                continue
            descriptor = custom[name]
            default = descriptor.default_value
            if default is None:
                if descriptor.required:
                    raise MissingRequiredVariableError(name)
                resolved[name] = empty_value(descriptor)
            elif is_templated(default):
                text = evaluate(default, {**resolved, **self._values}, self.limits)
                resolved[name] = coerce_value(descriptor, text)
            else:
                resolved[name] = coerce_value(descriptor, default)
        self._defaults = resolved
        logger.debug("Resolved %d custom default(s)", len(resolved))
        return resolved

    def context(self) -> dict[str, Any]:
        """The values templates see: resolved defaults overlaid by merged values."""
        return {**self._resolve_defaults(), **self._values}

    def snapshot(self) -> Mapping[str, Any]:
        """Read-only copy of everything held, undeclared keys included."""
        return MappingProxyType({**self._inert, **(self._defaults or {}), **self._values})

    def evaluate(self, template_id: str) -> RenderedPair:
        template = self.bundle.template(template_id)
        if template is None:
            raise TemplateNotFoundError(template_id, self.bundle.id)
        context = self.context()
        pair = RenderedPair(
            evaluate(template.primary_body, context, self.limits),
            evaluate(template.secondary_body, context, self.limits),
        )
        logger.debug("Rendered '%s' (%d + %d chars)", template_id, len(pair.primary), len(pair.secondary))
        return pair


class ActiveBundle:
    """The process-wide selected bundle, swapped atomically.

    Assemblers capture the (bundle, catalog) pair when they are created, so a
    swap never affects a resolution already in flight.
    """

    def __init__(self, bundle: Bundle, limits: Limits = DEFAULT_LIMITS):
        self.limits = limits
        self._lock = threading.Lock()
        self._current = activate(bundle, limits)

    @property
    def current(self) -> tuple[Bundle, Catalog]:
        with self._lock:
            return self._current

    @property
    def bundle(self) -> Bundle:
        return self.current[0]

    @property
    def catalog(self) -> Catalog:
        return self.current[1]

    def swap(self, bundle: Bundle) -> Bundle:
        """Activate *bundle* in place of the current one.

        All checking happens before the lock is taken; on failure the
        previous bundle stays active.
        """
        pair = activate(bundle, self.limits)
        with self._lock:
            previous = self._current[0].id
            self._current = pair
        logger.info("Switched active bundle from '%s' to '%s'", previous, pair[0].id)
        return pair[0]

    def assembler(self, derived: Mapping[str, Any] | None = None) -> Assembler:
        bundle, catalog = self.current
        return Assembler(bundle, catalog, derived=derived, limits=self.limits)
