"""Sandboxed template evaluation on top of pybars.

``promptpack.syntax`` parses and checks a body; this module lowers the tree
into a canonical Handlebars program whose every name is either a context
variable or an internal ``__``-prefixed constant, and runs it with pybars.
Text, literals and filters all go through helpers defined here, so pybars
never escapes output and never sees a construct the parser did not allow.
"""

import logging
import threading
from collections.abc import Callable
from functools import lru_cache
from typing import Any

import pybars

from promptpack.errors import (
    EvalError,
    RenderError,
    ResourceExceededError,
    TemplateSyntaxError,
    UnknownVariableError,
)
from promptpack.syntax import (
    DEFAULT_LIMITS,
    Block,
    Limits,
    Literal,
    Output,
    ParsedTemplate,
    Ref,
    Text,
    parse,
)

logger = logging.getLogger(__name__)

_compiler = pybars.Compiler()
_compile_lock = threading.Lock()

# Prefix for context variables in the generated source; pybars reads some
# plain words (null, undefined) as literals.
_VAR = "__v_"


# ── Textual coercion ─────────────────────────────────────


def to_text(value: Any) -> str:
    """Render a typed context value as prompt text."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple)):
        return ", ".join(to_text(v) for v in value)
    return str(value)


def _sequence(value: Any) -> list:
    if isinstance(value, (list, tuple)):
        return list(value)
    if value is None or value == "":
        return []
    return [value]


def _count(value: Any, filter_name: str) -> int:
    if isinstance(value, bool):
        raise RenderError(f"'{filter_name}' needs a whole number, got {to_text(value)!r}")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise RenderError(f"'{filter_name}' needs a whole number, got {to_text(value)!r}") from None
    if not number.is_integer() or number < 0:
        raise RenderError(f"'{filter_name}' needs a whole number, got {to_text(value)!r}")
    return int(number)


# ── Filters ──────────────────────────────────────────────


def _truncate(value, length, suffix="..."):
    text, suffix = to_text(value), to_text(suffix)
    length = _count(length, "truncate")
    if len(text) <= length:
        return text
    return (text[:max(length - len(suffix), 0)] + suffix)[:length]


def _default(value, fallback):
    if value is None or value is False or value in ("", [], ()):
        return fallback
    return value


def _join(value, separator=", "):
    return to_text(separator).join(to_text(v) for v in _sequence(value))


def _size(value):
    if isinstance(value, (list, tuple)):
        return len(value)
    return len(to_text(value))


_FILTER_FUNCS: dict[str, Callable] = {
    "upper": lambda v: to_text(v).upper(),
    "lower": lambda v: to_text(v).lower(),
    "capitalize": lambda v: to_text(v).capitalize(),
    "trim": lambda v: to_text(v).strip(),
    "truncate": _truncate,
    "default": _default,
    "replace": lambda v, old, new: to_text(v).replace(to_text(old), to_text(new)),
    "append": lambda v, s: to_text(v) + to_text(s),
    "prepend": lambda v, s: to_text(s) + to_text(v),
    "join": _join,
    "size": _size,
}


# ── Lowering to Handlebars ───────────────────────────────


class _Program:
    """A canonical Handlebars source plus the constants it refers to."""

    def __init__(self, parsed: ParsedTemplate):
        self.constants: dict[str, Any] = {}
        self.names = parsed.names
        self.references: dict[str, Ref] = {}
        for ref in parsed.references:
            self.references.setdefault(ref.name, ref)
        self.source = "".join(self._emit(parsed.nodes))

    def _constant(self, value: Any) -> str:
        key = f"__c{len(self.constants)}"
        self.constants[key] = value
        return key

    def _arg(self, token) -> str:
        if isinstance(token, Literal):
            return self._constant(token.value)
        if token.name == "this":
            return "__item"
        if token.name == "@index":
            return "__index"
        return _VAR + token.name

    def _emit(self, nodes: list):
        for node in nodes:
            if isinstance(node, Text):
                yield "{{{__text %s}}}" % self._constant(node.text)
            elif isinstance(node, Output):
                helper = f"__f_{node.filter}" if node.filter else "__value"
                args = " ".join(self._arg(a) for a in node.args)
                yield "{{{%s %s}}}" % (helper, args)
            elif isinstance(node, Block):
                args = " ".join(self._arg(a) for a in node.args)
                yield "{{#__%s %s}}" % (node.name, args)
                yield from self._emit(node.body)
                if node.inverse is not None:
                    yield "{{else}}"
                    yield from self._emit(node.inverse)
                yield "{{/__%s}}" % node.name


@lru_cache(maxsize=512)
def _program(body: str, limits: Limits) -> _Program:
    parsed = parse(body, limits)
    unknown = parsed.unknown_filters()
    if unknown:
        ref = unknown[0]
        raise TemplateSyntaxError("unknown_filter", f"unknown filter '{ref.name}'", ref.line, ref.column,
                                  name=ref.name)
    return _Program(parsed)


@lru_cache(maxsize=512)
def _compiled(source: str) -> Callable:
    with _compile_lock:
        logger.debug("Compiling template program (%d chars)", len(source))
        return _compiler.compile(source)


# ── Rendering ────────────────────────────────────────────


class _Render:
    """Per-call state: the step and output budget, and the helpers using it."""

    def __init__(self, root: dict[str, Any], limits: Limits):
        self.root = root
        self.limits = limits
        self.steps = 0
        self.size = 0

    def step(self):
        self.steps += 1
        if self.steps > self.limits.max_steps:
            raise ResourceExceededError("steps", f"more than {self.limits.max_steps} render steps")

    def emit(self, text: str) -> str:
        self.size += len(text)
        if self.size > self.limits.max_output:
            raise ResourceExceededError("output", f"more than {self.limits.max_output} characters")
        return text

    def helpers(self) -> dict[str, Callable]:
        helpers: dict[str, Callable] = {
            "__text": lambda this, text: self.emit(text),
            "__value": self._value,
            "__if": self._if,
            "__unless": self._unless,
            "__is": self._is,
            "__each": self._each,
            "__take": self._take,
            "__last": self._last,
        }
        for name, func in _FILTER_FUNCS.items():
            helpers[f"__f_{name}"] = self._filter(func)
        return helpers

    def _value(self, this, value):
        self.step()
        return self.emit(to_text(value))

    def _filter(self, func: Callable) -> Callable:
        def helper(this, *args):
            self.step()
            return self.emit(to_text(func(*args)))
        return helper

    @staticmethod
    def _branch(options, key: str, this):
        block = options.get(key)
        result = block(this) if block is not None else None
        return "" if result is None else result

    def _if(self, this, options, value):
        self.step()
        return self._branch(options, "fn", this) if value else self._branch(options, "inverse", this)

    def _unless(self, this, options, value):
        self.step()
        return self._branch(options, "inverse", this) if value else self._branch(options, "fn", this)

    def _is(self, this, options, value, expected):
        self.step()
        if to_text(value) == to_text(expected):
            return self._branch(options, "fn", this)
        return self._branch(options, "inverse", this)

    def _loop(self, this, options, items: list):
        self.step()
        if not items:
            return self._branch(options, "inverse", this)
        result = []
        for index, item in enumerate(items):
            self.step()
            frame = dict(self.root)
            frame["__item"] = item
            frame["__index"] = index
            result.extend(options["fn"](frame))
        return result

    def _each(self, this, options, items):
        return self._loop(this, options, _sequence(items))

    def _take(self, this, options, items, count):
        return self._loop(this, options, _sequence(items)[:_count(count, "take")])

    def _last(self, this, options, items, count):
        count = _count(count, "last")
        return self._loop(this, options, _sequence(items)[-count:] if count else [])


def evaluate(body: str, context: dict[str, Any], limits: Limits = DEFAULT_LIMITS) -> str:
    """Render *body* against *context*.

    Pure function of its inputs. Every name the body references must be a
    key of *context*; a missing one raises UnknownVariableError instead of
    rendering as empty text.
    """
    program = _program(body, limits)
    root: dict[str, Any] = {}
    for name in program.names:
        if name not in context:
            ref = program.references[name]
            raise UnknownVariableError(name, ref.line, ref.column)
        root[_VAR + name] = context[name]
    if not program.source:
        return ""
    root.update(program.constants)

    render = _Render(root, limits)
    compiled = _compiled(program.source)
    try:
        return "".join(compiled(root, helpers=render.helpers()))
    except EvalError:
        raise
    except RecursionError as e:
        raise ResourceExceededError("depth", "template nesting too deep to render") from e
    except Exception as e:
        raise RenderError(f"Template error: {e}") from e
