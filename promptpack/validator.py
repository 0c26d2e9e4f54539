"""Static checks over template bodies and custom variable defaults.

Nothing here raises on a broken template: every problem becomes a finding
in a ValidationResult, and bundle validation collects all of them in one
pass so a bundle can be fixed in one go.
"""

import logging
from collections.abc import Collection, Iterable

from promptpack.builtins import BUILTINS
from promptpack.catalog import Catalog
from promptpack.errors import CircularDefaultError, ResourceExceededError, TemplateSyntaxError
from promptpack.models import (
    Bundle,
    CircularReferenceFinding,
    NameCollisionFinding,
    ResourceFinding,
    SyntaxFinding,
    UnknownFilterFinding,
    UnknownVariableFinding,
    ValidationResult,
    VariableDescriptor,
    is_templated,
)
from promptpack.syntax import BLOCKS, DEFAULT_LIMITS, FILTERS, Limits, is_reserved, parse

logger = logging.getLogger(__name__)

MAX_SUGGESTION_DISTANCE = 2


# ── Suggestions ──────────────────────────────────────────


def levenshtein(a: str, b: str) -> int:
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, 1):
        current = [i]
        for j, cb in enumerate(b, 1):
            current.append(min(
                previous[j] + 1,
                current[j - 1] + 1,
                previous[j - 1] + (ca != cb),
            ))
        previous = current
    return previous[-1]


def suggest(name: str, candidates: Iterable[str]) -> str | None:
    """Closest candidate within MAX_SUGGESTION_DISTANCE, ignoring case."""
    best = None
    best_distance = MAX_SUGGESTION_DISTANCE + 1
    lowered = name.lower()
    for candidate in sorted(candidates):
        distance = levenshtein(lowered, candidate.lower())
        if distance < best_distance:
            best, best_distance = candidate, distance
    return best


# ── Syntax messages ──────────────────────────────────────


def _near(e: TemplateSyntaxError) -> str:
    return f"near line {e.line}, column {e.column}"


def friendly_message(e: TemplateSyntaxError) -> str:
    """Rewrite a parser error for someone who does not know the parser."""
    p = e.params
    near = _near(e)
    messages = {
        "unclosed_tag": f"A tag {near} is missing its closing braces",
        "unclosed_comment": f"The comment starting {near} is never closed",
        "empty_tag": f"There is an empty tag {near}",
        "unclosed_block": f"Missing a closing {{{{/{p.get('name')}}}}} for the '{p.get('name')}' block "
                          f"started near line {e.line}",
        "unexpected_close": f"{{{{/{p.get('name')}}}}} {near} closes a block that was never opened",
        "mismatched_close": f"Found {{{{/{p.get('found')}}}}} {near}, but the '{p.get('expected')}' block "
                            f"started on line {p.get('opened_line')} must be closed first",
        "else_outside_block": f"{{{{else}}}} {near} can only be used inside a block",
        "duplicate_else": f"The '{p.get('name')}' block has a second {{{{else}}}} {near}",
        "unknown_block": f"Unknown block '{p.get('name')}' {near}. Available blocks: {', '.join(BLOCKS)}",
        "block_arity": f"The '{p.get('name')}' block {near} expects {p.get('expected')} value(s), "
                       f"found {p.get('given')}",
        "block_needs_variable": f"The '{p.get('name')}' block {near} must start with a variable name",
        "block_count": f"The '{p.get('name')}' block {near} needs a whole number of items",
        "filter_arity": f"The '{p.get('name')}' filter {near} is used with the wrong number of values",
        "unknown_filter": f"Filter '{p.get('name')}' {near} doesn't exist",
        "literal_output": f"The tag {near} holds only a fixed value. Write plain text outside the braces instead",
        "partial": f"Including other templates is not supported ({near})",
        "unsupported_tag": f"This kind of tag is not supported ({near})",
        "bad_name": f"'{p.get('name')}' {near} is not a valid variable name",
        "path": f"'{p.get('name')}' {near} is not a plain variable name. Dots and slashes are not allowed",
        "hash_argument": f"Named values like '{p.get('name')}=' are not supported ({near})",
        "subexpression": f"Parentheses are not supported inside tags ({near})",
        "unterminated_string": f"A quoted value {near} is missing its closing quote",
        "loop_name_outside_loop": f"'{p.get('name')}' {near} can only be used inside each, take or last",
    }
    return messages.get(e.code, f"Template syntax error {near}: {e.raw_message}")


# ── Single bodies ────────────────────────────────────────


def _check_body(body: str, names: Collection[str], limits: Limits, **where) -> list:
    try:
        parsed = parse(body, limits)
    except TemplateSyntaxError as e:
        return [SyntaxFinding(code=e.code, message=friendly_message(e), line=e.line, column=e.column, **where)]
    except ResourceExceededError as e:
        return [ResourceFinding(limit=e.limit, message=str(e), **where)]

    findings: list = []
    seen: set[str] = set()
    for ref in parsed.references:
        if ref.name in names or ref.name in seen:
            continue
        seen.add(ref.name)
        findings.append(UnknownVariableFinding(
            name=ref.name, suggestion=suggest(ref.name, names), line=ref.line, column=ref.column, **where,
        ))
    seen.clear()
    for ref in parsed.unknown_filters():
        if ref.name in seen:
            continue
        seen.add(ref.name)
        findings.append(UnknownFilterFinding(
            name=ref.name, suggestion=suggest(ref.name, FILTERS), line=ref.line, column=ref.column, **where,
        ))
    return findings


def validate_template(
    body: str,
    catalog: Catalog,
    *,
    template_id: str | None = None,
    part: str | None = None,
    limits: Limits = DEFAULT_LIMITS,
) -> ValidationResult:
    """Check *body* for syntax errors and references missing from *catalog*."""
    findings = _check_body(body, catalog.all_names(), limits, template_id=template_id, part=part)
    return ValidationResult.of(findings)


# ── Default dependencies ─────────────────────────────────


def dependency_graph(
    custom: Iterable[VariableDescriptor], limits: Limits = DEFAULT_LIMITS,
) -> dict[str, list[str]]:
    """Edges from each custom variable to the custom variables its default references."""
    custom = list(custom)
    custom_names = {d.name for d in custom}
    graph: dict[str, list[str]] = {}
    for d in custom:
        edges: list[str] = []
        if is_templated(d.default_value):
            try:
                parsed = parse(d.default_value, limits)
            except (TemplateSyntaxError, ResourceExceededError):
                pass
            else:
                edges = [n for n in parsed.names if n in custom_names]
        graph[d.name] = edges
    return graph


def _walk(graph: dict[str, list[str]]) -> tuple[list[str], list[list[str]]]:
    """Depth-first walk returning (post-order, cycles).

    Node colours live only for this call, so a changed graph is always
    walked from scratch.
    """
    white, gray, black = 0, 1, 2
    color = dict.fromkeys(graph, white)
    order: list[str] = []
    cycles: list[list[str]] = []
    seen_cycles: set[frozenset[str]] = set()

    for root in sorted(graph):
        if color[root] != white:
            continue
        color[root] = gray
        path = [root]
        stack = [(root, iter(graph[root]))]
        while stack:
            node, edges = stack[-1]
            nxt = next(edges, None)
            if nxt is None:
                color[node] = black
                order.append(node)
                stack.pop()
                path.pop()
            elif color[nxt] == white:
                color[nxt] = gray
                path.append(nxt)
                stack.append((nxt, iter(graph[nxt])))
            elif color[nxt] == gray:
                cycle = path[path.index(nxt):]
                key = frozenset(cycle)
                if key not in seen_cycles:
                    seen_cycles.add(key)
                    cycles.append(cycle)
    return order, cycles


def find_cycles(graph: dict[str, list[str]]) -> list[list[str]]:
    return _walk(graph)[1]


def resolution_order(graph: dict[str, list[str]]) -> list[str]:
    """Names ordered so every default comes after the defaults it references."""
    order, cycles = _walk(graph)
    if cycles:
        raise CircularDefaultError(cycles[0])
    return order


# ── Bundles ──────────────────────────────────────────────


def validate_bundle(
    bundle: Bundle,
    builtins: Iterable[VariableDescriptor] = BUILTINS,
    limits: Limits = DEFAULT_LIMITS,
) -> ValidationResult:
    """Validate every template half, every templated default and the default graph."""
    builtins = list(builtins)
    known = {d.name: d.origin for d in builtins}
    findings: list = []
    custom: list[VariableDescriptor] = []
    for d in bundle.custom_variables:
        if d.name in known:
            findings.append(NameCollisionFinding(name=d.name, origin=known[d.name], variable=d.name))
        elif is_reserved(d.name):
            findings.append(NameCollisionFinding(name=d.name, origin="reserved", variable=d.name))
        else:
            custom.append(d)

    names = Catalog.build(custom, builtins).all_names()
    for template in bundle.templates:
        for part in ("primary", "secondary"):
            findings.extend(_check_body(template.body(part), names, limits, template_id=template.id, part=part))
    for d in custom:
        if is_templated(d.default_value):
            findings.extend(_check_body(d.default_value, names, limits, variable=d.name))
    for cycle in find_cycles(dependency_graph(custom, limits)):
        findings.append(CircularReferenceFinding(cycle=cycle))

    if findings:
        logger.warning("Bundle '%s' has %d validation finding(s)", bundle.id, len(findings))
    return ValidationResult.of(findings)
