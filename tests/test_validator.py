"""Tests for static validation: unknown names with suggestions, syntax
findings, default dependency cycles and whole-bundle checks."""

import pytest

from promptpack.bundles import default_bundle
from promptpack.catalog import Catalog
from promptpack.errors import CircularDefaultError
from promptpack.models import Bundle, Template, VariableDescriptor
from promptpack.syntax import Limits
from promptpack.validator import (
    dependency_graph,
    find_cycles,
    levenshtein,
    resolution_order,
    suggest,
    validate_bundle,
    validate_template,
)


def _bundle(templates=(), custom=()) -> Bundle:
    return Bundle(id="test", name="Test", templates=list(templates), custom_variables=list(custom))


# ── Suggestions ──────────────────────────────────────────


def test_levenshtein():
    assert levenshtein("kitten", "sitting") == 3
    assert levenshtein("", "abc") == 3
    assert levenshtein("same", "same") == 0


def test_suggest_close_name():
    assert suggest("protagonistNam", ["protagonistName", "genre"]) == "protagonistName"


def test_suggest_ignores_case():
    assert suggest("GENRE", ["genre", "tone"]) == "genre"


def test_suggest_nothing_close():
    assert suggest("xyz", ["protagonistName"]) is None


def test_suggest_tie_prefers_alphabetical():
    assert suggest("cat", ["cut", "bat"]) == "bat"


# ── validate_template ────────────────────────────────────


def test_valid_template():
    result = validate_template("Hello {{protagonistName}}, {{upper genre}}", Catalog.build())
    assert result.valid
    assert result.errors == []


def test_unknown_variable_with_suggestion():
    result = validate_template("Hi {{protagonistNam}}", Catalog.build())
    assert not result.valid
    [finding] = result.errors
    assert finding.kind == "unknown_variable"
    assert finding.name == "protagonistNam"
    assert finding.suggestion == "protagonistName"
    assert (finding.line, finding.column) == (1, 4)


def test_unknown_variable_reported_once():
    result = validate_template("{{ghost}} {{ghost}}", Catalog.build())
    assert len(result.errors) == 1


def test_unknown_filter_with_suggestion():
    result = validate_template("{{uper genre}}", Catalog.build())
    [finding] = result.errors
    assert finding.kind == "unknown_filter"
    assert finding.suggestion == "upper"


def test_syntax_finding_message():
    result = validate_template("{{#if genre}}\nno close", Catalog.build(), template_id="t", part="primary")
    [finding] = result.errors
    assert finding.kind == "syntax"
    assert finding.code == "unclosed_block"
    assert finding.message == "Missing a closing {{/if}} for the 'if' block started near line 1"
    assert finding.template_id == "t"
    assert finding.part == "primary"


def test_mismatched_close_message():
    result = validate_template("{{#each themes}}\n{{this}}\n{{/if}}", Catalog.build())
    message = result.errors[0].message
    assert "{{/if}}" in message
    assert "'each' block started on line 1" in message


def test_resource_finding():
    result = validate_template("x" * 50, Catalog.build(), limits=Limits(max_body=10))
    [finding] = result.errors
    assert finding.kind == "resource"
    assert finding.limit == "body"


def test_custom_variable_known():
    catalog = Catalog.build([VariableDescriptor(name="mood")])
    assert validate_template("{{mood}}", catalog).valid


# ── Dependency graph ─────────────────────────────────────


def test_dependency_graph_edges_only_to_custom():
    custom = [
        VariableDescriptor(name="greeting", default_value="Hi {{protagonistName}} {{title}}"),
        VariableDescriptor(name="title", default_value="Sir"),
    ]
    assert dependency_graph(custom) == {"greeting": ["title"], "title": []}


def test_two_variable_cycle():
    graph = {"alpha": ["beta"], "beta": ["alpha"]}
    assert find_cycles(graph) == [["alpha", "beta"]]
    with pytest.raises(CircularDefaultError) as exc:
        resolution_order(graph)
    assert exc.value.cycle == ["alpha", "beta"]


def test_self_cycle():
    assert find_cycles({"a": ["a"]}) == [["a"]]


def test_resolution_order_dependencies_first():
    graph = {"a": ["b"], "b": ["c"], "c": []}
    order = resolution_order(graph)
    assert order.index("c") < order.index("b") < order.index("a")


# ── validate_bundle ──────────────────────────────────────


def test_default_bundle_is_valid():
    result = validate_bundle(default_bundle())
    assert result.valid, result.errors


def test_bundle_checks_both_halves():
    bundle = _bundle([Template(id="t", primary_body="{{ghostA}}", secondary_body="{{ghostB}}")])
    result = validate_bundle(bundle)
    assert [(f.part, f.name) for f in result.errors] == [("primary", "ghostA"), ("secondary", "ghostB")]
    assert all(f.template_id == "t" for f in result.errors)


def test_bundle_circular_defaults():
    bundle = _bundle(custom=[
        VariableDescriptor(name="alpha", default_value="{{beta}}"),
        VariableDescriptor(name="beta", default_value="{{alpha}}"),
    ])
    result = validate_bundle(bundle)
    assert not result.valid
    [finding] = result.errors
    assert finding.kind == "circular_reference"
    assert finding.cycle == ["alpha", "beta"]


def test_bundle_name_collision():
    bundle = _bundle(custom=[VariableDescriptor(name="genre"), VariableDescriptor(name="each")])
    result = validate_bundle(bundle)
    collisions = {(f.name, f.origin) for f in result.errors}
    assert collisions == {("genre", "derived"), ("each", "reserved")}


def test_bundle_checks_templated_defaults():
    bundle = _bundle(custom=[VariableDescriptor(name="intro", default_value="Hi {{protagnistName}}")])
    [finding] = validate_bundle(bundle).errors
    assert finding.variable == "intro"
    assert finding.suggestion == "protagonistName"


def test_bundle_reports_all_findings():
    bundle = _bundle(
        templates=[
            Template(id="a", primary_body="{{#if x}}"),
            Template(id="b", primary_body="{{nope}}"),
        ],
    )
    result = validate_bundle(bundle)
    assert {f.template_id for f in result.errors} == {"a", "b"}


def test_custom_names_like_literals_validate_and_render():
    from promptpack.assembler import Assembler

    bundle = _bundle(
        [Template(id="t", primary_body="Hero: {{undefined}}|{{null}}")],
        [VariableDescriptor(name="undefined", required=True), VariableDescriptor(name="null", required=True)],
    )
    assert validate_bundle(bundle).valid
    pair = Assembler(bundle).merge(undefined="Aria", null="Bo").evaluate("t")
    assert pair.primary == "Hero: Aria|Bo"
