"""Tests for template evaluation: interpolation, filters, blocks, strictness,
standalone lines, and resource limits."""

import pytest

from promptpack.engine import evaluate, to_text
from promptpack.errors import RenderError, ResourceExceededError, TemplateSyntaxError, UnknownVariableError
from promptpack.syntax import Limits


# ── Interpolation ────────────────────────────────────────


def test_render_simple_variable():
    assert evaluate("Hello {{name}}!", {"name": "World"}) == "Hello World!"


def test_render_plain_text():
    assert evaluate("No tags here.", {}) == "No tags here."


def test_render_empty_body():
    assert evaluate("", {"name": "x"}) == ""


def test_output_is_never_escaped():
    ctx = {"text": "<b>\"Tom & Jerry\"</b>"}
    assert evaluate("{{text}}", ctx) == "<b>\"Tom & Jerry\"</b>"
    assert evaluate("{{{text}}}", ctx) == "<b>\"Tom & Jerry\"</b>"


def test_handlebars_syntax_in_values_is_inert():
    assert evaluate("{{note}}", {"note": "{{secret}}"}) == "{{secret}}"


def test_whitespace_inside_tags():
    assert evaluate("{{ name }}", {"name": "Aria"}) == "Aria"


def test_same_inputs_same_output():
    body = "{{#each items}}{{upper this}} {{/each}}{{count}}"
    ctx = {"items": ["a", "b"], "count": 2}
    assert evaluate(body, ctx) == evaluate(body, ctx)


def test_context_not_mutated():
    ctx = {"items": ["a", "b"], "name": "x"}
    evaluate("{{#each items}}{{this}}{{/each}}{{name}}", ctx)
    assert ctx == {"items": ["a", "b"], "name": "x"}


class TestToText:
    def test_none(self):
        assert to_text(None) == ""

    def test_bool(self):
        assert to_text(True) == "true"
        assert to_text(False) == "false"

    def test_integral_float(self):
        assert to_text(3.0) == "3"
        assert to_text(2.5) == "2.5"

    def test_list(self):
        assert to_text(["courage", "discovery"]) == "courage, discovery"


# ── Strictness ───────────────────────────────────────────


def test_missing_variable_raises():
    with pytest.raises(UnknownVariableError) as exc:
        evaluate("Hi {{nmae}}", {"name": "Aria"})
    assert exc.value.name == "nmae"
    assert exc.value.line == 1
    assert exc.value.column == 4


def test_missing_variable_in_untaken_branch_still_raises():
    with pytest.raises(UnknownVariableError):
        evaluate("{{#if flag}}{{ghost}}{{/if}}", {"flag": False})


def test_first_missing_variable_is_reported():
    with pytest.raises(UnknownVariableError) as exc:
        evaluate("{{a}}\n{{b}}", {})
    assert exc.value.name == "a"


def test_unknown_filter_raises_syntax_error():
    with pytest.raises(TemplateSyntaxError) as exc:
        evaluate("{{shout name}}", {"name": "x"})
    assert exc.value.code == "unknown_filter"
    assert exc.value.params["name"] == "shout"


# ── Filters ──────────────────────────────────────────────


class TestFilters:
    def test_case_filters(self):
        ctx = {"name": "aria stone"}
        assert evaluate("{{upper name}}", ctx) == "ARIA STONE"
        assert evaluate("{{lower name}}", {"name": "ARIA"}) == "aria"
        assert evaluate("{{capitalize name}}", ctx) == "Aria stone"

    def test_trim(self):
        assert evaluate("[{{trim name}}]", {"name": "  x  "}) == "[x]"

    def test_truncate(self):
        ctx = {"text": "Hello world"}
        assert evaluate("{{truncate text 5}}", ctx) == "He..."
        assert evaluate("{{truncate text 20}}", ctx) == "Hello world"
        assert evaluate('{{truncate text 6 "~"}}', ctx) == "Hello~"

    def test_truncate_never_exceeds_length(self):
        ctx = {"text": "Hello world"}
        assert evaluate("{{truncate text 2}}", ctx) == ".."
        assert evaluate("{{truncate text 0}}", ctx) == ""
        assert evaluate('{{truncate text 2 ""}}', ctx) == "He"

    def test_truncate_bad_length(self):
        with pytest.raises(RenderError):
            evaluate("{{truncate text n}}", {"text": "abc", "n": "lots"})

    def test_default(self):
        tpl = '{{default genre "unspecified"}}'
        assert evaluate(tpl, {"genre": ""}) == "unspecified"
        assert evaluate(tpl, {"genre": None}) == "unspecified"
        assert evaluate(tpl, {"genre": "Fantasy"}) == "Fantasy"

    def test_default_from_variable(self):
        assert evaluate("{{default a b}}", {"a": "", "b": "fallback"}) == "fallback"

    def test_replace(self):
        assert evaluate('{{replace name "a" "o"}}', {"name": "Aria"}) == "Ario"

    def test_append_prepend(self):
        ctx = {"name": "Aria"}
        assert evaluate('{{append name "!"}}', ctx) == "Aria!"
        assert evaluate('{{prepend name "Lady "}}', ctx) == "Lady Aria"

    def test_join(self):
        ctx = {"themes": ["courage", "loss"]}
        assert evaluate("{{join themes}}", ctx) == "courage, loss"
        assert evaluate('{{join themes " / "}}', ctx) == "courage / loss"

    def test_size(self):
        assert evaluate("{{size themes}}", {"themes": ["a", "b", "c"]}) == "3"
        assert evaluate("{{size name}}", {"name": "Aria"}) == "4"

    def test_number_argument(self):
        assert evaluate("{{append name 7}}", {"name": "Agent "}) == "Agent 7"


# ── Blocks ───────────────────────────────────────────────


class TestBlocks:
    def test_if_else(self):
        tpl = "{{#if show}}yes{{else}}no{{/if}}"
        assert evaluate(tpl, {"show": True}) == "yes"
        assert evaluate(tpl, {"show": False}) == "no"
        assert evaluate(tpl, {"show": ""}) == "no"
        assert evaluate(tpl, {"show": []}) == "no"

    def test_if_without_else(self):
        assert evaluate("a{{#if show}}b{{/if}}c", {"show": False}) == "ac"

    def test_unless(self):
        tpl = "{{#unless done}}pending{{else}}done{{/unless}}"
        assert evaluate(tpl, {"done": False}) == "pending"
        assert evaluate(tpl, {"done": True}) == "done"

    def test_is(self):
        tpl = '{{#is pov "second"}}you{{else}}they{{/is}}'
        assert evaluate(tpl, {"pov": "second"}) == "you"
        assert evaluate(tpl, {"pov": "third"}) == "they"

    def test_is_compares_text(self):
        assert evaluate("{{#is count 3}}three{{/is}}", {"count": 3.0}) == "three"

    def test_each(self):
        tpl = "{{#each items}}{{this}} {{/each}}"
        assert evaluate(tpl, {"items": ["a", "b", "c"]}) == "a b c "

    def test_each_index(self):
        tpl = "{{#each items}}{{@index}}={{this}} {{/each}}"
        assert evaluate(tpl, {"items": ["a", "b"]}) == "0=a 1=b "

    def test_each_else_on_empty(self):
        tpl = "{{#each items}}{{this}}{{else}}none{{/each}}"
        assert evaluate(tpl, {"items": []}) == "none"
        assert evaluate(tpl, {"items": ""}) == "none"

    def test_each_scalar_is_single_item(self):
        assert evaluate("{{#each items}}[{{this}}]{{/each}}", {"items": "solo"}) == "[solo]"

    def test_each_sees_outer_variables(self):
        tpl = "{{#each items}}{{this}}@{{place}} {{/each}}"
        assert evaluate(tpl, {"items": ["a", "b"], "place": "inn"}) == "a@inn b@inn "

    def test_nested_each(self):
        tpl = "{{#each outer}}{{#each inner}}{{this}}{{/each}}|{{/each}}"
        assert evaluate(tpl, {"outer": [1, 2], "inner": ["x", "y"]}) == "xy|xy|"

    def test_filter_on_loop_item(self):
        assert evaluate("{{#each items}}{{upper this}}{{/each}}", {"items": ["a", "b"]}) == "AB"

    def test_take(self):
        tpl = "{{#take items 2}}{{this}};{{/take}}"
        assert evaluate(tpl, {"items": ["a", "b", "c"]}) == "a;b;"

    def test_take_with_variable_count(self):
        tpl = "{{#take items n}}{{this}};{{/take}}"
        assert evaluate(tpl, {"items": ["a", "b", "c"], "n": 1}) == "a;"

    def test_take_bad_count(self):
        with pytest.raises(RenderError):
            evaluate("{{#take items n}}{{this}}{{/take}}", {"items": ["a"], "n": "many"})

    def test_last(self):
        tpl = "{{#last items 2}}{{this}};{{/last}}"
        assert evaluate(tpl, {"items": ["a", "b", "c"]}) == "b;c;"

    def test_last_zero(self):
        assert evaluate("{{#last items 0}}{{this}}{{else}}-{{/last}}", {"items": ["a"]}) == "-"


# ── Standalone lines ─────────────────────────────────────


class TestStandaloneLines:
    def test_block_lines_removed(self):
        tpl = "{{#if a}}\nyes\n{{/if}}\ndone"
        assert evaluate(tpl, {"a": True}) == "yes\ndone"
        assert evaluate(tpl, {"a": False}) == "done"

    def test_indented_block_lines_removed(self):
        tpl = "start\n  {{#if a}}\n  yes\n  {{/if}}\nend"
        assert evaluate(tpl, {"a": True}) == "start\n  yes\nend"

    def test_comment_line_removed(self):
        assert evaluate("a\n{{! note }}\nb", {}) == "a\nb"
        assert evaluate("a\n{{!-- {{note}} --}}\nb", {}) == "a\nb"

    def test_inline_block_keeps_text(self):
        assert evaluate("x {{#if a}}y{{/if}} z", {"a": True}) == "x y z"

    def test_output_tag_line_kept(self):
        assert evaluate("a\n{{name}}\nb", {"name": ""}) == "a\n\nb"


# ── Limits ───────────────────────────────────────────────


class TestLimits:
    def test_body_limit(self):
        with pytest.raises(ResourceExceededError) as exc:
            evaluate("x" * 20, {}, Limits(max_body=10))
        assert exc.value.limit == "body"

    def test_depth_limit(self):
        tpl = "{{#if a}}{{#if a}}{{#if a}}x{{/if}}{{/if}}{{/if}}"
        with pytest.raises(ResourceExceededError) as exc:
            evaluate(tpl, {"a": True}, Limits(max_depth=2))
        assert exc.value.limit == "depth"

    def test_step_limit(self):
        with pytest.raises(ResourceExceededError) as exc:
            evaluate("{{#each items}}{{this}}{{/each}}", {"items": list(range(100))}, Limits(max_steps=10))
        assert exc.value.limit == "steps"

    def test_output_limit(self):
        with pytest.raises(ResourceExceededError) as exc:
            evaluate("{{name}}", {"name": "far too long"}, Limits(max_output=5))
        assert exc.value.limit == "output"


# ── Names and caching ────────────────────────────────────


def test_variables_named_like_literals():
    ctx = {"null": "v", "undefined": "u"}
    tpl = "[{{null}}|{{undefined}}] {{#if null}}yes{{else}}no{{/if}}"
    assert evaluate(tpl, ctx) == "[v|u] yes"


def test_literal_named_variable_in_loop_and_filter():
    ctx = {"null": ["a", "b"], "undefined": "x"}
    tpl = "{{#each null}}{{this}}{{undefined}} {{/each}}{{upper undefined}}"
    assert evaluate(tpl, ctx) == "ax bx X"


def test_compile_cache_is_bounded():
    from promptpack.engine import _compiled, _program

    assert _compiled.cache_info().maxsize == _program.cache_info().maxsize == 512
