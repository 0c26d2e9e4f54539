"""Parser for the prompt template language.

Templates are a constrained subset of Handlebars:

    {{ name }}                      interpolation (never HTML-escaped)
    {{ upper name }}                filter call from a fixed allow-list
    {{#if name}}...{{else}}...{{/if}}
    {{#unless name}}...{{/unless}}
    {{#is name "value"}}...{{/is}}  equality on the textual form
    {{#each name}}...{{/each}}      also {{#take name N}} and {{#last name N}}
    {{! comment }}  {{!-- comment --}}

Inside an iteration block ``{{this}}`` is the current item and ``{{@index}}``
its position. Partials, paths, hash arguments, sub-expressions and
whitespace control are rejected, so nothing outside the flat context is
reachable from a template.
"""

import re
from dataclasses import dataclass, field

from promptpack.errors import ResourceExceededError, TemplateSyntaxError


# Filter name -> (min, max) argument count, the filtered value included.
FILTERS: dict[str, tuple[int, int]] = {
    "upper": (1, 1),
    "lower": (1, 1),
    "capitalize": (1, 1),
    "trim": (1, 1),
    "truncate": (2, 3),
    "default": (2, 2),
    "replace": (3, 3),
    "append": (2, 2),
    "prepend": (2, 2),
    "join": (1, 2),
    "size": (1, 1),
}

# Block name -> argument count.
BLOCKS: dict[str, int] = {
    "if": 1,
    "unless": 1,
    "is": 2,
    "each": 1,
    "take": 2,
    "last": 2,
}

LOOP_BLOCKS = frozenset({"each", "take", "last"})
LOOP_NAMES = frozenset({"this", "@index"})
KEYWORDS = frozenset(FILTERS) | frozenset(BLOCKS) | {"else", "this", "true", "false"}

NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*\Z")
_NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?\Z")
_TOKEN_RE = re.compile(
    r"""\s*(?:"(?P<dq>[^"]*)"|'(?P<sq>[^']*)'|(?P<quote>["'])|(?P<paren>[()])|(?P<word>[^\s"'()]+))"""
)

# Tags that vanish together with their line when nothing else is on it.
_STANDALONE_KINDS = frozenset({"open", "close", "else", "comment"})


def is_reserved(name: str) -> bool:
    """True when *name* belongs to the template language itself."""
    return name in KEYWORDS or name.startswith("__")


@dataclass(frozen=True)
class Limits:
    """Resource ceiling for parsing and rendering one template body."""

    max_body: int = 200_000
    max_tags: int = 5_000
    max_depth: int = 16
    max_arguments: int = 8
    max_steps: int = 100_000
    max_output: int = 1_000_000


DEFAULT_LIMITS = Limits()


# ── Syntax tree ──────────────────────────────────────────


@dataclass(frozen=True)
class Ref:
    """A name used in a tag; variables, filter names and loop names alike."""

    name: str
    line: int
    column: int


@dataclass(frozen=True)
class Literal:
    value: str | int | float | bool


@dataclass
class Text:
    text: str


@dataclass
class Output:
    filter: str | None
    args: list
    line: int
    column: int


@dataclass
class Block:
    name: str
    args: list
    line: int
    column: int
    body: list = field(default_factory=list)
    inverse: list | None = None


@dataclass
class ParsedTemplate:
    nodes: list
    references: list[Ref]
    filters: list[Ref]

    @property
    def names(self) -> list[str]:
        """Referenced variable names, deduplicated, in order of appearance."""
        return list(dict.fromkeys(ref.name for ref in self.references))

    def unknown_filters(self) -> list[Ref]:
        return [ref for ref in self.filters if ref.name not in FILTERS]


@dataclass
class _Tag:
    kind: str
    content: str
    start: int


# ── Parsing ──────────────────────────────────────────────


def position(body: str, offset: int) -> tuple[int, int]:
    """1-based (line, column) of *offset* in *body*."""
    line = body.count("\n", 0, offset) + 1
    column = offset - (body.rfind("\n", 0, offset) + 1) + 1
    return line, column


def _fail(code: str, message: str, body: str, offset: int, **params):
    line, column = position(body, offset)
    raise TemplateSyntaxError(code, message, line, column, **params)


def _scan(body: str) -> tuple[list[str], list[_Tag]]:
    """Split *body* into alternating texts and tags (one more text than tags)."""
    texts: list[str] = []
    tags: list[_Tag] = []
    pos = 0
    while True:
        start = body.find("{{", pos)
        if start == -1:
            texts.append(body[pos:])
            return texts, tags
        texts.append(body[pos:start])

        if body.startswith("{{!--", start):
            end = body.find("--}}", start + 5)
            if end == -1:
                _fail("unclosed_comment", "comment is never closed", body, start)
            tags.append(_Tag("comment", "", start))
            pos = end + 4
            continue
        if body.startswith("{{!", start):
            end = body.find("}}", start + 3)
            if end == -1:
                _fail("unclosed_comment", "comment is never closed", body, start)
            tags.append(_Tag("comment", "", start))
            pos = end + 2
            continue
        if body.startswith("{{{", start):
            end = body.find("}}}", start + 3)
            if end == -1:
                _fail("unclosed_tag", "expected '}}}'", body, start)
            tags.append(_Tag("output", body[start + 3:end].strip(), start))
            pos = end + 3
            continue

        end = body.find("}}", start + 2)
        if end == -1:
            _fail("unclosed_tag", "expected '}}'", body, start)
        content = body[start + 2:end].strip()
        pos = end + 2

        if content.startswith("~") or content.endswith("~"):
            _fail("unsupported_tag", "whitespace control is not supported", body, start, tag="~")
        if not content:
            _fail("empty_tag", "empty tag", body, start)
        head = content[0]
        if head == ">" or content.startswith(("#>", "#*")):
            _fail("partial", "partials are not supported", body, start)
        if head == "^":
            _fail("unsupported_tag", "inverse sections are not supported", body, start, tag="^")
        if head == "#":
            tags.append(_Tag("open", content[1:].strip(), start))
        elif head == "/":
            tags.append(_Tag("close", content[1:].strip(), start))
        elif head == "&":
            tags.append(_Tag("output", content[1:].strip(), start))
        elif content == "else":
            tags.append(_Tag("else", "", start))
        elif content.startswith("else "):
            _fail("unsupported_tag", "chained else is not supported", body, start, tag="else")
        else:
            tags.append(_Tag("output", content, start))


def _strip_standalone(texts: list[str], tags: list[_Tag]) -> list[str]:
    """Remove the lines of block, else and comment tags that stand alone."""
    head_cut = [0] * len(texts)
    tail_cut = [0] * len(texts)
    last = len(tags) - 1
    for i, tag in enumerate(tags):
        if tag.kind not in _STANDALONE_KINDS:
            continue
        left, right = texts[i], texts[i + 1]
        nl = left.rfind("\n")
        if left[nl + 1:].strip() or (nl == -1 and i != 0):
            continue
        nr = right.find("\n")
        if (right if nr == -1 else right[:nr]).strip() or (nr == -1 and i != last):
            continue
        tail_cut[i] = len(left) - (nl + 1)
        head_cut[i + 1] = len(right) if nr == -1 else nr + 1
    return [
        text[head_cut[i]:max(head_cut[i], len(text) - tail_cut[i])]
        for i, text in enumerate(texts)
    ]


def _tokens(content: str, body: str, tag: _Tag) -> list:
    line, column = position(body, tag.start)
    tokens: list = []
    pos = 0
    while pos < len(content):
        m = _TOKEN_RE.match(content, pos)
        if m is None:
            break
        pos = m.end()
        if m.group("dq") is not None:
            tokens.append(Literal(m.group("dq")))
        elif m.group("sq") is not None:
            tokens.append(Literal(m.group("sq")))
        elif m.group("quote"):
            _fail("unterminated_string", "string is never closed", body, tag.start)
        elif m.group("paren"):
            _fail("subexpression", "sub-expressions are not supported", body, tag.start)
        else:
            word = m.group("word")
            if "=" in word:
                _fail("hash_argument", "named arguments are not supported", body, tag.start,
                      name=word.split("=", 1)[0])
            if _NUMBER_RE.match(word):
                tokens.append(Literal(float(word) if "." in word else int(word)))
            elif word in ("true", "false"):
                tokens.append(Literal(word == "true"))
            elif word in LOOP_NAMES:
                tokens.append(Ref(word, line, column))
            elif "." in word or "/" in word or "[" in word:
                _fail("path", "only plain variable names are allowed", body, tag.start, name=word)
            elif NAME_RE.match(word):
                tokens.append(Ref(word, line, column))
            else:
                _fail("bad_name", "invalid name", body, tag.start, name=word)
    return tokens


class _Builder:
    def __init__(self, body: str, limits: Limits):
        self.body = body
        self.limits = limits
        self.root: list = []
        # (block, target list, whether the target is a loop scope)
        self.frames: list[tuple[Block, list, bool]] = []
        self.loops = 0
        self.references: list[Ref] = []
        self.filters: list[Ref] = []

    @property
    def target(self) -> list:
        return self.frames[-1][1] if self.frames else self.root

    def arg(self, token, tag: _Tag):
        if isinstance(token, Ref):
            if token.name in LOOP_NAMES:
                if not self.loops:
                    _fail("loop_name_outside_loop", f"'{token.name}' is only valid inside each, take or last",
                          self.body, tag.start, name=token.name)
            elif is_reserved(token.name):
                _fail("bad_name", f"'{token.name}' is a reserved word", self.body, tag.start, name=token.name)
            else:
                self.references.append(token)
        return token

    def output(self, tag: _Tag):
        tokens = _tokens(tag.content, self.body, tag)
        line, column = position(self.body, tag.start)
        if not tokens:
            _fail("empty_tag", "empty tag", self.body, tag.start)
        head = tokens[0]
        if isinstance(head, Literal):
            _fail("literal_output", "a tag must name a variable or a filter", self.body, tag.start)
        if len(tokens) == 1:
            if head.name in FILTERS:
                _fail("filter_arity", f"filter '{head.name}' needs a value", self.body, tag.start,
                      name=head.name, minimum=FILTERS[head.name][0], maximum=FILTERS[head.name][1], given=0)
            if head.name in BLOCKS:
                _fail("unsupported_tag", f"'{head.name}' must be opened with '#'", self.body, tag.start, tag=head.name)
            self.target.append(Output(None, [self.arg(head, tag)], line, column))
            return

        if head.name in LOOP_NAMES or head.name in BLOCKS:
            _fail("unsupported_tag", f"'{head.name}' cannot take arguments", self.body, tag.start, tag=head.name)
        args = tokens[1:]
        if len(args) > self.limits.max_arguments:
            raise ResourceExceededError("arguments", f"{len(args)} arguments to '{head.name}'")
        if head.name in FILTERS:
            low, high = FILTERS[head.name]
            if not low <= len(args) <= high:
                _fail("filter_arity", f"filter '{head.name}' takes {low} to {high} arguments", self.body, tag.start,
                      name=head.name, minimum=low, maximum=high, given=len(args))
        self.filters.append(head)
        self.target.append(Output(head.name, [self.arg(t, tag) for t in args], line, column))

    def open(self, tag: _Tag):
        tokens = _tokens(tag.content, self.body, tag)
        if not tokens:
            _fail("empty_tag", "block tag without a name", self.body, tag.start)
        head = tokens[0]
        name = head.name if isinstance(head, Ref) else str(head.value)
        if name not in BLOCKS:
            _fail("unknown_block", f"unknown block '{name}'", self.body, tag.start, name=name)
        args = tokens[1:]
        if len(args) != BLOCKS[name]:
            _fail("block_arity", f"'{name}' takes {BLOCKS[name]} argument(s)", self.body, tag.start,
                  name=name, expected=BLOCKS[name], given=len(args))
        if not isinstance(args[0], Ref):
            _fail("block_needs_variable", f"'{name}' needs a variable", self.body, tag.start, name=name)
        if name in ("take", "last"):
            count = args[1]
            if isinstance(count, Literal) and (
                isinstance(count.value, bool) or not isinstance(count.value, int) or count.value < 0
            ):
                _fail("block_count", f"'{name}' needs a whole number", self.body, tag.start, name=name)
        if len(self.frames) >= self.limits.max_depth:
            raise ResourceExceededError("depth", f"blocks nested deeper than {self.limits.max_depth}")

        line, column = position(self.body, tag.start)
        block = Block(name, [self.arg(t, tag) for t in args], line, column)
        self.target.append(block)
        is_loop = name in LOOP_BLOCKS
        self.frames.append((block, block.body, is_loop))
        if is_loop:
            self.loops += 1

    def else_(self, tag: _Tag):
        if not self.frames:
            _fail("else_outside_block", "'else' outside a block", self.body, tag.start)
        block, _, is_loop = self.frames[-1]
        if block.inverse is not None:
            _fail("duplicate_else", f"second 'else' in '{block.name}'", self.body, tag.start, name=block.name)
        block.inverse = []
        if is_loop:
            self.loops -= 1
        self.frames[-1] = (block, block.inverse, False)

    def close(self, tag: _Tag):
        name = tag.content
        if not self.frames:
            _fail("unexpected_close", f"'/{name}' closes nothing", self.body, tag.start, name=name)
        block, _, is_loop = self.frames[-1]
        if name != block.name:
            _fail("mismatched_close", f"expected '/{block.name}', found '/{name}'", self.body, tag.start,
                  expected=block.name, found=name, opened_line=block.line)
        self.frames.pop()
        if is_loop:
            self.loops -= 1

    def finish(self) -> ParsedTemplate:
        if self.frames:
            block = self.frames[-1][0]
            raise TemplateSyntaxError("unclosed_block", f"'{block.name}' is never closed",
                                      block.line, block.column, name=block.name)
        return ParsedTemplate(self.root, self.references, self.filters)


def parse(body: str, limits: Limits = DEFAULT_LIMITS) -> ParsedTemplate:
    """Parse *body* into a syntax tree.

    Raises TemplateSyntaxError for malformed input and ResourceExceededError
    when the body exceeds *limits*. Unknown filters are not an error here;
    they are listed by ``ParsedTemplate.unknown_filters()``.
    """
    if len(body) > limits.max_body:
        raise ResourceExceededError("body", f"{len(body)} characters")
    texts, tags = _scan(body)
    if len(tags) > limits.max_tags:
        raise ResourceExceededError("tags", f"{len(tags)} tags")
    texts = _strip_standalone(texts, tags)

    builder = _Builder(body, limits)
    handlers = {
        "output": builder.output,
        "open": builder.open,
        "close": builder.close,
        "else": builder.else_,
    }
    for text, tag in zip(texts, tags):
        if text:
            builder.target.append(Text(text))
        handler = handlers.get(tag.kind)
        if handler is not None:
            handler(tag)
    if texts[-1]:
        builder.target.append(Text(texts[-1]))
    return builder.finish()
