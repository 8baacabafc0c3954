"""Positional validation of Handlebars template text.

The template library locates parse failures only roughly, and accepts a few
constructs it then renders wrongly (chained ``else``, escaped ``\\{{``), so
every template is scanned here first. ``check_template`` walks the
``{{...}}`` tags, tokenizes each expression and tracks block nesting; the
first problem is raised as a TemplateSyntaxError carrying the 1-indexed
line and column of the offending token.

// [LAW:single-enforcer] Offsets become (line, column) only through position_of.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from muxfmt.errors import TemplateSyntaxError
from muxfmt.helpers import HELPERS


class TagKind(Enum):
    VARIABLE = "variable"
    RAW = "raw"
    SECTION = "section"
    INVERTED = "inverted"
    CLOSE = "close"
    ELSE = "else"
    PARTIAL = "partial"
    COMMENT = "comment"


_SIGILS = {
    "#": TagKind.SECTION,
    "^": TagKind.INVERTED,
    "/": TagKind.CLOSE,
    ">": TagKind.PARTIAL,
    "&": TagKind.RAW,
}

_SEGMENT = r"(?:@?[A-Za-z_$][\w$\-]*|\[[^\]]*\])"

_TOKEN_RE = re.compile(
    r"""
      (?P<ws>\s+)
    | (?P<string>"(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*')
    | (?P<number>-?\d+(?:\.\d+)?(?![\w.]))
    | (?P<key>[A-Za-z_]\w+)=
    | (?P<path>(?:\.\./)*(?:{seg}|\.\.|\.)(?:[./]{seg})*)
    | (?P<open>\()
    | (?P<close>\))
    """.format(seg=_SEGMENT),
    re.VERBOSE,
)

_VALUE_KINDS = ("string", "number", "path", "open")

# Block and closing-tag names are single symbols; the library has no dotted form.
_BLOCK_NAME_RE = re.compile(r"\[?[\w@\-]+\]?")

# Block helpers and the number of positional arguments they take.
BLOCK_HELPERS: dict[str, int] = {
    "if": 1,
    "each": 1,
    "with": 1,
    **{spec.name: spec.arity for spec in HELPERS.values() if spec.block},
}


@dataclass(frozen=True)
class Token:
    kind: str
    text: str
    offset: int


@dataclass(frozen=True)
class Tag:
    """One ``{{...}}`` construct. Offsets index into the template string.

    ``arguments`` counts the top-level positional arguments after the name.
    """

    kind: TagKind
    name: str
    expression: str
    offset: int
    end: int
    arguments: int = 0


def position_of(template: str, offset: int) -> tuple[int, int]:
    """1-indexed (line, column) of a string offset."""
    line = template.count("\n", 0, offset) + 1
    column = offset - (template.rfind("\n", 0, offset) + 1) + 1
    return line, column


def _error(template: str, offset: int, message: str) -> TemplateSyntaxError:
    line, column = position_of(template, offset)
    return TemplateSyntaxError(message, line, column)


# ─── Expressions ──────────────────────────────────────────────────────────────


def tokenize(template: str, start: int, end: int) -> list[Token]:
    """Tokenize ``template[start:end]``, dropping whitespace."""
    tokens: list[Token] = []
    pos = start
    while pos < end:
        match = _TOKEN_RE.match(template, pos, end)
        if match is None:
            char = template[pos]
            if char in "\"'":
                raise _error(template, pos, "unterminated string literal")
            raise _error(template, pos, f"unexpected character {char!r}")
        kind = match.lastgroup
        if kind != "ws":
            text = match.group("key") if kind == "key" else match.group(0)
            tokens.append(Token(kind, text, pos))
        pos = match.end()
    return tokens


class _ExpressionParser:
    """Recursive-descent check of ``head arg* key=value*`` with subexpressions."""

    def __init__(self, template: str, tokens: list[Token], tag_offset: int):
        self.template = template
        self.tokens = tokens
        self.tag_offset = tag_offset
        self.index = 0

    def _peek(self) -> Token | None:
        return self.tokens[self.index] if self.index < len(self.tokens) else None

    def _next(self) -> Token:
        token = self.tokens[self.index]
        self.index += 1
        return token

    def parse(self, *, literal_head: bool) -> tuple[str, int]:
        """Validate a whole tag expression. Returns its head and positional argument count."""
        head, arguments = self._call(literal_head=literal_head, opener=None)
        trailing = self._peek()
        if trailing is not None:
            raise _error(self.template, trailing.offset, f"unexpected {trailing.text!r}")
        return head, arguments

    def _call(self, *, literal_head: bool, opener: Token | None) -> tuple[str, int]:
        token = self._peek()
        if token is None or token.kind == "close":
            where = opener.offset if opener is not None else self.tag_offset
            what = "empty subexpression" if opener is not None else "missing expression"
            raise _error(self.template, where, what)
        allowed = ("path", "string", "number") if literal_head else ("path",)
        if token.kind not in allowed:
            raise _error(self.template, token.offset, f"expected a name, found {token.text!r}")
        head = self._next().text
        arguments = 0
        seen_hash = False
        while True:
            token = self._peek()
            if token is None:
                if opener is not None:
                    raise _error(self.template, opener.offset, "unclosed subexpression")
                return head, arguments
            if token.kind == "close":
                if opener is None:
                    raise _error(self.template, token.offset, "unexpected ')'")
                self._next()
                return head, arguments
            if token.kind == "key":
                self._next()
                seen_hash = True
                value = self._peek()
                if value is None or value.kind not in _VALUE_KINDS:
                    raise _error(self.template, token.offset, f"missing value for {token.text!r}")
                self._value()
                continue
            if seen_hash:
                raise _error(self.template, token.offset, "positional argument after hash argument")
            self._value()
            arguments += 1

    def _value(self) -> None:
        token = self._next()
        if token.kind == "open":
            self._call(literal_head=False, opener=token)


# ─── Tags ─────────────────────────────────────────────────────────────────────


def _closing(template: str, start: int) -> tuple[str, int, int, TagKind | None]:
    """Find the end of the tag opening at ``start``.

    Returns (closer, content_start, content_end, forced kind).
    """
    if template.startswith("{{!--", start):
        closer, content_start, kind = "--}}", start + 5, TagKind.COMMENT
    elif template.startswith("{{!", start):
        closer, content_start, kind = "}}", start + 3, TagKind.COMMENT
    elif template.startswith("{{{", start):
        closer, content_start, kind = "}}}", start + 3, TagKind.RAW
    else:
        closer, content_start, kind = "}}", start + 2, None
    content_end = template.find(closer, content_start)
    if content_end == -1:
        what = "comment" if kind is TagKind.COMMENT else "tag"
        raise _error(template, start, f"unterminated {what}: missing {closer!r}")
    return closer, content_start, content_end, kind


def _block_name(template: str, token: Token) -> str:
    if not _BLOCK_NAME_RE.fullmatch(token.text):
        raise _error(template, token.offset, f"block name must be a plain name, got {token.text!r}")
    return token.text


def _read_tag(template: str, start: int) -> Tag:
    closer, content_start, content_end, kind = _closing(template, start)
    end = content_end + len(closer)
    if kind is TagKind.COMMENT:
        return Tag(kind, "", template[content_start:content_end], start, end)

    # whitespace control markers
    if template.startswith("~", content_start):
        content_start += 1
    if content_end > content_start and template[content_end - 1] == "~":
        content_end -= 1
    # {{~{name}~}}
    if kind is None and template.startswith("{", content_start) and template[content_end - 1:content_end] == "}":
        kind = TagKind.RAW
        content_start += 1
        content_end -= 1

    sigil = template[content_start:content_start + 1]
    if kind is None and sigil in _SIGILS:
        kind = _SIGILS[sigil]
        content_start += 1
    kind = kind or TagKind.VARIABLE

    expression = template[content_start:content_end].strip()
    if kind is TagKind.INVERTED and not expression:
        return Tag(TagKind.ELSE, "else", "", start, end)
    if kind is TagKind.VARIABLE and expression.split(None, 1)[:1] == ["else"]:
        if expression != "else":
            raise _error(template, start, "chained 'else' is not supported; nest another block instead")
        return Tag(TagKind.ELSE, "else", "", start, end)
    if not expression:
        message = "empty tag" if kind in (TagKind.VARIABLE, TagKind.RAW) else f"missing name after {sigil!r}"
        raise _error(template, start, message)

    tokens = tokenize(template, content_start, content_end)
    if kind is TagKind.CLOSE:
        if len(tokens) != 1 or tokens[0].kind != "path":
            bad = tokens[1] if len(tokens) > 1 and tokens[0].kind == "path" else tokens[0]
            raise _error(template, bad.offset, "malformed closing tag")
        if template[content_start:content_end] != tokens[0].text:
            raise _error(template, start, "malformed closing tag: no spaces allowed in '{{/name}}'")
        return Tag(kind, _block_name(template, tokens[0]), expression, start, end)

    literal_head = kind in (TagKind.VARIABLE, TagKind.RAW, TagKind.PARTIAL)
    head, arguments = _ExpressionParser(template, tokens, start).parse(literal_head=literal_head)
    if kind in (TagKind.SECTION, TagKind.INVERTED):
        head = _block_name(template, tokens[0])
    return Tag(kind, head, expression, start, end, arguments)


def _check_block_helper(template: str, tag: Tag) -> None:
    expected = BLOCK_HELPERS.get(tag.name)
    if expected is None:
        return
    if tag.kind in (TagKind.VARIABLE, TagKind.RAW):
        raise _error(template, tag.offset, f"{tag.name!r} is a block helper; write {{{{#{tag.name} ...}}}}")
    if tag.kind in (TagKind.SECTION, TagKind.INVERTED) and tag.arguments != expected:
        raise _error(template, tag.offset, f"{tag.name!r} expects {expected} argument(s), got {tag.arguments}")


def scan_tags(template: str) -> list[Tag]:
    """Split a template into its tags, validating each expression."""
    tags: list[Tag] = []
    pos = template.find("{{")
    while pos != -1:
        if pos > 0 and template[pos - 1] == "\\":
            raise _error(template, pos - 1, "escaped '{{' is not supported")
        tag = _read_tag(template, pos)
        _check_block_helper(template, tag)
        tags.append(tag)
        pos = template.find("{{", tag.end)
    return tags


def check_template(template: str) -> list[Tag]:
    """Validate tags and block nesting. Raises TemplateSyntaxError on the first problem."""
    tags = scan_tags(template)
    stack: list[Tag] = []
    for tag in tags:
        if tag.kind in (TagKind.SECTION, TagKind.INVERTED):
            stack.append(tag)
        elif tag.kind is TagKind.CLOSE:
            if not stack:
                raise _error(template, tag.offset, f"unexpected closing tag {tag.name!r}")
            opened = stack.pop()
            if opened.name != tag.name:
                line, column = position_of(template, opened.offset)
                raise _error(
                    template,
                    tag.offset,
                    f"closing tag {tag.name!r} does not match block {opened.name!r} opened at {line}:{column}",
                )
        elif tag.kind is TagKind.ELSE and not stack:
            raise _error(template, tag.offset, "'else' outside of a block")
    if stack:
        unclosed = stack[-1]
        raise _error(template, unclosed.offset, f"unclosed block {unclosed.name!r}")
    return tags
