"""Shared pytest fixtures: a deterministic script parser and markup builder.

Neither fixture needs tree-sitter, so the template core can be exercised
without the optional ``parser`` extras installed.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
import html
import re

import pytest
import structlog

from sfcparse.markup import (
    ElementLocation,
    MarkupAttribute,
    MarkupComment,
    MarkupDocument,
    MarkupElement,
    MarkupEntry,
    MarkupFragment,
    MarkupLocation,
    MarkupNode,
    MarkupText,
)
from sfcparse.script import ScriptNode, ScriptProgram, ScriptSyntaxError
from sfcparse.template import LineIndex, SourceRange, Token, TokenKind


@pytest.fixture(autouse=True)
def quiet_structlog():
    """Keep structlog output off stdout so CLI output stays parseable."""

    structlog.configure(logger_factory=structlog.ReturnLoggerFactory())
    yield
    structlog.reset_defaults()


# ----------------------------------------------------------------------------
# Fake script parser
# ----------------------------------------------------------------------------

_SCRIPT_TOKEN = re.compile(
    r"""
    (?P<space>\s+)
    |(?P<line>//[^\n]*)
    |(?P<block>/\*.*?\*/)
    |(?P<number>\d+(?:\.\d+)?)
    |(?P<string>"[^"\n]*"|'[^'\n]*')
    |(?P<name>[A-Za-z_$][\w$]*)
    |(?P<punct>===|!==|==|!=|<=|>=|&&|\|\||\+\+|--|[-+*/%<>!?:.,()\[\]{};=])
    """,
    re.VERBOSE | re.DOTALL,
)

_BINARY_POWER = {
    "||": 1,
    "&&": 2,
    "==": 3,
    "!=": 3,
    "===": 3,
    "!==": 3,
    "<": 4,
    ">": 4,
    "<=": 4,
    ">=": 4,
    "+": 5,
    "-": 5,
    "*": 6,
    "/": 6,
    "%": 6,
}
_KEYWORD_KINDS = {
    "true": TokenKind.BOOLEAN,
    "false": TokenKind.BOOLEAN,
    "null": TokenKind.NULL,
    "typeof": TokenKind.KEYWORD,
    "new": TokenKind.KEYWORD,
    "this": TokenKind.KEYWORD,
}


@dataclass
class FakeScriptParser:
    """Tiny expression-statement parser with tree-sitter shaped nodes.

    Supports identifiers, numbers, strings, binary/unary operators, member
    access, calls and parentheses; anything else raises
    :class:`ScriptSyntaxError`. ``calls`` records every input it saw.
    """

    calls: list[str] = field(default_factory=list)

    def __call__(self, text: str) -> ScriptProgram:
        self.calls.append(text)
        return _FakeRun(text).program()


class _FakeRun:
    def __init__(self, text: str) -> None:
        self.text = text
        self.index = LineIndex(text)
        self.tokens: list[Token] = []
        self.comments: list[Token] = []
        self._tokenize()
        self.pos = 0

    # -- lexing ---------------------------------------------------------
    def _tokenize(self) -> None:
        offset = 0
        while offset < len(self.text):
            match = _SCRIPT_TOKEN.match(self.text, offset)
            if match is None:
                raise self._error(offset, f"Unexpected character {self.text[offset]!r}")
            start, end = match.span()
            group = match.lastgroup
            if group == "line":
                self.comments.append(self._token(TokenKind.LINE, start, end, self.text[start + 2 : end]))
            elif group == "block":
                self.comments.append(self._token(TokenKind.BLOCK, start, end, self.text[start + 2 : end - 2]))
            elif group == "number":
                self.tokens.append(self._token(TokenKind.NUMERIC, start, end))
            elif group == "string":
                self.tokens.append(self._token(TokenKind.STRING, start, end))
            elif group == "name":
                kind = _KEYWORD_KINDS.get(match.group(), TokenKind.IDENTIFIER)
                self.tokens.append(self._token(kind, start, end))
            elif group == "punct":
                self.tokens.append(self._token(TokenKind.PUNCTUATOR, start, end))
            offset = end

    def _token(self, kind: TokenKind, start: int, end: int, value: str | None = None) -> Token:
        return Token.from_source(kind, self.text, start, end, index=self.index, value=value)

    def _error(self, offset: int, message: str) -> ScriptSyntaxError:
        position = self.index.position(offset)
        return ScriptSyntaxError(
            message=message,
            index=offset,
            line=position.line,
            column=position.column,
        )

    # -- parsing --------------------------------------------------------
    def program(self) -> ScriptProgram:
        body: list[ScriptNode] = []
        while self.pos < len(self.tokens):
            if self._peek_value() == ";":
                self.pos += 1
                continue
            first = self.pos
            expression = self._expression(0)
            if self._peek_value() == ";":
                self.pos += 1
            body.append(self._node("expression_statement", first, [expression]))
        return ScriptProgram(
            body=tuple(body),
            tokens=tuple(self.tokens),
            comments=tuple(self.comments),
            range=SourceRange(0, len(self.text)),
        )

    def _peek_value(self) -> str | None:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos].value
        return None

    def _expect(self, value: str) -> None:
        if self._peek_value() != value:
            offset = self.tokens[self.pos].start if self.pos < len(self.tokens) else len(self.text)
            raise self._error(offset, f"Expected {value!r}")
        self.pos += 1

    def _node(self, type_: str, first: int, children: list[ScriptNode]) -> ScriptNode:
        start = self.tokens[first].start
        end = self.tokens[self.pos - 1].end
        return ScriptNode(
            type=type_,
            range=SourceRange(start, end),
            loc=self.index.location(start, end),
            raw=self.text[start:end],
            children=tuple(children),
        )

    def _expression(self, min_power: int) -> ScriptNode:
        first = self.pos
        left = self._unary()
        while True:
            power = _BINARY_POWER.get(self._peek_value() or "")
            if power is None or power <= min_power:
                return left
            self.pos += 1
            right = self._expression(power)
            left = self._node("binary_expression", first, [left, right])

    def _unary(self) -> ScriptNode:
        first = self.pos
        if self._peek_value() in {"!", "-", "+", "typeof"}:
            self.pos += 1
            operand = self._unary()
            return self._node("unary_expression", first, [operand])
        return self._postfix()

    def _postfix(self) -> ScriptNode:
        first = self.pos
        node = self._primary()
        while True:
            value = self._peek_value()
            if value == ".":
                self.pos += 1
                if self.pos >= len(self.tokens) or self.tokens[self.pos].kind is not TokenKind.IDENTIFIER:
                    raise self._error(self.tokens[self.pos - 1].end, "Expected property name")
                self.pos += 1
                prop = self._node("property_identifier", self.pos - 1, [])
                node = self._node("member_expression", first, [node, prop])
            elif value == "(":
                args_first = self.pos
                self.pos += 1
                arguments: list[ScriptNode] = []
                while self._peek_value() != ")":
                    arguments.append(self._expression(0))
                    if self._peek_value() == ",":
                        self.pos += 1
                    elif self._peek_value() != ")":
                        self._expect(")")
                self._expect(")")
                args = self._node("arguments", args_first, arguments)
                node = self._node("call_expression", first, [node, args])
            else:
                return node

    def _primary(self) -> ScriptNode:
        if self.pos >= len(self.tokens):
            raise self._error(len(self.text), "Unexpected end of input")
        token = self.tokens[self.pos]
        first = self.pos
        if token.value == "(":
            self.pos += 1
            inner = self._expression(0)
            self._expect(")")
            return self._node("parenthesized_expression", first, [inner])
        simple = {
            TokenKind.IDENTIFIER: "identifier",
            TokenKind.NUMERIC: "number",
            TokenKind.STRING: "string",
            TokenKind.BOOLEAN: token.value,
            TokenKind.NULL: "null",
        }.get(token.kind)
        if simple is None and token.value == "this":
            simple = "this"
        if simple is None:
            raise self._error(token.start, f"Unexpected token {token.value!r}")
        self.pos += 1
        return self._node(simple, first, [])


@pytest.fixture
def parse_script() -> FakeScriptParser:
    """Return a fresh deterministic script parser."""

    return FakeScriptParser()


# ----------------------------------------------------------------------------
# Fake markup builder
# ----------------------------------------------------------------------------

_MARKUP_TOKEN = re.compile(
    r"""<!--.*?-->|</[^>]*>|<[A-Za-z](?:"[^"]*"|'[^']*'|[^'">])*>|[^<]+|<""",
    re.DOTALL,
)
_TAG_NAME = re.compile(r"<([^\s/>]+)")
_ATTRIBUTE = re.compile(
    r"""([^\s"'>/=]+)(?:\s*=\s*("[^"]*"|'[^']*'|[^\s"'=<>`]+))?"""
)
_VOID_TAGS = frozenset({"br", "hr", "img", "input", "link", "meta"})


@dataclass
class _OpenElement:
    name: str
    start: int
    start_tag: MarkupLocation | None
    attributes: tuple[MarkupAttribute, ...] = ()
    children: list[MarkupEntry] = field(default_factory=list)


class FakeMarkupBuilder:
    """Regex-driven stand-in for the tree-sitter markup builder.

    Only understands well-formed markup without ``<`` inside text, which is
    all the transformer tests need.
    """

    def __init__(self, container_tags: tuple[str, ...] = ("template",)) -> None:
        self.container_tags = container_tags

    def __call__(self, source: str) -> MarkupDocument:
        index = LineIndex(source)

        def location(start: int, end: int) -> MarkupLocation:
            position = index.position(start)
            return MarkupLocation(start, end, position.line, position.column + 1)

        def close(open_: _OpenElement, end_tag: MarkupLocation | None) -> MarkupElement:
            if end_tag is not None:
                end = end_tag.end_offset
            elif open_.children:
                end = open_.children[-1].location.end_offset
            else:
                end = open_.start_tag.end_offset
            base = location(open_.start, end)
            element_location = ElementLocation(
                base.start_offset,
                base.end_offset,
                base.line,
                base.col,
                start_tag=open_.start_tag,
                end_tag=end_tag,
            )
            children = tuple(open_.children)
            if open_.name in self.container_tags:
                return MarkupElement(
                    name=open_.name,
                    location=element_location,
                    attributes=open_.attributes,
                    content=MarkupFragment(children=children),
                )
            return MarkupElement(
                name=open_.name,
                location=element_location,
                attributes=open_.attributes,
                children=children,
            )

        root = _OpenElement(name="#root", start=0, start_tag=None)
        stack = [root]
        for match in _MARKUP_TOKEN.finditer(source):
            start, end = match.span()
            chunk = match.group()
            if chunk.startswith("<!--"):
                stack[-1].children.append(MarkupComment(chunk[4:-3], location(start, end)))
            elif chunk.startswith("</"):
                name = chunk[2:-1].strip().lower()
                if not any(open_.name == name for open_ in stack[1:]):
                    stack[-1].children.append(MarkupNode("#erroneousEndTag", location(start, end)))
                    continue
                while True:
                    open_ = stack.pop()
                    matched = open_.name == name
                    stack[-1].children.append(
                        close(open_, location(start, end) if matched else None)
                    )
                    if matched:
                        break
            elif chunk.startswith("<") and len(chunk) > 1:
                name_match = _TAG_NAME.match(chunk)
                name = name_match.group(1).lower()
                attributes = []
                body_end = len(chunk) - (2 if chunk.endswith("/>") else 1)
                for attribute in _ATTRIBUTE.finditer(chunk, name_match.end(), body_end):
                    value = attribute.group(2) or ""
                    if value[:1] in {'"', "'"}:
                        value = value[1:-1]
                    attributes.append(
                        MarkupAttribute(
                            name=attribute.group(1),
                            value=html.unescape(value),
                            location=location(start + attribute.start(), start + attribute.end()),
                        )
                    )
                open_ = _OpenElement(
                    name=name,
                    start=start,
                    start_tag=location(start, end),
                    attributes=tuple(attributes),
                )
                if chunk.endswith("/>") or name in _VOID_TAGS:
                    stack[-1].children.append(close(open_, None))
                else:
                    stack.append(open_)
            else:
                stack[-1].children.append(MarkupText(location(start, end)))

        while len(stack) > 1:
            open_ = stack.pop()
            stack[-1].children.append(close(open_, None))
        return MarkupDocument(children=tuple(root.children))


@pytest.fixture
def build_markup() -> Callable[[str], MarkupDocument]:
    """Return a markup builder that needs no tree-sitter grammar."""

    return FakeMarkupBuilder()
