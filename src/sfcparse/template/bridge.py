"""Offset-preserving re-parse of template sub-ranges with a script parser.

An interpolation body or directive value is handed to the script parser as
``blanked-prefix + "(" + code + ")"``, with a line break before the ``)``
when the code may end in a line comment. The blanked prefix keeps every
line terminator of the preceding source and turns everything else into
spaces, so the parser reports positions that already match the original
file. The two synthetic parentheses are then dropped and the remaining
tokens are merged into the shared token store.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
import html
import re
from typing import Sequence

from sfcparse.core.logging import Logger, get_logger
from sfcparse.markup.models import MarkupElement, MarkupText
from sfcparse.script.errors import ScriptSyntaxError
from sfcparse.script.models import (
    EXPRESSION_STATEMENT,
    PARENTHESIZED_EXPRESSION,
    ScriptNode,
    ScriptParser,
    ScriptProgram,
)

from .errors import invariant
from .location import LineIndex, SourceRange, blank_out
from .nodes import CommentNode
from .token_store import TokenStore
from .tokens import Token, TokenKind

__all__ = [
    "DecodedText",
    "decode_entities",
    "ScriptReparseBridge",
    "parse_script_block",
]

_ENTITY = re.compile(r"&(?:#[0-9]+;?|#[xX][0-9a-fA-F]+;?|[A-Za-z][A-Za-z0-9]*;?)")
_LINE_TERMINATOR_CHARS = frozenset("\r\n\u2028\u2029")


@dataclass(frozen=True, slots=True)
class DecodedText:
    """Entity-decoded text with a map back to the raw character offsets.

    ``starts[i]`` and ``ends[i]`` give the raw span that produced decoded
    character ``i``. Both are ``None`` when decoding changed nothing.
    """

    text: str
    raw: str
    starts: tuple[int, ...] | None = None
    ends: tuple[int, ...] | None = None

    @property
    def identity(self) -> bool:
        return self.starts is None

    def raw_start(self, offset: int) -> int:
        """Map a decoded start offset to its raw offset."""

        if self.starts is None:
            return offset
        if offset >= len(self.starts):
            return len(self.raw)
        return self.starts[offset]

    def raw_end(self, offset: int) -> int:
        """Map a decoded end offset to its raw offset."""

        if self.ends is None or offset == 0:
            return offset
        if offset > len(self.ends):
            return len(self.raw)
        return self.ends[offset - 1]


def decode_entities(raw: str) -> DecodedText:
    """Decode character references in ``raw`` keeping an offset map.

    Example:
        >>> decoded = decode_entities("a &gt; b")
        >>> decoded.text, decoded.raw_start(4), decoded.raw_end(3)
        ('a > b', 7, 6)
    """

    if "&" not in raw:
        return DecodedText(text=raw, raw=raw)

    pieces: list[str] = []
    starts: list[int] = []
    ends: list[int] = []
    last = 0
    for match in _ENTITY.finditer(raw):
        begin, finish = match.span()
        for i in range(last, begin):
            pieces.append(raw[i])
            starts.append(i)
            ends.append(i + 1)
        replacement = html.unescape(match.group(0))
        if replacement == match.group(0):
            for i in range(begin, finish):
                pieces.append(raw[i])
                starts.append(i)
                ends.append(i + 1)
        else:
            for char in replacement:
                pieces.append(char)
                starts.append(begin)
                ends.append(finish)
        last = finish
    for i in range(last, len(raw)):
        pieces.append(raw[i])
        starts.append(i)
        ends.append(i + 1)

    text = "".join(pieces)
    if text == raw:
        return DecodedText(text=raw, raw=raw)
    return DecodedText(text=text, raw=raw, starts=tuple(starts), ends=tuple(ends))


class ScriptReparseBridge:
    """Re-parse expression sub-ranges and merge their tokens.

    The bridge only ever commits tokens and comments from a successful parse;
    a failed attempt leaves the store exactly as it was.
    """

    def __init__(
        self,
        *,
        text: str,
        index: LineIndex,
        parse_script: ScriptParser,
        tokens: TokenStore,
        comments: list[CommentNode],
        logger: Logger | None = None,
    ) -> None:
        self._text = text
        self._index = index
        self._parse_script = parse_script
        self._tokens = tokens
        self._comments = comments
        self._blank = blank_out(text)
        self._logger = logger or get_logger(__name__, component="reparse-bridge")

    def parse_expression(
        self,
        start: int,
        end: int,
    ) -> tuple[ScriptNode | None, ScriptSyntaxError | None]:
        """Parse ``text[start:end]`` as one expression.

        Returns ``(expression, None)`` on success or ``(None, error)`` when
        the parser rejects the code.
        """

        invariant(0 < start <= end <= len(self._text), f"Bad code range [{start}, {end})")

        decoded = decode_entities(self._text[start:end])
        # A trailing line comment would swallow the closing parenthesis.
        closing = "\n)" if "//" in decoded.text else ")"
        surrogate = self._surrogate_prefix(start) + decoded.text + closing

        try:
            program = self._parse_script(surrogate)
            expression = self._unwrap_expression(program, surrogate)
        except ScriptSyntaxError as exc:
            self._logger.debug(
                "expression-syntax-error",
                start=start,
                end=end,
                error=exc.message,
                line=exc.line,
                column=exc.column,
            )
            return None, exc

        invariant(
            len(program.tokens) >= 2,
            "Script parser dropped the wrapper parentheses",
        )
        inner_tokens = program.tokens[1:-1]
        anchored = [self._anchor_token(token, start, decoded) for token in inner_tokens]
        anchored_comments = [
            self._anchor_comment(comment, start, decoded) for comment in program.comments
        ]

        self._tokens.extend(anchored)
        self._comments.extend(anchored_comments)
        return self._anchor_node(expression, start, decoded), None

    # ------------------------------------------------------------------
    # Surrogate construction
    # ------------------------------------------------------------------
    def _surrogate_prefix(self, start: int) -> str:
        """Return ``start`` characters ending with the opening parenthesis.

        The parenthesis replaces the nearest character before ``start`` that
        is not a line terminator, so the code keeps its exact line.
        """

        open_at = start - 1
        while open_at >= 0 and self._text[open_at] in _LINE_TERMINATOR_CHARS:
            open_at -= 1
        invariant(open_at >= 0, "No room for the wrapping parenthesis")
        return self._blank[:open_at] + "(" + self._blank[open_at + 1 : start]

    @staticmethod
    def _unwrap_expression(program: ScriptProgram, surrogate: str) -> ScriptNode:
        """Return the expression inside the synthetic parentheses."""

        if len(program.body) != 1 or program.body[0].type != EXPRESSION_STATEMENT:
            raise _not_an_expression(program, surrogate)
        statement = program.body[0]
        if not statement.children:
            raise _not_an_expression(program, surrogate)

        wrapped = statement.children[0]
        if (
            wrapped.type != PARENTHESIZED_EXPRESSION
            or wrapped.range.end != len(surrogate)
            or len(wrapped.children) != 1
        ):
            raise _not_an_expression(program, surrogate)
        return wrapped.children[0]

    # ------------------------------------------------------------------
    # Re-anchoring onto the original source
    # ------------------------------------------------------------------
    def _source_range(self, span: SourceRange, start: int, decoded: DecodedText) -> SourceRange:
        invariant(span.start >= start, f"Token at {span.start} precedes code at {start}")
        return SourceRange(
            start + decoded.raw_start(span.start - start),
            start + decoded.raw_end(span.end - start),
        )

    def _anchor_token(self, token: Token, start: int, decoded: DecodedText) -> Token:
        span = self._source_range(token.range, start, decoded)
        return Token(
            kind=token.kind,
            value=token.value,
            raw=self._text[span.start : span.end],
            range=span,
            loc=self._index.location(span.start, span.end),
        )

    def _anchor_comment(self, comment: Token, start: int, decoded: DecodedText) -> CommentNode:
        span = self._source_range(comment.range, start, decoded)
        return CommentNode(
            range=span,
            loc=self._index.location(span.start, span.end),
            kind=comment.kind,
            value=comment.value,
        )

    def _anchor_node(self, node: ScriptNode, start: int, decoded: DecodedText) -> ScriptNode:
        span = self._source_range(node.range, start, decoded)
        return ScriptNode(
            type=node.type,
            range=span,
            loc=self._index.location(span.start, span.end),
            raw=self._text[span.start : span.end],
            children=tuple(
                self._anchor_node(child, start, decoded) for child in node.children
            ),
        )


def _not_an_expression(program: ScriptProgram, surrogate: str) -> ScriptSyntaxError:
    index = program.body[0].range.start if program.body else len(surrogate)
    position = LineIndex(surrogate).position(index)
    return ScriptSyntaxError(
        message="Expected a single expression",
        index=index,
        line=position.line,
        column=position.column,
    )


def parse_script_block(
    source: str,
    script: MarkupElement | None,
    parse_script: ScriptParser,
) -> ScriptProgram:
    """Parse the component's script block in place.

    The script text is padded with spaces and blank lines so offsets and
    line numbers line up with ``source``; tokens for the ``<script>`` start
    and end tags are spliced around the parser's tokens.
    """

    program = parse_script(_padded_script_code(source, script))
    if script is None:
        return program

    location = script.location
    tokens: Sequence[Token] = program.tokens
    start = program.range.start

    if location.start_tag is not None:
        start_tag = Token.from_markup_location(
            TokenKind.PUNCTUATOR, "<script>", source, location.start_tag
        )
        start = start_tag.end
        tokens = (start_tag, *tokens)
    if location.end_tag is not None:
        end_tag = Token.from_markup_location(
            TokenKind.PUNCTUATOR, "</script>", source, location.end_tag
        )
        tokens = (*tokens, end_tag)

    return replace(
        program,
        tokens=tuple(tokens),
        range=SourceRange(start, max(start, program.range.end)),
    )


def _padded_script_code(source: str, script: MarkupElement | None) -> str:
    if script is None or not script.children:
        return ""
    text = script.children[0]
    if not isinstance(text, MarkupText):
        return ""

    location = text.location
    start = location.start_offset
    line_breaks = location.line - 1
    spaces = " " * (start - line_breaks)
    return f"{spaces}{chr(10) * line_breaks}{source[start:location.end_offset]}"
