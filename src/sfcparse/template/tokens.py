"""Token records emitted while transforming a template."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from .errors import invariant
from .location import (
    LineIndex,
    Position,
    SourceLocation,
    SourceRange,
    end_location,
)

if TYPE_CHECKING:  # pragma: no cover - import cycle guard
    from sfcparse.markup.models import MarkupLocation

__all__ = ["TokenKind", "Token"]


class TokenKind(StrEnum):
    """Lexical categories shared by markup and script tokens."""

    PUNCTUATOR = "Punctuator"
    HTML_IDENTIFIER = "HTMLIdentifier"
    HTML_TEXT = "HTMLText"
    HTML_ATTRIBUTE_VALUE = "HTMLAttributeValue"
    HTML_COMMENT = "HTMLComment"
    IDENTIFIER = "Identifier"
    KEYWORD = "Keyword"
    NUMERIC = "Numeric"
    STRING = "String"
    TEMPLATE = "Template"
    REGULAR_EXPRESSION = "RegularExpression"
    BOOLEAN = "Boolean"
    NULL = "Null"
    LINE = "Line"
    BLOCK = "Block"

    @property
    def is_comment(self) -> bool:
        """Return ``True`` for comment kinds.

        Example:
            >>> TokenKind.BLOCK.is_comment, TokenKind.PUNCTUATOR.is_comment
            (True, False)
        """

        return self in _COMMENT_KINDS


_COMMENT_KINDS = frozenset({TokenKind.HTML_COMMENT, TokenKind.LINE, TokenKind.BLOCK})


@dataclass(frozen=True, slots=True)
class Token:
    """Immutable lexical unit with its source span.

    ``raw`` is always the exact source slice covered by ``range``; ``value``
    is the semantic text (for example a comment body without delimiters).
    """

    kind: TokenKind
    value: str
    raw: str
    range: SourceRange
    loc: SourceLocation

    @property
    def start(self) -> int:
        return self.range.start

    @property
    def end(self) -> int:
        return self.range.end

    @classmethod
    def from_source(
        cls,
        kind: TokenKind,
        source: str,
        start: int,
        end: int,
        *,
        index: LineIndex,
        value: str | None = None,
    ) -> "Token":
        """Create a token covering ``source[start:end]``.

        Example:
            >>> token = Token.from_source(
            ...     TokenKind.PUNCTUATOR, "a\\n{{", 2, 4, index=LineIndex("a\\n{{")
            ... )
            >>> token.raw, token.loc.start, token.loc.end
            ('{{', Position(line=2, column=0), Position(line=2, column=2))
        """

        raw = source[start:end]
        return cls(
            kind=kind,
            value=raw if value is None else value,
            raw=raw,
            range=SourceRange(start, end),
            loc=index.location(start, end),
        )

    @classmethod
    def from_markup_location(
        cls,
        kind: TokenKind,
        value: str,
        source: str,
        location: "MarkupLocation",
    ) -> "Token":
        """Create a token straight from a markup location annotation.

        Markup locations carry a 1-based column; tokens use 0-based columns.
        """

        start = location.start_offset
        end = location.end_offset
        invariant(
            0 <= start <= end <= len(source),
            f"Markup location [{start}, {end}) outside source",
        )
        raw = source[start:end]
        begin = Position(location.line, location.col - 1)
        return cls(
            kind=kind,
            value=value,
            raw=raw,
            range=SourceRange(start, end),
            loc=SourceLocation(
                begin,
                end_location(raw, begin.line, begin.column),
            ),
        )
