"""Offset and line/column helpers shared by every span in a template tree.

All spans are half-open character ranges into the original source text.
Lines are 1-based and columns are 0-based offsets within the line. Every
line/column pair produced by :mod:`sfcparse` is derived either from
:func:`end_location` or from :class:`LineIndex`, and the two agree so that a
token's ``loc.end`` can always be recomputed from its own ``raw`` text.
"""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass
import re

from .errors import invariant

__all__ = [
    "LINE_TERMINATORS",
    "Position",
    "SourceRange",
    "SourceLocation",
    "LineIndex",
    "end_location",
    "blank_out",
]

LINE_TERMINATORS = re.compile(r"\r\n|[\r\n\u2028\u2029]")
_NON_LINE_TERMINATOR = re.compile(r"[^\r\n\u2028\u2029]")


@dataclass(frozen=True, slots=True)
class Position:
    """A 1-based line and 0-based column pair."""

    line: int
    column: int


@dataclass(frozen=True, slots=True)
class SourceRange:
    """Half-open ``[start, end)`` character range into the source text."""

    start: int
    end: int

    def __post_init__(self) -> None:
        invariant(
            0 <= self.start <= self.end,
            f"Invalid source range [{self.start}, {self.end})",
        )

    def __len__(self) -> int:
        return self.end - self.start

    def contains(self, other: "SourceRange") -> bool:
        """Return ``True`` when ``other`` lies entirely inside this range."""

        return self.start <= other.start and other.end <= self.end


@dataclass(frozen=True, slots=True)
class SourceLocation:
    """Start and end positions of a span."""

    start: Position
    end: Position


def end_location(raw: str, start_line: int, start_column: int) -> Position:
    """Return the position just past ``raw`` when it starts at the given point.

    Example:
        >>> end_location("abc", 1, 4)
        Position(line=1, column=7)
        >>> end_location("a\\r\\nbc", 3, 9)
        Position(line=4, column=2)
    """

    pieces = LINE_TERMINATORS.split(raw)
    if len(pieces) == 1:
        return Position(start_line, start_column + len(raw))
    return Position(start_line + len(pieces) - 1, len(pieces[-1]))


def blank_out(text: str) -> str:
    """Replace everything but line terminators with spaces.

    The result has the same length and the same line structure as ``text``.

    Example:
        >>> blank_out("ab\\ncd")
        '  \\n  '
    """

    return _NON_LINE_TERMINATOR.sub(" ", text)


class LineIndex:
    """Offset to line/column lookup over a fixed source text."""

    __slots__ = ("_text", "_heads")

    def __init__(self, text: str) -> None:
        self._text = text
        self._heads = [match.end() for match in LINE_TERMINATORS.finditer(text)]

    @property
    def text(self) -> str:
        return self._text

    @property
    def line_count(self) -> int:
        return len(self._heads) + 1

    def position(self, offset: int) -> Position:
        """Return the position of ``offset``.

        Example:
            >>> LineIndex("ab\\ncd").position(4)
            Position(line=2, column=1)
        """

        invariant(
            0 <= offset <= len(self._text),
            f"Offset {offset} outside source of length {len(self._text)}",
        )
        line = 1 + bisect_right(self._heads, offset)
        head = 0 if line == 1 else self._heads[line - 2]
        return Position(line, offset - head)

    def location(self, start: int, end: int) -> SourceLocation:
        """Return the location spanning ``[start, end)``."""

        return SourceLocation(self.position(start), self.position(end))
