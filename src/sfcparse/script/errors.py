"""Errors raised by script parsers."""

from __future__ import annotations

from dataclasses import dataclass

__all__ = ["ScriptSyntaxError", "ScriptParserUnavailableError"]


@dataclass(slots=True)
class ScriptSyntaxError(SyntaxError):
    """Raised when a script parser rejects its input.

    ``index`` is the character offset of the offending position in the text
    handed to the parser; ``line`` is 1-based and ``column`` 0-based.
    """

    message: str
    index: int = 0
    line: int = 1
    column: int = 0

    def __post_init__(self) -> None:
        SyntaxError.__init__(self, self.message)

    def __str__(self) -> str:
        return f"{self.message} ({self.line}:{self.column})"


class ScriptParserUnavailableError(RuntimeError):
    """Raised when the tree-sitter JavaScript grammar cannot be loaded."""
