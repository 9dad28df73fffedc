"""Parser-neutral script syntax tree handed back by script parsers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterator, Protocol

if TYPE_CHECKING:  # pragma: no cover - import cycle guard
    from sfcparse.template.location import SourceLocation, SourceRange
    from sfcparse.template.tokens import Token

__all__ = [
    "EXPRESSION_STATEMENT",
    "PARENTHESIZED_EXPRESSION",
    "ScriptNode",
    "ScriptProgram",
    "ScriptParser",
]

EXPRESSION_STATEMENT = "expression_statement"
PARENTHESIZED_EXPRESSION = "parenthesized_expression"

_IDENTIFIER_TYPES = frozenset(
    {
        "identifier",
        "property_identifier",
        "shorthand_property_identifier",
        "private_property_identifier",
        "statement_identifier",
    }
)


@dataclass(frozen=True, slots=True)
class ScriptNode:
    """One node of a parsed script, detached from the parser's own objects.

    ``children`` holds the named sub-nodes only; punctuation lives in the
    token stream.
    """

    type: str
    range: SourceRange
    loc: SourceLocation
    raw: str
    children: tuple["ScriptNode", ...] = ()

    @property
    def name(self) -> str | None:
        """Identifier text for identifier-like nodes, else ``None``."""

        if self.type in _IDENTIFIER_TYPES:
            return self.raw
        return None

    def walk(self) -> Iterator["ScriptNode"]:
        """Yield this node and its descendants in document order."""

        yield self
        for child in self.children:
            yield from child.walk()


@dataclass(frozen=True, slots=True)
class ScriptProgram:
    """Result of a successful script parse."""

    body: tuple[ScriptNode, ...]
    tokens: tuple[Token, ...]
    comments: tuple[Token, ...]
    range: SourceRange


class ScriptParser(Protocol):
    """Capability that parses script text.

    Implementations must be pure functions of ``text`` and raise
    :class:`~sfcparse.script.errors.ScriptSyntaxError` on invalid syntax.
    Offsets in the returned program are relative to ``text``.
    """

    def __call__(self, text: str) -> ScriptProgram: ...
