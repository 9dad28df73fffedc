"""Shared tree-sitter plumbing for the markup and script backends."""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Sequence

__all__ = ["ByteOffsets", "load_parser", "first_child"]


@lru_cache(maxsize=None)
def load_parser(language: str, error: type[RuntimeError]) -> Any:
    """Return a cached tree-sitter parser for ``language``.

    Raises:
        error: If ``tree_sitter_languages`` is not installed or has no
            grammar for ``language``.
    """

    try:
        from tree_sitter_languages import get_parser  # type: ignore[import]
    except Exception as exc:  # pragma: no cover - dependency missing
        raise error(
            "sfcparse requires the 'parser' extras (tree_sitter_languages)."
        ) from exc

    try:
        return get_parser(language)
    except Exception as exc:
        raise error(
            f"tree-sitter parser for {language!r} is unavailable: {exc}"
        ) from exc


@dataclass(frozen=True, slots=True)
class ByteOffsets:
    """Map UTF-8 byte offsets reported by tree-sitter to character offsets.

    Example:
        >>> offsets = ByteOffsets.of("añb")
        >>> offsets.char_index(3), offsets.char_index(4)
        (2, 3)
    """

    text: str
    offsets: Sequence[int]

    @classmethod
    def of(cls, text: str) -> "ByteOffsets":
        offsets = [0]
        total = 0
        for char in text:
            total += len(char.encode("utf-8"))
            offsets.append(total)
        return cls(text=text, offsets=offsets)

    def char_index(self, byte_offset: int) -> int:
        return max(0, bisect_right(self.offsets, byte_offset) - 1)

    def span(self, node: Any) -> tuple[int, int]:
        """Return the character ``(start, end)`` of a tree-sitter node."""

        return self.char_index(node.start_byte), self.char_index(node.end_byte)

    def slice(self, node: Any) -> str:
        start, end = self.span(node)
        return self.text[start:end]


def first_child(node: Any, *type_names: str) -> Any | None:
    """Return the first direct child whose type is one of ``type_names``."""

    for child in getattr(node, "children", []) or []:
        if getattr(child, "type", "") in type_names:
            return child
    return None
