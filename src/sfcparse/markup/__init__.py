"""Location-annotated markup tree and its tree-sitter builder."""

from __future__ import annotations

from .models import (
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
from .treesitter import MarkupParserUnavailableError, build_markup_tree

__all__ = [
    "ElementLocation",
    "MarkupAttribute",
    "MarkupComment",
    "MarkupDocument",
    "MarkupElement",
    "MarkupEntry",
    "MarkupFragment",
    "MarkupLocation",
    "MarkupNode",
    "MarkupParserUnavailableError",
    "MarkupText",
    "build_markup_tree",
]
