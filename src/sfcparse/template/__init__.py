"""Template transformation: markup tree in, typed nodes and tokens out."""

from __future__ import annotations

from .errors import TemplateInvariantError, invariant
from .location import (
    LINE_TERMINATORS,
    LineIndex,
    Position,
    SourceLocation,
    SourceRange,
    blank_out,
    end_location,
)
from .tokens import Token, TokenKind
from .token_store import TokenStore
from .nodes import (
    AttributeNode,
    AttributeValueNode,
    ClosingTagNode,
    CommentNode,
    DirectiveKeyNode,
    DocumentNode,
    ElementNode,
    ExpressionContainerNode,
    IdentifierNode,
    NodeType,
    OpeningTagNode,
    TemplateNode,
    TextNode,
    iter_nodes,
)
from .directives import DirectiveParts, DirectiveSyntax
from .bridge import ScriptReparseBridge, decode_entities, parse_script_block
from .transformer import TemplateResult, TemplateTransformer, transform_template

__all__ = [
    "TemplateInvariantError",
    "invariant",
    "LINE_TERMINATORS",
    "LineIndex",
    "Position",
    "SourceLocation",
    "SourceRange",
    "blank_out",
    "end_location",
    "Token",
    "TokenKind",
    "TokenStore",
    "AttributeNode",
    "AttributeValueNode",
    "ClosingTagNode",
    "CommentNode",
    "DirectiveKeyNode",
    "DocumentNode",
    "ElementNode",
    "ExpressionContainerNode",
    "IdentifierNode",
    "NodeType",
    "OpeningTagNode",
    "TemplateNode",
    "TextNode",
    "iter_nodes",
    "DirectiveParts",
    "DirectiveSyntax",
    "ScriptReparseBridge",
    "decode_entities",
    "parse_script_block",
    "TemplateResult",
    "TemplateTransformer",
    "transform_template",
]
