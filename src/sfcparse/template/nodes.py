"""Typed nodes produced by the template transformer.

Every variant shares ``type`` (class level), ``range`` and ``loc``. Children
are owned through tuples; the ``parent`` back-link is a weak reference that
exists only for lookups and never keeps a node alive.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any, ClassVar, Iterator, Union
import weakref

from .errors import invariant
from .location import SourceLocation, SourceRange
from .tokens import TokenKind

if TYPE_CHECKING:  # pragma: no cover - import cycle guard
    from sfcparse.script.errors import ScriptSyntaxError
    from sfcparse.script.models import ScriptNode

__all__ = [
    "NodeType",
    "DocumentNode",
    "ElementNode",
    "OpeningTagNode",
    "ClosingTagNode",
    "AttributeNode",
    "IdentifierNode",
    "DirectiveKeyNode",
    "TextNode",
    "AttributeValueNode",
    "ExpressionContainerNode",
    "CommentNode",
    "TemplateNode",
    "link_parent",
    "iter_nodes",
]


class NodeType(StrEnum):
    """Discriminator carried by every template node."""

    DOCUMENT = "HTMLDocument"
    ELEMENT = "HTMLElement"
    OPENING_TAG = "HTMLStartTag"
    CLOSING_TAG = "HTMLEndTag"
    ATTRIBUTE = "HTMLAttribute"
    IDENTIFIER = "HTMLIdentifier"
    DIRECTIVE_KEY = "HTMLDirectiveKey"
    TEXT = "HTMLText"
    ATTRIBUTE_VALUE = "HTMLAttributeValue"
    EXPRESSION_CONTAINER = "HTMLExpressionContainer"
    COMMENT = "HTMLComment"


@dataclass(slots=True, weakref_slot=True)
class _Node:
    type: ClassVar[NodeType]

    range: SourceRange
    loc: SourceLocation
    _parent: Any = field(default=None, init=False, repr=False, compare=False)

    @property
    def parent(self) -> "TemplateNode | None":
        """Return the enclosing node while the tree is alive."""

        if self._parent is None:
            return None
        return self._parent()

    @property
    def start(self) -> int:
        return self.range.start

    @property
    def end(self) -> int:
        return self.range.end

    def iter_children(self) -> Iterator["TemplateNode"]:
        """Yield direct children in document order."""

        return iter(())


@dataclass(slots=True)
class IdentifierNode(_Node):
    """Plain attribute or tag name."""

    type: ClassVar[NodeType] = NodeType.IDENTIFIER

    name: str


@dataclass(slots=True)
class DirectiveKeyNode(_Node):
    """Attribute name decomposed into directive parts."""

    type: ClassVar[NodeType] = NodeType.DIRECTIVE_KEY

    name: str
    argument: str | None
    modifiers: tuple[str, ...]
    shorthand: bool


@dataclass(slots=True)
class TextNode(_Node):
    """Literal text run between tags and interpolations."""

    type: ClassVar[NodeType] = NodeType.TEXT

    value: str
    raw: str


@dataclass(slots=True)
class AttributeValueNode(_Node):
    """Literal value of a plain (non-directive) attribute."""

    type: ClassVar[NodeType] = NodeType.ATTRIBUTE_VALUE

    value: str
    raw: str


@dataclass(slots=True)
class ExpressionContainerNode(_Node):
    """Re-parsed expression, or the syntax error that prevented it."""

    type: ClassVar[NodeType] = NodeType.EXPRESSION_CONTAINER

    expression: ScriptNode | None = None
    syntax_error: ScriptSyntaxError | None = None

    def __post_init__(self) -> None:
        invariant(
            (self.expression is None) != (self.syntax_error is None),
            "Expression container needs exactly one of expression/syntax_error",
        )


@dataclass(slots=True)
class CommentNode(_Node):
    """Markup or script comment; never part of the node tree."""

    type: ClassVar[NodeType] = NodeType.COMMENT

    kind: TokenKind
    value: str


@dataclass(slots=True)
class AttributeNode(_Node):
    type: ClassVar[NodeType] = NodeType.ATTRIBUTE

    key: IdentifierNode | DirectiveKeyNode
    value: AttributeValueNode | ExpressionContainerNode | None = None

    @property
    def directive(self) -> bool:
        return isinstance(self.key, DirectiveKeyNode)

    def iter_children(self) -> Iterator["TemplateNode"]:
        yield self.key
        if self.value is not None:
            yield self.value


@dataclass(slots=True)
class OpeningTagNode(_Node):
    type: ClassVar[NodeType] = NodeType.OPENING_TAG

    self_closing: bool = False


@dataclass(slots=True)
class ClosingTagNode(_Node):
    type: ClassVar[NodeType] = NodeType.CLOSING_TAG


@dataclass(slots=True)
class ElementNode(_Node):
    """Element with its tags, attributes and transformed children."""

    type: ClassVar[NodeType] = NodeType.ELEMENT

    name: str
    opening_tag: OpeningTagNode
    closing_tag: ClosingTagNode | None
    attributes: tuple[AttributeNode, ...] = ()
    children: tuple["TemplateNode", ...] = ()

    def iter_children(self) -> Iterator["TemplateNode"]:
        yield self.opening_tag
        yield from self.attributes
        yield from self.children
        if self.closing_tag is not None:
            yield self.closing_tag


@dataclass(slots=True)
class DocumentNode(_Node):
    """Root of a transformed template."""

    type: ClassVar[NodeType] = NodeType.DOCUMENT

    children: tuple["TemplateNode", ...] = ()

    def iter_children(self) -> Iterator["TemplateNode"]:
        return iter(self.children)


TemplateNode = Union[
    DocumentNode,
    ElementNode,
    OpeningTagNode,
    ClosingTagNode,
    AttributeNode,
    IdentifierNode,
    DirectiveKeyNode,
    TextNode,
    AttributeValueNode,
    ExpressionContainerNode,
    CommentNode,
]


def link_parent(parent: TemplateNode) -> TemplateNode:
    """Point every direct child of ``parent`` back at it and return ``parent``."""

    ref = weakref.ref(parent)
    for child in parent.iter_children():
        child._parent = ref
    return parent


def iter_nodes(node: TemplateNode) -> Iterator[TemplateNode]:
    """Yield ``node`` and all of its descendants in document order.

    Attributes and tags are visited before element children.
    """

    yield node
    for child in node.iter_children():
        yield from iter_nodes(child)
