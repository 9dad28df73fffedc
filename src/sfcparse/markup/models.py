"""Location-annotated markup tree consumed by the template transformer.

The shapes mirror what an HTML parser with location info reports: every node
knows its absolute character offsets plus the 1-based line and column where
it starts, elements additionally know where their start and end tags are,
and container elements such as ``<template>`` keep their children in a
separate ``content`` fragment.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

__all__ = [
    "MarkupLocation",
    "ElementLocation",
    "MarkupAttribute",
    "MarkupText",
    "MarkupComment",
    "MarkupElement",
    "MarkupFragment",
    "MarkupDocument",
    "MarkupNode",
    "MarkupEntry",
    "TEXT_NODE_NAME",
    "COMMENT_NODE_NAME",
    "FRAGMENT_NODE_NAME",
    "DOCUMENT_NODE_NAME",
]

TEXT_NODE_NAME = "#text"
COMMENT_NODE_NAME = "#comment"
FRAGMENT_NODE_NAME = "#document-fragment"
DOCUMENT_NODE_NAME = "#document"


@dataclass(frozen=True, slots=True)
class MarkupLocation:
    """Absolute offsets plus 1-based ``line``/``col`` of the start."""

    start_offset: int
    end_offset: int
    line: int
    col: int


@dataclass(frozen=True, slots=True)
class ElementLocation(MarkupLocation):
    """Element span with its start tag and optional end tag."""

    start_tag: MarkupLocation | None = None
    end_tag: MarkupLocation | None = None


@dataclass(frozen=True, slots=True)
class MarkupAttribute:
    """Attribute as reported by the markup parser.

    ``value`` is already unquoted and entity-decoded; ``location`` covers the
    whole ``name="value"`` span.
    """

    name: str
    value: str
    location: MarkupLocation


@dataclass(frozen=True, slots=True)
class MarkupText:
    location: MarkupLocation

    @property
    def node_name(self) -> str:
        return TEXT_NODE_NAME


@dataclass(frozen=True, slots=True)
class MarkupComment:
    data: str
    location: MarkupLocation

    @property
    def node_name(self) -> str:
        return COMMENT_NODE_NAME


@dataclass(frozen=True, slots=True)
class MarkupFragment:
    children: tuple["MarkupEntry", ...] = ()

    @property
    def node_name(self) -> str:
        return FRAGMENT_NODE_NAME


@dataclass(frozen=True, slots=True)
class MarkupElement:
    """Element node; ``content`` is set for container tags only."""

    name: str
    location: ElementLocation
    attributes: tuple[MarkupAttribute, ...] = ()
    children: tuple["MarkupEntry", ...] = ()
    content: MarkupFragment | None = None

    @property
    def node_name(self) -> str:
        return self.name

    def attribute(self, name: str) -> MarkupAttribute | None:
        """Return the first attribute called ``name``, if any."""

        for attribute in self.attributes:
            if attribute.name.lower() == name:
                return attribute
        return None


@dataclass(frozen=True, slots=True)
class MarkupDocument:
    children: tuple["MarkupEntry", ...] = ()

    @property
    def node_name(self) -> str:
        return DOCUMENT_NODE_NAME


@dataclass(frozen=True, slots=True)
class MarkupNode:
    """Any other entry kind (doctype, stray end tag, processing instruction)."""

    name: str
    location: MarkupLocation

    @property
    def node_name(self) -> str:
        return self.name


MarkupEntry = Union[
    MarkupElement,
    MarkupText,
    MarkupComment,
    MarkupFragment,
    MarkupDocument,
    MarkupNode,
]
