"""Markup tree builder backed by tree-sitter's HTML grammar."""

from __future__ import annotations

from dataclasses import dataclass
import html
from typing import Any, Iterable

from sfcparse.core.logging import get_logger
from sfcparse.core.treesitter import ByteOffsets, first_child, load_parser
from sfcparse.template.location import LineIndex

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

__all__ = ["MarkupParserUnavailableError", "build_markup_tree"]

_ELEMENT_TYPES = frozenset({"element", "script_element", "style_element"})
_STRUCTURAL_TYPES = _ELEMENT_TYPES | {"comment", "doctype", "erroneous_end_tag"}
_OTHER_NODE_NAMES = {
    "doctype": "#documentType",
    "erroneous_end_tag": "#erroneousEndTag",
}


class MarkupParserUnavailableError(RuntimeError):
    """Raised when the tree-sitter HTML grammar cannot be loaded."""


def build_markup_tree(
    text: str,
    *,
    container_tags: Iterable[str] = ("template",),
) -> MarkupDocument:
    """Parse ``text`` into a location-annotated markup tree.

    Text runs are the gaps between child elements and comments, so
    whitespace and character references stay in the tree. Elements named in
    ``container_tags`` keep their children in ``content``.

    Raises:
        MarkupParserUnavailableError: If tree-sitter is not installed.
    """

    parser = load_parser("html", MarkupParserUnavailableError)
    tree = parser.parse(text.encode("utf-8"))
    root = tree.root_node

    if root.has_error:
        get_logger(__name__).debug(
            "markup-recovered",
            root_type=root.type,
            length=len(text),
        )

    builder = _MarkupBuilder(
        offsets=ByteOffsets.of(text),
        index=LineIndex(text),
        container_tags=frozenset(name.lower() for name in container_tags),
    )
    return MarkupDocument(children=builder.content(root, 0, len(text)))


@dataclass(slots=True)
class _MarkupBuilder:
    offsets: ByteOffsets
    index: LineIndex
    container_tags: frozenset[str]

    def content(self, node: Any, start: int, end: int) -> tuple[MarkupEntry, ...]:
        """Return the entries of ``node`` between character ``start`` and ``end``."""

        entries: list[MarkupEntry] = []
        cursor = start
        for child in node.children:
            if child.type not in _STRUCTURAL_TYPES:
                continue
            child_start, child_end = self.offsets.span(child)
            if child_start < cursor or child_end > end:
                continue
            if child_start > cursor:
                entries.append(MarkupText(location=self._location(cursor, child_start)))
            entries.append(self._entry(child))
            cursor = child_end
        if end > cursor:
            entries.append(MarkupText(location=self._location(cursor, end)))
        return tuple(entries)

    def _entry(self, node: Any) -> MarkupEntry:
        if node.type in _ELEMENT_TYPES:
            return self._element(node)

        start, end = self.offsets.span(node)
        if node.type == "comment":
            raw = self.offsets.text[start:end]
            data = raw[4:-3] if raw.endswith("-->") and len(raw) >= 7 else raw[4:]
            return MarkupComment(data=data, location=self._location(start, end))
        return MarkupNode(
            name=_OTHER_NODE_NAMES[node.type],
            location=self._location(start, end),
        )

    def _element(self, node: Any) -> MarkupElement:
        start, end = self.offsets.span(node)
        opening = first_child(node, "start_tag", "self_closing_tag")
        closing = first_child(node, "end_tag")
        if closing is not None and (closing.is_missing or closing.end_byte == closing.start_byte):
            closing = None

        name = ""
        attributes: tuple[MarkupAttribute, ...] = ()
        children: tuple[MarkupEntry, ...] = ()
        opening_location: MarkupLocation | None = None
        closing_location: MarkupLocation | None = None

        if opening is not None:
            tag_name = first_child(opening, "tag_name")
            if tag_name is not None:
                name = self.offsets.slice(tag_name).lower()
            attributes = self._attributes(opening)
            opening_location = self._location(*self.offsets.span(opening))

        if closing is not None:
            closing_location = self._location(*self.offsets.span(closing))

        if opening is None or opening.type != "self_closing_tag":
            content_start = opening_location.end_offset if opening_location else start
            content_end = closing_location.start_offset if closing_location else end
            children = self.content(node, content_start, content_end)

        position = self.index.position(start)
        location = ElementLocation(
            start_offset=start,
            end_offset=end,
            line=position.line,
            col=position.column + 1,
            start_tag=opening_location,
            end_tag=closing_location,
        )

        if name in self.container_tags:
            return MarkupElement(
                name=name,
                location=location,
                attributes=attributes,
                content=MarkupFragment(children=children),
            )
        return MarkupElement(
            name=name,
            location=location,
            attributes=attributes,
            children=children,
        )

    def _attributes(self, tag: Any) -> tuple[MarkupAttribute, ...]:
        attributes: list[MarkupAttribute] = []
        for child in tag.named_children:
            if child.type != "attribute":
                continue
            name_node = first_child(child, "attribute_name")
            if name_node is None:
                continue

            value = ""
            value_node = first_child(child, "quoted_attribute_value", "attribute_value")
            if value_node is not None and value_node.type == "quoted_attribute_value":
                inner = first_child(value_node, "attribute_value")
                value = self.offsets.slice(inner) if inner is not None else ""
            elif value_node is not None:
                value = self.offsets.slice(value_node)

            attributes.append(
                MarkupAttribute(
                    name=self.offsets.slice(name_node),
                    value=html.unescape(value),
                    location=self._location(*self.offsets.span(child)),
                )
            )
        return tuple(attributes)

    def _location(self, start: int, end: int) -> MarkupLocation:
        position = self.index.position(start)
        return MarkupLocation(
            start_offset=start,
            end_offset=end,
            line=position.line,
            col=position.column + 1,
        )
