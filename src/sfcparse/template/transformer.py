"""Transform a location-annotated markup tree into template nodes and tokens.

The transformer walks the markup entries once, in document order. Every
region it recognizes is emitted twice: as a node in the returned tree and as
one or more tokens in a shared :class:`~sfcparse.template.token_store.TokenStore`.
Interpolation bodies and directive values are handed to the
:class:`~sfcparse.template.bridge.ScriptReparseBridge`, which appends the
script tokens in between the delimiter punctuators.
"""

from __future__ import annotations

from dataclasses import dataclass
import html
import re
from typing import Iterable, Sequence

from sfcparse.core.config import TemplateSettings
from sfcparse.core.logging import Logger, get_logger
from sfcparse.markup.models import (
    MarkupAttribute,
    MarkupComment,
    MarkupDocument,
    MarkupElement,
    MarkupEntry,
    MarkupFragment,
    MarkupText,
)
from sfcparse.script.models import ScriptParser

from .bridge import ScriptReparseBridge
from .directives import DirectiveSyntax
from .errors import invariant
from .location import LineIndex, SourceRange
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
    OpeningTagNode,
    TemplateNode,
    TextNode,
    link_parent,
)
from .token_store import TokenStore
from .tokens import Token, TokenKind

__all__ = ["TemplateResult", "TemplateTransformer", "transform_template"]

# https://html.spec.whatwg.org/#attributes-2
_INVALID_NAME_CHARS = re.compile(
    r"[\x00-\x1f\x7f-\x9f \"'>/=\ufdd0-\ufdef\ufffe\uffff]"
)
_NONCHARACTERS = frozenset(
    chr(plane * 0x10000 + tail) for plane in range(1, 17) for tail in (0xFFFE, 0xFFFF)
)
_QUOTES = frozenset("\"'")


@dataclass(frozen=True, slots=True)
class TemplateResult:
    """Node tree, token store and comment list of one transformation."""

    root: DocumentNode
    tokens: TokenStore
    comments: tuple[CommentNode, ...]


class TemplateTransformer:
    """Single-use visitor producing a :class:`TemplateResult`.

    A new instance is created for every call of :func:`transform_template`;
    nothing is shared between transformations.
    """

    def __init__(
        self,
        text: str,
        parse_script: ScriptParser,
        *,
        settings: TemplateSettings | None = None,
        logger: Logger | None = None,
    ) -> None:
        settings = settings or TemplateSettings()
        self._text = text
        self._index = LineIndex(text)
        self._tokens = TokenStore()
        self._comments: list[CommentNode] = []
        self._logger = logger or get_logger(__name__, component="template-transformer")
        self._directives = DirectiveSyntax.from_settings(settings)
        self._interpolation = re.compile(
            re.escape(settings.interpolation_open)
            + ".+?"
            + re.escape(settings.interpolation_close),
            re.DOTALL,
        )
        self._open_size = len(settings.interpolation_open)
        self._close_size = len(settings.interpolation_close)
        self._bridge = ScriptReparseBridge(
            text=text,
            index=self._index,
            parse_script=parse_script,
            tokens=self._tokens,
            comments=self._comments,
            logger=self._logger,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def transform(self, entries: Sequence[MarkupEntry]) -> TemplateResult:
        """Transform ``entries`` and return the sealed result."""

        invariant(not self._tokens.sealed, "Transformer instances are single-use")

        children = self._visit_all(entries)
        span = _entries_span(entries)
        root = DocumentNode(
            range=span,
            loc=self._index.location(span.start, span.end),
            children=children,
        )
        link_parent(root)
        self._tokens.seal()

        self._logger.debug(
            "template-transformed",
            tokens=len(self._tokens),
            comments=len(self._comments),
            children=len(children),
        )
        return TemplateResult(
            root=root,
            tokens=self._tokens,
            comments=tuple(self._comments),
        )

    # ------------------------------------------------------------------
    # Visitors
    # ------------------------------------------------------------------
    def _visit_all(self, entries: Iterable[MarkupEntry]) -> tuple[TemplateNode, ...]:
        nodes: list[TemplateNode] = []
        for entry in entries:
            nodes.extend(self._visit(entry))
        return tuple(nodes)

    def _visit(self, entry: MarkupEntry) -> list[TemplateNode]:
        invariant(
            not isinstance(entry, (MarkupDocument, MarkupFragment)),
            f"Unexpected {entry.node_name} entry inside a template",
        )
        if isinstance(entry, MarkupComment):
            self._visit_comment(entry)
            return []
        if isinstance(entry, MarkupText):
            return self._visit_text(entry)
        if isinstance(entry, MarkupElement):
            return [self._visit_element(entry)]

        self._logger.debug(
            "markup-node-skipped",
            node_name=entry.node_name,
            start=entry.location.start_offset,
        )
        return []

    def _visit_comment(self, entry: MarkupComment) -> None:
        start = entry.location.start_offset
        end = entry.location.end_offset
        self._comments.append(
            CommentNode(
                range=SourceRange(start, end),
                loc=self._index.location(start, end),
                kind=TokenKind.HTML_COMMENT,
                value=entry.data,
            )
        )

    def _visit_text(self, entry: MarkupText) -> list[TemplateNode]:
        start = entry.location.start_offset
        end = entry.location.end_offset
        nodes: list[TemplateNode] = []
        cursor = start

        for match in self._interpolation.finditer(self._text, start, end):
            if match.start() > cursor:
                nodes.append(self._text_node(cursor, match.start()))
            nodes.append(
                self._expression_container(
                    match.start(),
                    match.end(),
                    open_size=self._open_size,
                    close_size=self._close_size,
                )
            )
            cursor = match.end()
        if end > cursor:
            nodes.append(self._text_node(cursor, end))
        return nodes

    def _visit_element(self, entry: MarkupElement) -> ElementNode:
        location = entry.location
        opening_tag, attributes = self._opening_tag(entry)
        sources = entry.content.children if entry.content is not None else entry.children
        children = self._visit_all(sources)
        closing_tag = self._closing_tag(entry)

        element = ElementNode(
            range=SourceRange(location.start_offset, location.end_offset),
            loc=self._index.location(location.start_offset, location.end_offset),
            name=entry.name,
            opening_tag=opening_tag,
            closing_tag=closing_tag,
            attributes=attributes,
            children=children,
        )
        for attribute in attributes:
            link_parent(attribute)
        return link_parent(element)

    # ------------------------------------------------------------------
    # Tags
    # ------------------------------------------------------------------
    def _opening_tag(
        self,
        entry: MarkupElement,
    ) -> tuple[OpeningTagNode, tuple[AttributeNode, ...]]:
        location = entry.location.start_tag or entry.location
        start = location.start_offset
        end = location.end_offset
        self_closing = end - start >= 2 and self._text[end - 2] == "/"

        self._punctuator(start, start + 1)
        self._identifier(start + 1, None, limit=end)
        attributes = tuple(self._attribute(attribute) for attribute in entry.attributes)
        self._punctuator(end - (2 if self_closing else 1), end)

        tag = OpeningTagNode(
            range=SourceRange(start, end),
            loc=self._index.location(start, end),
            self_closing=self_closing,
        )
        return tag, attributes

    def _closing_tag(self, entry: MarkupElement) -> ClosingTagNode | None:
        location = entry.location.end_tag
        if location is None:
            return None
        start = location.start_offset
        end = location.end_offset

        self._punctuator(start, start + 2)
        self._identifier(start + 2, end - 1, limit=end)
        self._punctuator(end - 1, end)

        return ClosingTagNode(
            range=SourceRange(start, end),
            loc=self._index.location(start, end),
        )

    # ------------------------------------------------------------------
    # Attributes
    # ------------------------------------------------------------------
    def _attribute(self, attribute: MarkupAttribute) -> AttributeNode:
        start = attribute.location.start_offset
        end = attribute.location.end_offset
        directive = self._directives.is_directive(attribute.name)

        i = self._text.find("=", start, end)
        if i == -1:
            i = end

        key: IdentifierNode | DirectiveKeyNode
        if directive:
            key = self._directive_key(start, self._identifier_end(i, start))
        else:
            key = self._identifier(start, i, limit=end)

        value: AttributeValueNode | ExpressionContainerNode | None = None
        if i != end:
            self._punctuator(i, i + 1)
            i += 1
            while i < end and self._text[i].isspace():
                i += 1
            quote_size = 1 if i < end and self._text[i] in _QUOTES else 0
            if directive:
                value = self._expression_container(
                    i, end, open_size=quote_size, close_size=quote_size
                )
            else:
                value = self._attribute_value(i, end, attribute.value)

        return AttributeNode(
            range=SourceRange(start, end),
            loc=self._index.location(start, end),
            key=key,
            value=value,
        )

    def _directive_key(self, start: int, end: int) -> DirectiveKeyNode:
        self._append(TokenKind.HTML_IDENTIFIER, start, end)
        parts = self._directives.decompose(self._text[start:end])
        return DirectiveKeyNode(
            range=SourceRange(start, end),
            loc=self._index.location(start, end),
            name=parts.name,
            argument=parts.argument,
            modifiers=parts.modifiers,
            shorthand=parts.shorthand,
        )

    def _attribute_value(self, start: int, end: int, value: str) -> AttributeValueNode:
        self._append(TokenKind.HTML_ATTRIBUTE_VALUE, start, end)
        return AttributeValueNode(
            range=SourceRange(start, end),
            loc=self._index.location(start, end),
            value=value,
            raw=self._text[start:end],
        )

    # ------------------------------------------------------------------
    # Leaves
    # ------------------------------------------------------------------
    def _text_node(self, start: int, end: int) -> TextNode:
        raw = self._text[start:end]
        self._append(TokenKind.HTML_TEXT, start, end)
        return TextNode(
            range=SourceRange(start, end),
            loc=self._index.location(start, end),
            value=html.unescape(raw),
            raw=raw,
        )

    def _expression_container(
        self,
        start: int,
        end: int,
        *,
        open_size: int,
        close_size: int,
    ) -> ExpressionContainerNode:
        """Emit delimiters around a re-parsed expression spanning ``[start, end)``."""

        self._punctuator(start, start + open_size)

        code_start = start + open_size
        while code_start < end - close_size and self._text[code_start].isspace():
            code_start += 1
        code_end = end - close_size
        while code_end > code_start and self._text[code_end - 1].isspace():
            code_end -= 1

        expression, syntax_error = self._bridge.parse_expression(code_start, code_end)

        self._punctuator(end - close_size, end)
        return ExpressionContainerNode(
            range=SourceRange(start, end),
            loc=self._index.location(start, end),
            expression=expression,
            syntax_error=syntax_error,
        )

    def _identifier(self, start: int, end: int | None, *, limit: int) -> IdentifierNode:
        """Emit the name found between ``start`` and ``end``.

        Without ``end`` the name runs up to the first character that cannot
        be part of an attribute or tag name.
        """

        id_start = start
        while id_start < limit and not self._valid_name_char(id_start):
            id_start += 1

        if end is None:
            id_end = min(id_start + 1, limit)
            while id_end < limit and self._valid_name_char(id_end):
                id_end += 1
        else:
            id_end = max(id_start, self._identifier_end(end, id_start))

        self._append(TokenKind.HTML_IDENTIFIER, id_start, id_end)
        return IdentifierNode(
            range=SourceRange(id_start, id_end),
            loc=self._index.location(id_start, id_end),
            name=self._text[id_start:id_end],
        )

    def _identifier_end(self, offset: int, floor: int) -> int:
        i = offset - 1
        while i >= floor and not self._valid_name_char(i):
            i -= 1
        return i + 1

    def _valid_name_char(self, offset: int) -> bool:
        return not (
            _INVALID_NAME_CHARS.match(self._text, offset) is not None
            or self._text[offset] in _NONCHARACTERS
        )

    # ------------------------------------------------------------------
    # Token emission
    # ------------------------------------------------------------------
    def _punctuator(self, start: int, end: int) -> None:
        self._append(TokenKind.PUNCTUATOR, start, end)

    def _append(self, kind: TokenKind, start: int, end: int) -> None:
        if start >= end:
            return
        self._tokens.append(Token.from_source(kind, self._text, start, end, index=self._index))


def _entries_span(entries: Sequence[MarkupEntry]) -> SourceRange:
    starts: list[int] = []
    ends: list[int] = []
    for entry in entries:
        location = getattr(entry, "location", None)
        if location is not None:
            starts.append(location.start_offset)
            ends.append(location.end_offset)
    if not starts:
        return SourceRange(0, 0)
    return SourceRange(min(starts), max(ends))


def transform_template(
    entries: Sequence[MarkupEntry],
    text: str,
    parse_script: ScriptParser,
    *,
    settings: TemplateSettings | None = None,
) -> TemplateResult:
    """Transform markup ``entries`` taken from ``text`` into a template tree.

    Args:
        entries: Element-level markup entries (never a document or fragment).
        text: The whole source text the entries' locations point into.
        parse_script: Script parser used for interpolations and directive
            values.
        settings: Template syntax; defaults to :class:`TemplateSettings`.

    Returns:
        A :class:`TemplateResult` whose root spans the given entries.

    Raises:
        TemplateInvariantError: If the entries are structurally inconsistent
            with ``text`` or a document/fragment entry is passed in.
    """

    transformer = TemplateTransformer(text, parse_script, settings=settings)
    return transformer.transform(entries)
