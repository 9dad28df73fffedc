"""Plain-data and text renderings of parse results for the CLI."""

from __future__ import annotations

from typing import Any, Iterator

from sfcparse.component import ComponentResult
from sfcparse.script import ScriptNode
from sfcparse.template import (
    AttributeNode,
    AttributeValueNode,
    CommentNode,
    DirectiveKeyNode,
    ElementNode,
    ExpressionContainerNode,
    IdentifierNode,
    OpeningTagNode,
    SourceLocation,
    TemplateNode,
    TextNode,
    Token,
)

__all__ = [
    "collect_tokens",
    "token_to_dict",
    "node_to_dict",
    "format_token",
    "format_tree",
]


def collect_tokens(result: ComponentResult) -> list[tuple[str, Token]]:
    """Return ``(region, token)`` pairs of script and template in offset order."""

    pairs = [("script", token) for token in result.script.tokens]
    if result.template is not None:
        pairs.extend(("template", token) for token in result.template.tokens)
    pairs.sort(key=lambda pair: (pair[1].start, pair[1].end))
    return pairs


def _loc_to_dict(loc: SourceLocation) -> dict[str, Any]:
    return {
        "start": {"line": loc.start.line, "column": loc.start.column},
        "end": {"line": loc.end.line, "column": loc.end.column},
    }


def token_to_dict(region: str, token: Token) -> dict[str, Any]:
    return {
        "region": region,
        "kind": token.kind.value,
        "value": token.value,
        "raw": token.raw,
        "range": [token.start, token.end],
        "loc": _loc_to_dict(token.loc),
    }


def _script_to_dict(node: ScriptNode) -> dict[str, Any]:
    return {
        "type": node.type,
        "range": [node.range.start, node.range.end],
        "raw": node.raw,
        "children": [_script_to_dict(child) for child in node.children],
    }


def node_to_dict(node: TemplateNode) -> dict[str, Any]:
    """Convert a template node (and its subtree) into JSON-ready data."""

    data: dict[str, Any] = {
        "type": node.type.value,
        "range": [node.start, node.end],
        "loc": _loc_to_dict(node.loc),
    }
    if isinstance(node, IdentifierNode):
        data["name"] = node.name
    elif isinstance(node, DirectiveKeyNode):
        data.update(
            name=node.name,
            argument=node.argument,
            modifiers=list(node.modifiers),
            shorthand=node.shorthand,
        )
    elif isinstance(node, (TextNode, AttributeValueNode)):
        data.update(value=node.value, raw=node.raw)
    elif isinstance(node, ExpressionContainerNode):
        data["expression"] = (
            _script_to_dict(node.expression) if node.expression is not None else None
        )
        data["syntaxError"] = (
            str(node.syntax_error) if node.syntax_error is not None else None
        )
    elif isinstance(node, CommentNode):
        data.update(kind=node.kind.value, value=node.value)
    elif isinstance(node, AttributeNode):
        data["key"] = node_to_dict(node.key)
        data["value"] = node_to_dict(node.value) if node.value is not None else None
    elif isinstance(node, OpeningTagNode):
        data["selfClosing"] = node.self_closing
    elif isinstance(node, ElementNode):
        data.update(
            name=node.name,
            startTag=node_to_dict(node.opening_tag),
            attributes=[node_to_dict(attribute) for attribute in node.attributes],
            children=[node_to_dict(child) for child in node.children],
            endTag=(
                node_to_dict(node.closing_tag) if node.closing_tag is not None else None
            ),
        )
    elif hasattr(node, "children"):
        data["children"] = [node_to_dict(child) for child in node.children]
    return data


def format_token(region: str, token: Token) -> str:
    """Return one aligned line describing ``token``.

    Example:
        >>> from sfcparse.template import LineIndex, TokenKind
        >>> token = Token.from_source(
        ...     TokenKind.PUNCTUATOR, "<a>", 0, 1, index=LineIndex("<a>")
        ... )
        >>> format_token("template", token)
        "template  1:0-1:1    Punctuator          '<'"
    """

    start, end = token.loc.start, token.loc.end
    span = f"{start.line}:{start.column}-{end.line}:{end.column}"
    return f"{region:<9} {span:<10} {token.kind.value:<19} {token.raw!r}"


def format_tree(node: TemplateNode, depth: int = 0) -> Iterator[str]:
    """Yield indented summary lines for ``node`` and its descendants."""

    yield "  " * depth + _describe(node)
    if isinstance(node, ExpressionContainerNode) and node.expression is not None:
        for script_node, script_depth in _walk_script(node.expression, depth + 1):
            yield "  " * script_depth + f"{script_node.type} {script_node.raw!r}"
        return
    for child in node.iter_children():
        yield from format_tree(child, depth + 1)


def _describe(node: TemplateNode) -> str:
    label = f"{node.type.value} [{node.start}, {node.end})"
    if isinstance(node, (ElementNode, IdentifierNode)):
        return f"{label} {node.name}"
    if isinstance(node, DirectiveKeyNode):
        modifiers = "".join(f".{modifier}" for modifier in node.modifiers)
        argument = ""
        if node.argument is not None:
            # Shorthand sigils already separate name and argument.
            argument = node.argument if node.shorthand else f":{node.argument}"
        return f"{label} {node.name}{argument}{modifiers}"
    if isinstance(node, (TextNode, AttributeValueNode)):
        return f"{label} {node.raw!r}"
    if isinstance(node, ExpressionContainerNode) and node.syntax_error is not None:
        return f"{label} error: {node.syntax_error}"
    return label


def _walk_script(node: ScriptNode, depth: int) -> Iterator[tuple[ScriptNode, int]]:
    yield node, depth
    for child in node.children:
        yield from _walk_script(child, depth + 1)
