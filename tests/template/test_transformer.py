"""Tests for :mod:`sfcparse.template.transformer`."""

from __future__ import annotations

import pytest
from structlog.testing import capture_logs

from sfcparse.core.config import TemplateSettings
from sfcparse.markup import MarkupDocument, MarkupFragment
from sfcparse.template import (
    AttributeValueNode,
    DirectiveKeyNode,
    DocumentNode,
    ExpressionContainerNode,
    IdentifierNode,
    LineIndex,
    NodeType,
    Position,
    SourceRange,
    TemplateInvariantError,
    TextNode,
    TokenKind,
    end_location,
    iter_nodes,
    transform_template,
)

_COMPONENT = (
    "<template>\n"
    "  <!-- greeting -->\n"
    '  <a :href="url" @click.stop="go(1)" title=\'x &amp; y\' disabled>\n'
    "    Hello {{ user.name }}!\n"
    "  </a>\n"
    "  <x-icon />\n"
    "</template>\n"
)


@pytest.fixture
def transform(parse_script, build_markup):
    def run(source: str, **kwargs):
        document = build_markup(source)
        return transform_template(document.children, source, parse_script, **kwargs)

    return run


def _template(result):
    return result.root.children[0]


def test_interpolation_splits_text_into_siblings(transform) -> None:
    result = transform("<template>a {{ b }} c</template>")

    template = _template(result)
    assert [child.type for child in template.children] == [
        NodeType.TEXT,
        NodeType.EXPRESSION_CONTAINER,
        NodeType.TEXT,
    ]
    before, container, after = template.children
    assert (before.raw, after.raw) == ("a ", " c")
    assert container.expression.name == "b"
    assert container.range == SourceRange(12, 19)
    assert [token.raw for token in result.tokens] == [
        "<",
        "template",
        ">",
        "a ",
        "{{",
        "b",
        "}}",
        " c",
        "</",
        "template",
        ">",
    ]


def test_syntax_errors_stay_inside_their_container(transform) -> None:
    source = "<template><p>{{ +++ }}</p><p>{{ ok }}</p></template>"
    result = transform(source)

    broken, fine = (element.children[0] for element in _template(result).children)
    assert broken.expression is None
    assert broken.syntax_error is not None
    assert fine.syntax_error is None
    assert fine.expression.name == "ok"

    raws = [token.raw for token in result.tokens]
    assert "+" not in raws and "++" not in raws
    assert raws.count("{{") == 2 and raws.count("}}") == 2


def test_child_ranges_nest_inside_their_parent(transform) -> None:
    result = transform(_COMPONENT)

    for node in iter_nodes(result.root):
        if node.parent is not None:
            assert node.parent.range.contains(node.range), node


def test_tokens_and_comments_cover_source_up_to_whitespace(transform) -> None:
    result = transform(_COMPONENT)

    spans = sorted(
        [(token.start, token.end) for token in result.tokens]
        + [(comment.start, comment.end) for comment in result.comments]
    )
    cursor = 0
    for start, end in spans:
        assert start >= cursor
        assert _COMPONENT[cursor:start].strip() == ""
        cursor = end
    assert _COMPONENT[cursor:].strip() == ""

    for previous, token in zip(result.tokens, result.tokens[1:]):
        assert previous.end <= token.start


def test_locations_agree_with_raw_text(transform) -> None:
    result = transform(_COMPONENT)
    index = LineIndex(_COMPONENT)

    for token in result.tokens:
        assert token.raw == _COMPONENT[token.start : token.end]
        assert token.loc == index.location(token.start, token.end)
        assert token.loc.end == end_location(
            token.raw, token.loc.start.line, token.loc.start.column
        )
    for node in iter_nodes(result.root):
        assert node.loc == index.location(node.start, node.end)


def test_node_boundaries_are_token_boundaries(transform) -> None:
    result = transform(_COMPONENT)

    for node in iter_nodes(_template(result)):
        assert result.tokens.first_token(node, include_comments=True).start == node.start
        assert result.tokens.last_token(node, include_comments=True).end == node.end


def test_transform_is_deterministic(transform) -> None:
    source = _COMPONENT.replace("go(1)", "go(+++)")

    first = transform(source)
    second = transform(source)

    assert first.root == second.root
    assert first.tokens == second.tokens
    assert first.comments == second.comments


def test_directive_and_plain_attributes(transform) -> None:
    result = transform(_COMPONENT)

    anchor = next(
        node for node in iter_nodes(result.root) if getattr(node, "name", None) == "a"
    )
    href, click, title, disabled = anchor.attributes

    assert isinstance(href.key, DirectiveKeyNode)
    assert (href.key.name, href.key.argument, href.key.shorthand) == (":", "href", True)
    assert href.value.expression.name == "url"

    assert (click.key.name, click.key.argument, click.key.modifiers) == (
        "@",
        "click",
        ("stop",),
    )
    assert click.value.expression.type == "call_expression"

    assert isinstance(title.key, IdentifierNode)
    assert isinstance(title.value, AttributeValueNode)
    assert title.value.value == "x & y"
    assert title.value.raw == "'x &amp; y'"

    assert disabled.key.name == "disabled"
    assert disabled.value is None
    assert all(attribute.parent is anchor for attribute in anchor.attributes)

    first = result.tokens.first_token(href)
    assert [result.tokens.first_token(href, skip=i).raw for i in range(5)] == [
        ":href",
        "=",
        '"',
        "url",
        '"',
    ]
    assert first.kind is TokenKind.HTML_IDENTIFIER


def test_whitespace_around_equals_sign_is_not_a_token(transform) -> None:
    result = transform('<template><a :x = "y" t = "u"></a></template>')

    raws = [token.raw for token in result.tokens]
    assert raws[5:15] == [":x", "=", '"', "y", '"', "t", "=", '"u"', ">", "</"]


def test_self_closing_and_void_elements(transform) -> None:
    result = transform('<template><br><img src="a"/><x-icon /></template>')

    br, img, icon = _template(result).children
    assert br.closing_tag is None and not br.opening_tag.self_closing
    assert img.opening_tag.self_closing
    assert icon.name == "x-icon"
    assert icon.opening_tag.self_closing
    assert result.tokens.last_token(img.opening_tag).raw == "/>"
    assert result.tokens.first_token(icon, skip=1).raw == "x-icon"


def test_comments_are_collected_outside_the_tree(transform) -> None:
    result = transform(_COMPONENT)

    assert [comment.value for comment in result.comments] == [" greeting "]
    assert result.comments[0].kind is TokenKind.HTML_COMMENT
    assert all(token.kind is not TokenKind.HTML_COMMENT for token in result.tokens)
    assert all(node.type is not NodeType.COMMENT for node in iter_nodes(result.root))


def test_text_values_are_entity_decoded(transform) -> None:
    result = transform("<template>a &amp; b</template>")

    (text,) = _template(result).children
    assert isinstance(text, TextNode)
    assert (text.value, text.raw) == ("a & b", "a &amp; b")


def test_multiline_interpolation(transform) -> None:
    result = transform("<template>{{\n  a.b\n}}</template>")

    (container,) = _template(result).children
    assert isinstance(container, ExpressionContainerNode)
    assert container.expression.type == "member_expression"
    assert container.expression.loc.start == Position(2, 2)
    assert container.loc.end == Position(3, 2)


def test_interpolation_ending_in_line_comment(transform) -> None:
    result = transform("<template>{{ i // note\n }}</template>")

    (container,) = _template(result).children
    assert container.syntax_error is None
    assert container.expression.type == "identifier"
    assert [comment.value for comment in result.comments] == [" note"]


def test_custom_interpolation_delimiters(transform) -> None:
    settings = TemplateSettings(interpolation_open="[[", interpolation_close="]]")
    result = transform("<template>{{ a }} [[ b ]]</template>", settings=settings)

    text, container = _template(result).children
    assert text.raw == "{{ a }} "
    assert container.expression.name == "b"


def test_unknown_markup_entries_are_skipped(transform) -> None:
    with capture_logs() as logs:
        result = transform("<template><p>a</p></b></template>")

    assert [child.name for child in _template(result).children] == ["p"]
    assert "b" not in [token.raw for token in result.tokens]
    skipped = [entry for entry in logs if entry["event"] == "markup-node-skipped"]
    assert skipped and skipped[0]["node_name"] == "#erroneousEndTag"


@pytest.mark.parametrize("entry", [MarkupDocument(), MarkupFragment()])
def test_document_entries_are_rejected(parse_script, entry) -> None:
    with pytest.raises(TemplateInvariantError):
        transform_template((entry,), "", parse_script)


def test_empty_entries_yield_empty_root(parse_script) -> None:
    result = transform_template((), "", parse_script)

    assert isinstance(result.root, DocumentNode)
    assert result.root.range == SourceRange(0, 0)
    assert result.root.children == ()
    assert len(result.tokens) == 0
    assert result.tokens.sealed
