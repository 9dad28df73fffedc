"""Tests for the tree-sitter script parser."""

from __future__ import annotations

import pytest

from sfcparse.script import ScriptSyntaxError, TreeSitterScriptParser
from sfcparse.template import Position, SourceRange, TokenKind


@pytest.fixture
def parse() -> TreeSitterScriptParser:
    pytest.importorskip("tree_sitter_languages")
    return TreeSitterScriptParser()


def test_tokens_are_leaves_with_kinds(parse) -> None:
    program = parse("typeof a + 1 === 'x'")

    assert [(token.kind, token.value) for token in program.tokens] == [
        (TokenKind.KEYWORD, "typeof"),
        (TokenKind.IDENTIFIER, "a"),
        (TokenKind.PUNCTUATOR, "+"),
        (TokenKind.NUMERIC, "1"),
        (TokenKind.PUNCTUATOR, "==="),
        (TokenKind.STRING, "'x'"),
    ]
    assert program.range == SourceRange(0, 20)


def test_body_holds_named_nodes(parse) -> None:
    program = parse("(a.b)")

    (statement,) = program.body
    assert statement.type == "expression_statement"
    wrapped = statement.children[0]
    assert wrapped.type == "parenthesized_expression"
    member = wrapped.children[0]
    assert member.type == "member_expression"
    assert [child.name for child in member.children] == ["a", "b"]


def test_comments_are_split_from_tokens(parse) -> None:
    program = parse("// lead\nfoo(/* arg */ 1)")

    assert [token.value for token in program.tokens] == ["foo", "(", "1", ")"]
    line, block = program.comments
    assert (line.kind, line.value) == (TokenKind.LINE, " lead")
    assert (block.kind, block.value) == (TokenKind.BLOCK, " arg ")
    assert block.loc.start == Position(2, 4)
    assert all(child.type != "comment" for child in program.body)


def test_offsets_are_characters_not_bytes(parse) -> None:
    program = parse("'ñ' + b")

    identifier = program.tokens[-1]
    assert identifier.value == "b"
    assert identifier.range == SourceRange(6, 7)


def test_invalid_code_raises(parse) -> None:
    with pytest.raises(ScriptSyntaxError) as excinfo:
        parse("a +\n")

    assert excinfo.value.line >= 1
    assert "(" in str(excinfo.value)


def test_unknown_grammar_is_reported() -> None:
    pytest.importorskip("tree_sitter_languages")
    from sfcparse.script import ScriptParserUnavailableError

    with pytest.raises(ScriptParserUnavailableError):
        TreeSitterScriptParser(language="no-such-language")("a")


def test_unicode_line_separators_act_as_whitespace(parse) -> None:
    text = "a\u2028+\u2029b"
    program = parse(text)

    assert [token.value for token in program.tokens] == ["a", "+", "b"]
    identifier = program.tokens[-1]
    assert identifier.range == SourceRange(4, 5)
    assert identifier.loc.start == Position(3, 0)
    (statement,) = program.body
    assert statement.raw == text
