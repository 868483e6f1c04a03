"""Tests for the mdl_lexer module."""

import pytest

from mdlquery.exceptions import LexError
from mdlquery.mdl_lexer import Lexer, tokenize


def token_types(source):
    return [token.type for token in tokenize(source)]


class TestTokens:
    """Token kinds produced for each construct of the language."""

    def test_model_skeleton(self):
        """Test the tokens of a minimal model."""
        assert token_types("Account { id }") == ["ID", "LCURLY", "ID", "RCURLY"]

    def test_keywords(self):
        """Test that keywords get their own tokens."""
        assert token_types("as with pub") == ["AS", "WITH", "PUB"]

    def test_keyword_prefix_is_an_identifier(self):
        """Test that words starting with a keyword are identifiers."""
        assert token_types("ask without public") == ["ID", "ID", "ID"]

    def test_edge_arrows(self):
        """Test both arrow directions."""
        assert token_types("->manage->Project <-like<-User") == [
            "OUTGOING",
            "ID",
            "OUTGOING",
            "ID",
            "INCOMING",
            "ID",
            "INCOMING",
            "ID",
        ]

    def test_foreign_node_brackets(self):
        """Test angle brackets of a foreign node."""
        assert token_types("author<User>") == ["ID", "LESSTHAN", "ID", "GREATERTHAN"]

    def test_options(self):
        """Test the tokens of an options list."""
        assert token_types("with(partial,)") == [
            "WITH",
            "LPAREN",
            "ID",
            "COMMA",
            "RPAREN",
        ]

    def test_raw_marker_before_keyword(self):
        """Test the raw marker in front of a keyword."""
        tokens = tokenize("r#as")
        assert [(t.type, t.value) for t in tokens] == [("RAW", "r#"), ("AS", "as")]

    def test_plain_r_is_an_identifier(self):
        """Test that r alone is an identifier."""
        assert token_types("r rust") == ["ID", "ID"]

    def test_integer(self):
        """Test an integer token."""
        tokens = tokenize("42")
        assert [(t.type, t.value) for t in tokens] == [("INTEGER", "42")]

    def test_digits_followed_by_letters_are_an_identifier(self):
        """Test that digits followed by letters are an identifier."""
        assert token_types("123abc") == ["ID"]

    def test_positions(self):
        """Test token offsets."""
        assert [t.lexpos for t in tokenize("A { b }")] == [0, 2, 4, 6]


class TestCommentsAndWhitespace:
    """Comments and whitespace never produce tokens."""

    def test_line_comment(self):
        """Test skipping a line comment."""
        assert token_types("a // b c\nd") == ["ID", "ID"]

    def test_block_comment(self):
        """Test skipping a block comment."""
        assert token_types("a /* b\n c */ d") == ["ID", "ID"]

    def test_line_numbers(self):
        """Test that line numbers count newlines in comments."""
        tokens = tokenize("a\n/* x\ny */\n  b")
        assert [t.lineno for t in tokens] == [1, 4]

    def test_empty_source(self):
        """Test an empty source."""
        assert not tokenize("")

    def test_only_comments(self):
        """Test a source holding only comments."""
        assert not tokenize("// nothing\n/* here */")


class TestLexErrors:
    """Characters outside the language raise ``LexError``."""

    def test_error_position(self):
        """Test the position of an illegal character."""
        with pytest.raises(LexError) as error:
            tokenize("Account { id; }")
        assert error.value.character == ";"
        assert error.value.position == 12
        assert error.value.line == 1
        assert error.value.column == 13

    def test_error_on_second_line(self):
        """Test the line and column of an illegal character."""
        with pytest.raises(LexError) as error:
            tokenize("A {\n  $ }")
        assert error.value.position == 6
        assert error.value.line == 2
        assert error.value.column == 3

    def test_error_message(self):
        """Test the message of a lex error."""
        with pytest.raises(LexError, match="Illegal character"):
            tokenize("#")


class TestLexer:
    """The ``Lexer`` iterable."""

    def test_restartable(self):
        """Test iterating the same lexer twice."""
        lexer = Lexer("Account { pub id, ->a->B as c }")
        first = [(t.type, t.value, t.lexpos) for t in lexer]
        second = [(t.type, t.value, t.lexpos) for t in lexer]
        assert first == second
        assert len(first) == 12

    def test_lazy(self):
        """Test that tokens come before a later error."""
        tokens = iter(Lexer("a b $"))
        assert next(tokens).value == "a"
        assert next(tokens).value == "b"
        with pytest.raises(LexError):
            next(tokens)

    def test_independent_iterators(self):
        """Test two iterators over one lexer."""
        lexer = Lexer("a b")
        first, second = iter(lexer), iter(lexer)
        assert next(first).value == "a"
        assert next(second).value == "a"
        assert next(first).value == "b"
