"""
Unit tests for the Cosmos DB SQL lexer.
"""

import pytest

from localcosmos.services.cosmosdb.exceptions import QuerySyntaxError
from localcosmos.services.cosmosdb.lexer import LexerError, Position, SqlLexer, TokenType
from localcosmos.services.cosmosdb.parser import parse_query


def token_types(sql: str):
    return [t.type for t in SqlLexer(sql).tokenize()]


class TestKeywords:
    """Tests for keyword recognition."""

    def test_select_star_from(self):
        """Test basic clause keywords."""
        assert token_types("SELECT * FROM c") == [
            TokenType.SELECT, TokenType.STAR, TokenType.FROM, TokenType.IDENTIFIER, TokenType.EOF,
        ]

    def test_keywords_case_insensitive(self):
        """Test keywords in mixed case."""
        assert token_types("select Top 5 * from c order BY c.x desc") == [
            TokenType.SELECT, TokenType.TOP, TokenType.INTEGER, TokenType.STAR,
            TokenType.FROM, TokenType.IDENTIFIER, TokenType.ORDER, TokenType.BY,
            TokenType.IDENTIFIER, TokenType.DOT, TokenType.IDENTIFIER, TokenType.DESC,
            TokenType.EOF,
        ]

    def test_boolean_and_null_literals(self):
        """Test true/false/null produce typed values."""
        tokens = SqlLexer("TRUE false Null").tokenize()

        assert tokens[0].type == TokenType.BOOLEAN and tokens[0].value is True
        assert tokens[1].type == TokenType.BOOLEAN and tokens[1].value is False
        assert tokens[2].type == TokenType.NULL and tokens[2].value is None

    def test_identifiers_keep_case(self):
        """Test identifiers are case-sensitive."""
        tokens = SqlLexer("Name _ts address2").tokenize()

        assert [t.value for t in tokens[:-1]] == ["Name", "_ts", "address2"]
        assert all(t.type == TokenType.IDENTIFIER for t in tokens[:-1])


class TestLiterals:
    """Tests for string and number literals."""

    def test_string_literal(self):
        """Test single-quoted string."""
        tokens = SqlLexer("'hello world'").tokenize()

        assert tokens[0].type == TokenType.STRING
        assert tokens[0].value == "hello world"

    def test_string_has_no_escapes(self):
        """Test backslashes are kept verbatim."""
        tokens = SqlLexer(r"'a\nb'").tokenize()

        assert tokens[0].value == "a\\nb"

    def test_integer_keeps_type(self):
        """Test integer literal stays int."""
        token = SqlLexer("30").tokenize()[0]

        assert token.type == TokenType.INTEGER
        assert token.value == 30
        assert isinstance(token.value, int)

    def test_float_literal(self):
        """Test decimal literal becomes float."""
        token = SqlLexer("30.0").tokenize()[0]

        assert token.type == TokenType.FLOAT
        assert isinstance(token.value, float)

    def test_negative_number(self):
        """Test leading minus is part of the number."""
        tokens = SqlLexer("c.x > -5.5").tokenize()

        assert tokens[4].type == TokenType.FLOAT
        assert tokens[4].value == -5.5

    def test_trailing_dot_number(self):
        """Test '1.' is accepted as a float."""
        token = SqlLexer("1.").tokenize()[0]

        assert token.type == TokenType.FLOAT
        assert token.value == 1.0

    def test_unclosed_string(self):
        """Test unclosed string raises with position."""
        with pytest.raises(LexerError) as exc_info:
            SqlLexer("SELECT * FROM c WHERE c.name = 'abc").tokenize()

        assert exc_info.value.position.offset == 31
        assert "Unclosed string literal" in str(exc_info.value)


class TestOperators:
    """Tests for operators and punctuation."""

    def test_comparison_operators(self):
        """Test every comparison operator."""
        assert token_types("= != <> < <= > >=")[:-1] == [
            TokenType.EQ, TokenType.NE, TokenType.NE, TokenType.LT,
            TokenType.LE, TokenType.GT, TokenType.GE,
        ]

    def test_punctuation(self):
        """Test punctuation tokens."""
        assert token_types("( , ) . *")[:-1] == [
            TokenType.LPAREN, TokenType.COMMA, TokenType.RPAREN, TokenType.DOT, TokenType.STAR,
        ]

    def test_parameter(self):
        """Test parameter token excludes '@'."""
        token = SqlLexer("@minAge").tokenize()[0]

        assert token.type == TokenType.PARAMETER
        assert token.value == "minAge"

    def test_bare_at_sign(self):
        """Test '@' without a name is rejected."""
        with pytest.raises(LexerError):
            SqlLexer("c.x = @ 1").tokenize()

    def test_bang_without_equals(self):
        """Test lone '!' is rejected."""
        with pytest.raises(LexerError):
            SqlLexer("c.x ! 1").tokenize()

    def test_unexpected_character(self):
        """Test unknown character raises a syntax error with fragment."""
        with pytest.raises(QuerySyntaxError) as exc_info:
            SqlLexer("SELECT # FROM c").tokenize()

        assert exc_info.value.fragment == "# FROM c"

    def test_non_ascii_digit_rejected(self):
        """Test superscript digits are not read as numbers."""
        with pytest.raises(QuerySyntaxError):
            SqlLexer("SELECT * FROM c WHERE c.x = \u00b2").tokenize()

    def test_non_ascii_digit_rejected_by_parse_query(self):
        """Test parse_query reports a syntax error for a superscript digit."""
        with pytest.raises(QuerySyntaxError):
            parse_query("SELECT * FROM c WHERE c.x = \u00b2")


class TestPositions:
    """Tests for position tracking."""

    def test_line_and_column(self):
        """Test positions across newlines."""
        tokens = SqlLexer("SELECT *\nFROM c").tokenize()

        assert tokens[0].position == Position(1, 1, 0)
        assert tokens[2].position == Position(2, 1, 9)
        assert tokens[3].position == Position(2, 6, 14)

    def test_eof_token(self):
        """Test EOF is always last."""
        tokens = SqlLexer("").tokenize()

        assert len(tokens) == 1
        assert tokens[0].type == TokenType.EOF
