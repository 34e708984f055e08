"""
Cosmos DB SQL Lexical Analyzer.

Tokenizes the Cosmos DB SQL subset accepted by the query engine:

- Keywords (case-insensitive): SELECT, TOP, FROM, AS, WHERE, ORDER, BY,
  ASC, DESC, LIMIT, AND, OR, NOT, BETWEEN, TRUE, FALSE, NULL
- Identifiers (case-sensitive): letter or underscore, then letters,
  digits or underscores
- Parameters: @name
- Single-quoted strings (no escape sequences)
- Numbers: optional leading '-', integer part, optional '.' and fraction
- Operators and punctuation: = != <> < <= > >= * . , ( )

Example:
    >>> lexer = SqlLexer("SELECT * FROM c WHERE c.age > 21")
    >>> [t.type.name for t in lexer.tokenize()]
    ['SELECT', 'STAR', 'FROM', 'IDENTIFIER', 'WHERE', 'IDENTIFIER', 'DOT',
     'IDENTIFIER', 'GT', 'INTEGER', 'EOF']

Author: LocalCosmos Team
Version: 1.0.0
"""

from enum import Enum, auto
from dataclasses import dataclass
from typing import Any, Optional, List

from .exceptions import QuerySyntaxError


class TokenType(Enum):
    """SQL token types for lexical analysis."""

    # Literals
    STRING = auto()      # 'hello'
    INTEGER = auto()     # 123, -456
    FLOAT = auto()       # 123.45, -0.5
    BOOLEAN = auto()     # true, false
    NULL = auto()        # null

    # Names
    IDENTIFIER = auto()  # c, age, _ts
    PARAMETER = auto()   # @name

    # Clause keywords
    SELECT = auto()
    TOP = auto()
    FROM = auto()
    AS = auto()
    WHERE = auto()
    ORDER = auto()
    BY = auto()
    ASC = auto()
    DESC = auto()
    LIMIT = auto()

    # Logical operators
    AND = auto()
    OR = auto()
    NOT = auto()
    BETWEEN = auto()

    # Comparison operators
    EQ = auto()          # =
    NE = auto()          # != or <>
    GT = auto()          # >
    GE = auto()          # >=
    LT = auto()          # <
    LE = auto()          # <=

    # Punctuation
    STAR = auto()        # *
    DOT = auto()         # .
    COMMA = auto()       # ,
    LPAREN = auto()      # (
    RPAREN = auto()      # )

    # Special
    EOF = auto()

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Position:
    """
    Source position in the query string.

    Tracks line, column, and absolute offset for error reporting.
    """
    line: int       # 1-indexed line number
    column: int     # 1-indexed column number
    offset: int     # 0-indexed absolute character position

    def __str__(self) -> str:
        return f"line {self.line}, column {self.column}"


@dataclass(frozen=True)
class Token:
    """Lexical token with type, value, and position information."""
    type: TokenType
    value: Any
    position: Position
    length: int

    @property
    def is_keyword(self) -> bool:
        return self.type in KEYWORD_TYPES

    def __str__(self) -> str:
        if self.type == TokenType.EOF:
            return f"EOF at {self.position}"
        return f"{self.type.name}({self.value!r}) at {self.position}"


class LexerError(QuerySyntaxError):
    """Invalid character sequence in the query string."""

    def __init__(
        self,
        message: str,
        position: Position,
        fragment: Optional[str] = None,
        suggestion: Optional[str] = None,
    ):
        super().__init__(f"Lexical error: {message}", position, fragment, suggestion)


# Keywords mapping (case-insensitive)
KEYWORDS = {
    'select': TokenType.SELECT,
    'top': TokenType.TOP,
    'from': TokenType.FROM,
    'as': TokenType.AS,
    'where': TokenType.WHERE,
    'order': TokenType.ORDER,
    'by': TokenType.BY,
    'asc': TokenType.ASC,
    'desc': TokenType.DESC,
    'limit': TokenType.LIMIT,
    'and': TokenType.AND,
    'or': TokenType.OR,
    'not': TokenType.NOT,
    'between': TokenType.BETWEEN,
    'true': TokenType.BOOLEAN,
    'false': TokenType.BOOLEAN,
    'null': TokenType.NULL,
}

KEYWORD_TYPES = frozenset(KEYWORDS.values())


def _is_digit(char: Optional[str]) -> bool:
    """ASCII digit check; str.isdigit also accepts superscripts and other scripts."""
    return char is not None and '0' <= char <= '9'

_SINGLE_CHAR_TOKENS = {
    '*': TokenType.STAR,
    '.': TokenType.DOT,
    ',': TokenType.COMMA,
    '(': TokenType.LPAREN,
    ')': TokenType.RPAREN,
    '=': TokenType.EQ,
}

_TWO_CHAR_TOKENS = {
    '!=': TokenType.NE,
    '<>': TokenType.NE,
    '<=': TokenType.LE,
    '>=': TokenType.GE,
}


class SqlLexer:
    """
    Cosmos DB SQL lexical analyzer.

    Transforms a query string into a list of typed tokens terminated by EOF.
    Instances are single-use and not thread-safe.
    """

    def __init__(self, input_str: str):
        """
        Initialize lexer with input string.

        Args:
            input_str: SQL query text to tokenize
        """
        self.input = input_str
        self.pos = 0
        self.line = 1
        self.column = 1

    def _current_position(self) -> Position:
        return Position(self.line, self.column, self.pos)

    def _peek(self, offset: int = 0) -> Optional[str]:
        """
        Peek at character without consuming.

        Args:
            offset: Lookahead offset (0 = current, 1 = next, etc.)

        Returns:
            Character at position or None if EOF
        """
        pos = self.pos + offset
        if pos < len(self.input):
            return self.input[pos]
        return None

    def _advance(self) -> Optional[str]:
        """Consume and return current character, updating line/column."""
        if self.pos >= len(self.input):
            return None

        char = self.input[self.pos]
        self.pos += 1

        if char == '\n':
            self.line += 1
            self.column = 1
        else:
            self.column += 1

        return char

    def _skip_whitespace(self):
        char = self._peek()
        while char is not None and char.isspace():
            self._advance()
            char = self._peek()

    def _error(self, message: str, position: Position, suggestion: Optional[str] = None) -> LexerError:
        return LexerError(message, position, self.input[position.offset:], suggestion)

    def _read_string(self) -> Token:
        """
        Read string literal: 'hello'.

        Everything up to the next single quote is taken verbatim.

        Raises:
            LexerError: If string is not closed
        """
        start_pos = self._current_position()
        start_offset = self.pos

        self._advance()  # opening quote

        chars = []
        while True:
            char = self._peek()
            if char is None:
                raise self._error(
                    "Unclosed string literal",
                    start_pos,
                    "Add closing single quote (')"
                )
            self._advance()
            if char == "'":
                break
            chars.append(char)

        return Token(TokenType.STRING, ''.join(chars), start_pos, self.pos - start_offset)

    def _read_number(self) -> Token:
        """
        Read number literal.

        Integers keep their integral type; a literal with a decimal point is
        a float (``1.`` is accepted as ``1.0``).

        Returns:
            INTEGER or FLOAT token
        """
        start_pos = self._current_position()
        start_offset = self.pos

        chars = []
        if self._peek() == '-':
            chars.append(self._advance())

        while _is_digit(self._peek()):
            chars.append(self._advance())

        is_float = False
        next_char = self._peek(1)
        # A dot followed by a letter is a path separator, not a fraction
        if self._peek() == '.' and not (next_char is not None and (next_char.isalpha() or next_char == '_')):
            is_float = True
            chars.append(self._advance())
            while _is_digit(self._peek()):
                chars.append(self._advance())

        value_str = ''.join(chars)
        length = self.pos - start_offset

        if is_float:
            return Token(TokenType.FLOAT, float(value_str), start_pos, length)
        return Token(TokenType.INTEGER, int(value_str), start_pos, length)

    def _read_identifier(self) -> Token:
        """Read identifier or keyword."""
        start_pos = self._current_position()
        start_offset = self.pos

        chars = []
        while True:
            char = self._peek()
            if char is not None and (char.isalnum() or char == '_'):
                chars.append(self._advance())
            else:
                break

        value = ''.join(chars)
        length = self.pos - start_offset

        lower_value = value.lower()
        if lower_value in KEYWORDS:
            token_type = KEYWORDS[lower_value]
            if token_type == TokenType.BOOLEAN:
                return Token(token_type, lower_value == 'true', start_pos, length)
            if token_type == TokenType.NULL:
                return Token(token_type, None, start_pos, length)
            return Token(token_type, value, start_pos, length)

        return Token(TokenType.IDENTIFIER, value, start_pos, length)

    def _read_parameter(self) -> Token:
        """Read parameter reference: @name. The token value excludes the '@'."""
        start_pos = self._current_position()
        start_offset = self.pos

        self._advance()  # '@'

        char = self._peek()
        if char is None or not (char.isalpha() or char == '_'):
            raise self._error(
                "Expected parameter name after '@'",
                start_pos,
                "Parameters look like @name"
            )

        chars = []
        while self._peek() is not None and (self._peek().isalnum() or self._peek() == '_'):
            chars.append(self._advance())

        return Token(TokenType.PARAMETER, ''.join(chars), start_pos, self.pos - start_offset)

    def _read_operator(self) -> Token:
        start_pos = self._current_position()
        char = self._peek()
        pair = char + (self._peek(1) or '')

        if pair in _TWO_CHAR_TOKENS:
            self._advance()
            self._advance()
            return Token(_TWO_CHAR_TOKENS[pair], pair, start_pos, 2)

        if char == '<':
            self._advance()
            return Token(TokenType.LT, char, start_pos, 1)
        if char == '>':
            self._advance()
            return Token(TokenType.GT, char, start_pos, 1)
        if char in _SINGLE_CHAR_TOKENS:
            self._advance()
            return Token(_SINGLE_CHAR_TOKENS[char], char, start_pos, 1)

        if char == '!':
            raise self._error("Expected '=' after '!'", start_pos, "Use != for inequality")

        raise self._error(f"Unexpected character: {char!r}", start_pos)

    def tokenize(self) -> List[Token]:
        """
        Tokenize input string into list of tokens.

        Returns:
            List of tokens (excludes whitespace, includes EOF)

        Raises:
            LexerError: If invalid syntax is encountered
        """
        tokens = []

        while self.pos < len(self.input):
            char = self._peek()

            if char.isspace():
                self._skip_whitespace()
                continue

            if char == "'":
                tokens.append(self._read_string())
            elif _is_digit(char) or (char == '-' and _is_digit(self._peek(1))):
                tokens.append(self._read_number())
            elif char.isalpha() or char == '_':
                tokens.append(self._read_identifier())
            elif char == '@':
                tokens.append(self._read_parameter())
            else:
                tokens.append(self._read_operator())

        tokens.append(Token(TokenType.EOF, None, self._current_position(), 0))

        return tokens

    def __repr__(self) -> str:
        return f"SqlLexer(input={self.input!r}, pos={self.pos})"
