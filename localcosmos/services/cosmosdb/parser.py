"""
Cosmos DB SQL Parser.

Recursive descent parser that turns the token stream from ``SqlLexer`` into
an immutable ``Query`` AST.

Grammar (EBNF):
    query         = "SELECT" [ "TOP" int ] select_list "FROM" ident [ [ "AS" ] ident ]
                    [ "WHERE" or_expr ]
                    [ "ORDER" "BY" order_item { "," order_item } ]
                    [ "LIMIT" int ] EOF
    select_list   = "*" | path { "," path }
    order_item    = path [ "ASC" | "DESC" ]
    or_expr       = and_expr { "OR" and_expr }
    and_expr      = comparison { "AND" comparison }
    comparison    = between [ comp_op between ]
    between       = unary [ "BETWEEN" unary "AND" unary ]
    unary         = "NOT" unary | atom
    atom          = literal | parameter | function_call | path | "(" or_expr ")"
    function_call = ident "(" [ or_expr { "," or_expr } ] ")"
    path          = ident { "." name }

Keywords are accepted as path segments after a dot, so ``c.order`` and
``c.value.desc`` are valid paths.

Example:
    >>> query = parse_query("SELECT c.name FROM c WHERE c.age > 21")
    >>> str(query.where.condition)
    '(c.age > 21)'

Author: LocalCosmos Team
Version: 1.0.0
"""

from typing import List, Optional

from .exceptions import QuerySyntaxError
from .lexer import Position, SqlLexer, Token, TokenType
from .query_ast import (
    BetweenExpression,
    BinaryExpression,
    BinaryOperator,
    ConstantExpression,
    Expression,
    FromClause,
    FunctionCallExpression,
    LimitClause,
    OrderByClause,
    OrderByItem,
    ParameterExpression,
    PropertyExpression,
    PropertySelectItem,
    Query,
    SelectAllItem,
    SelectClause,
    UnaryExpression,
    UnaryOperator,
    WhereClause,
)


class ParseError(QuerySyntaxError):
    """Token sequence that does not match the grammar."""

    def __init__(
        self,
        message: str,
        position: Position,
        fragment: Optional[str] = None,
        suggestion: Optional[str] = None,
    ):
        super().__init__(f"Parse error: {message}", position, fragment, suggestion)


class SqlParser:
    """
    Recursive descent parser for the Cosmos DB SQL subset.

    Operator precedence (highest to lowest):
        1. Atoms: literals, parameters, paths, function calls, parentheses
        2. Unary: NOT
        3. BETWEEN ... AND ...
        4. Comparison: = != <> > >= < <=
        5. Logical AND
        6. Logical OR

    Instances are single-use and not thread-safe.
    """

    COMPARISON_OPS = {
        TokenType.EQ: BinaryOperator.EQUAL,
        TokenType.NE: BinaryOperator.NOT_EQUAL,
        TokenType.GT: BinaryOperator.GREATER_THAN,
        TokenType.GE: BinaryOperator.GREATER_THAN_OR_EQUAL,
        TokenType.LT: BinaryOperator.LESS_THAN,
        TokenType.LE: BinaryOperator.LESS_THAN_OR_EQUAL,
    }

    LITERAL_TYPES = (
        TokenType.STRING,
        TokenType.INTEGER,
        TokenType.FLOAT,
        TokenType.BOOLEAN,
        TokenType.NULL,
    )

    def __init__(self, tokens: List[Token], source: str = ""):
        """
        Initialize parser with token stream.

        Args:
            tokens: List of tokens from lexer (must include EOF token)
            source: Original query text, used for error fragments
        """
        self.tokens = tokens
        self.source = source
        self.pos = 0

    def _current(self) -> Token:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return self.tokens[-1]

    def _previous(self) -> Token:
        if self.pos > 0:
            return self.tokens[self.pos - 1]
        return self.tokens[0]

    def _advance(self) -> Token:
        token = self._current()
        if not self._is_at_end():
            self.pos += 1
        return token

    def _is_at_end(self) -> bool:
        return self._current().type == TokenType.EOF

    def _check(self, token_type: TokenType) -> bool:
        if self._is_at_end():
            return False
        return self._current().type == token_type

    def _check_next(self, token_type: TokenType) -> bool:
        if self.pos + 1 < len(self.tokens):
            return self.tokens[self.pos + 1].type == token_type
        return False

    def _match(self, *token_types: TokenType) -> bool:
        for token_type in token_types:
            if self._check(token_type):
                self._advance()
                return True
        return False

    def _error(self, message: str, suggestion: Optional[str] = None) -> ParseError:
        token = self._current()
        fragment = self.source[token.position.offset:] if self.source else None
        if token.type == TokenType.EOF:
            message = f"{message}, got end of query"
        return ParseError(message, token.position, fragment or None, suggestion)

    def _consume(self, token_type: TokenType, message: str, suggestion: Optional[str] = None) -> Token:
        """
        Consume token of expected type or raise error.

        Raises:
            ParseError: If token type doesn't match
        """
        if self._check(token_type):
            return self._advance()
        raise self._error(message, suggestion)

    def parse(self) -> Query:
        """
        Parse the token stream into a Query.

        Raises:
            ParseError: If the tokens do not form a complete query
        """
        select = self._parse_select_clause()
        from_clause = self._parse_from_clause()

        where = None
        if self._match(TokenType.WHERE):
            where = WhereClause(self._parse_or_expression())

        order_by = None
        if self._match(TokenType.ORDER):
            self._consume(TokenType.BY, "Expected BY after ORDER")
            order_by = self._parse_order_by_clause()

        limit = None
        if self._match(TokenType.LIMIT):
            limit = LimitClause(self._parse_count("LIMIT"))

        if not self._is_at_end():
            raise self._error(
                f"Unexpected token {self._current().value!r}",
                "Check for missing operators, commas or parentheses"
            )

        return Query(
            select=select,
            from_clause=from_clause,
            where=where,
            order_by=order_by,
            limit=limit,
        )

    def _parse_count(self, keyword: str) -> int:
        """Parse the non-negative integer argument of TOP or LIMIT."""
        token = self._consume(
            TokenType.INTEGER,
            f"Expected non-negative integer after {keyword}"
        )
        if token.value < 0:
            raise ParseError(
                f"{keyword} value must be non-negative, got {token.value}",
                token.position,
                self.source[token.position.offset:] or None,
            )
        return token.value

    def _parse_select_clause(self) -> SelectClause:
        self._consume(TokenType.SELECT, "Expected SELECT", "Queries start with SELECT")

        top = None
        if self._match(TokenType.TOP):
            top = self._parse_count("TOP")

        if self._match(TokenType.STAR):
            return SelectClause(items=(SelectAllItem(),), top=top)

        items = [PropertySelectItem(self._parse_path())]
        while self._match(TokenType.COMMA):
            items.append(PropertySelectItem(self._parse_path()))

        return SelectClause(items=tuple(items), top=top)

    def _parse_from_clause(self) -> FromClause:
        self._consume(TokenType.FROM, "Expected FROM")
        source = self._consume(TokenType.IDENTIFIER, "Expected collection name after FROM").value

        alias = None
        if self._match(TokenType.AS):
            alias = self._consume(TokenType.IDENTIFIER, "Expected alias after AS").value
        elif self._check(TokenType.IDENTIFIER):
            alias = self._advance().value

        return FromClause(source=source, alias=alias)

    def _parse_order_by_clause(self) -> OrderByClause:
        items = [self._parse_order_item()]
        while self._match(TokenType.COMMA):
            items.append(self._parse_order_item())
        return OrderByClause(items=tuple(items))

    def _parse_order_item(self) -> OrderByItem:
        path = self._parse_path()
        descending = False
        if self._match(TokenType.DESC):
            descending = True
        else:
            self._match(TokenType.ASC)
        return OrderByItem(path=path, descending=descending)

    def _parse_path(self) -> str:
        """
        Parse a dotted property path.

        Grammar: path = ident { "." name }
        """
        segments = [self._consume(TokenType.IDENTIFIER, "Expected property path").value]
        while self._match(TokenType.DOT):
            token = self._current()
            if token.type == TokenType.IDENTIFIER or token.is_keyword:
                segments.append(self._source_text(self._advance()))
            else:
                raise self._error("Expected property name after '.'")
        return ".".join(segments)

    def _source_text(self, token: Token) -> str:
        """Original spelling of a token (keywords used as names keep their case)."""
        if self.source:
            start = token.position.offset
            return self.source[start:start + token.length]
        return str(token.value)

    def _parse_or_expression(self) -> Expression:
        """
        Parse OR expression (lowest precedence).

        Grammar: or_expr = and_expr { "OR" and_expr }
        """
        left = self._parse_and_expression()

        while self._match(TokenType.OR):
            op_token = self._previous()
            right = self._parse_and_expression()
            left = BinaryExpression(left, BinaryOperator.OR, right, op_token.position)

        return left

    def _parse_and_expression(self) -> Expression:
        """
        Parse AND expression.

        Grammar: and_expr = comparison { "AND" comparison }
        """
        left = self._parse_comparison_expression()

        while self._match(TokenType.AND):
            op_token = self._previous()
            right = self._parse_comparison_expression()
            left = BinaryExpression(left, BinaryOperator.AND, right, op_token.position)

        return left

    def _parse_comparison_expression(self) -> Expression:
        """
        Parse comparison expression.

        Grammar: comparison = between [ comp_op between ]
        """
        left = self._parse_between_expression()

        for token_type, operator in self.COMPARISON_OPS.items():
            if self._match(token_type):
                op_token = self._previous()
                right = self._parse_between_expression()
                return BinaryExpression(left, operator, right, op_token.position)

        return left

    def _parse_between_expression(self) -> Expression:
        """
        Parse BETWEEN expression.

        The AND inside BETWEEN belongs to the range, so the bounds are parsed
        at unary level and never consume a logical AND.

        Grammar: between = unary [ "BETWEEN" unary "AND" unary ]
        """
        expression = self._parse_unary_expression()

        if self._match(TokenType.BETWEEN):
            op_token = self._previous()
            lower = self._parse_unary_expression()
            self._consume(
                TokenType.AND,
                "Expected AND in BETWEEN expression",
                "Use: value BETWEEN low AND high"
            )
            upper = self._parse_unary_expression()
            return BetweenExpression(expression, lower, upper, op_token.position)

        return expression

    def _parse_unary_expression(self) -> Expression:
        """
        Parse unary expression (NOT).

        Grammar: unary = "NOT" unary | atom
        """
        if self._match(TokenType.NOT):
            op_token = self._previous()
            operand = self._parse_unary_expression()
            return UnaryExpression(UnaryOperator.NOT, operand, op_token.position)

        return self._parse_atom()

    def _parse_atom(self) -> Expression:
        """
        Parse atom.

        Grammar: atom = literal | parameter | function_call | path | "(" or_expr ")"
        """
        token = self._current()

        if self._match(TokenType.LPAREN):
            expr = self._parse_or_expression()
            self._consume(TokenType.RPAREN, "Expected closing parenthesis ')'")
            return expr

        if token.type in self.LITERAL_TYPES:
            self._advance()
            return ConstantExpression(token.value, token.position)

        if token.type == TokenType.PARAMETER:
            self._advance()
            return ParameterExpression(token.value, token.position)

        if token.type == TokenType.IDENTIFIER:
            if self._check_next(TokenType.LPAREN):
                return self._parse_function_call()
            return PropertyExpression(self._parse_path(), token.position)

        raise self._error(
            "Expected literal, parameter, property path, function call or '('",
            "Check expression syntax"
        )

    def _parse_function_call(self) -> Expression:
        """
        Parse function call.

        Grammar: function_call = ident "(" [ or_expr { "," or_expr } ] ")"
        """
        func_token = self._advance()
        self._consume(TokenType.LPAREN, f"Expected '(' after function name '{func_token.value}'")

        arguments = []
        if not self._check(TokenType.RPAREN):
            arguments.append(self._parse_or_expression())
            while self._match(TokenType.COMMA):
                arguments.append(self._parse_or_expression())

        self._consume(TokenType.RPAREN, "Expected ')' after function arguments")

        return FunctionCallExpression(func_token.value, tuple(arguments), func_token.position)

    def __repr__(self) -> str:
        return f"SqlParser(pos={self.pos}, current={self._current()})"


def parse_query(sql: str) -> Query:
    """
    Parse query text into a Query AST.

    Args:
        sql: Cosmos DB SQL query

    Returns:
        Fully resolved Query

    Raises:
        QuerySyntaxError: If the query is malformed
    """
    if not isinstance(sql, str) or not sql.strip():
        raise QuerySyntaxError("Query text is empty", fragment=None)

    tokens = SqlLexer(sql).tokenize()
    return SqlParser(tokens, sql).parse()
