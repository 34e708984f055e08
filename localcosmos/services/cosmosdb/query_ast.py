"""
Cosmos DB SQL Abstract Syntax Tree.

Immutable AST produced by the parser and consumed by the executor. All nodes
are frozen dataclasses; sequences are tuples. Expression nodes carry the
source position of their first token for diagnostics, but positions are
excluded from equality so that two parses of the same text compare equal.

Every node renders back to query text via ``str()``. Binary and BETWEEN
expressions are always parenthesized, so the rendered text parses back into
an equal tree.

Author: LocalCosmos Team
Version: 1.0.0
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Optional, Tuple, Union

from .lexer import Position


class BinaryOperator(Enum):
    """Binary operators supported in WHERE expressions."""
    EQUAL = "="
    NOT_EQUAL = "!="
    GREATER_THAN = ">"
    LESS_THAN = "<"
    GREATER_THAN_OR_EQUAL = ">="
    LESS_THAN_OR_EQUAL = "<="
    AND = "AND"
    OR = "OR"
    BETWEEN = "BETWEEN"

    def __str__(self) -> str:
        return self.value

    @property
    def is_logical(self) -> bool:
        return self in (BinaryOperator.AND, BinaryOperator.OR)


class UnaryOperator(Enum):
    """Unary operators supported in WHERE expressions."""
    NOT = "NOT"

    def __str__(self) -> str:
        return self.value


def _position_field():
    return field(default=None, compare=False, repr=False)


def _format_constant(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return f"'{value}'"
    if isinstance(value, float):
        # Query text has no exponent form
        text = format(Decimal(repr(value)), "f")
        return text if "." in text else f"{text}.0"
    return repr(value)


# Expressions

@dataclass(frozen=True)
class ConstantExpression:
    """Literal value: string, int, float, bool or None (null)."""
    value: Any
    position: Optional[Position] = _position_field()

    def __str__(self) -> str:
        return _format_constant(self.value)


@dataclass(frozen=True)
class PropertyExpression:
    """
    Property path such as ``c.address.city``.

    The path is stored as written, including any alias segment; alias
    stripping happens at resolution time.
    """
    path: str
    position: Optional[Position] = _position_field()

    @property
    def segments(self) -> Tuple[str, ...]:
        return tuple(self.path.split("."))

    def __str__(self) -> str:
        return self.path


@dataclass(frozen=True)
class ParameterExpression:
    """Query parameter reference; ``name`` excludes the leading '@'."""
    name: str
    position: Optional[Position] = _position_field()

    def __str__(self) -> str:
        return f"@{self.name}"


@dataclass(frozen=True)
class BinaryExpression:
    """Comparison or logical combination of two expressions."""
    left: "Expression"
    operator: BinaryOperator
    right: "Expression"
    position: Optional[Position] = _position_field()

    def __str__(self) -> str:
        return f"({self.left} {self.operator} {self.right})"


@dataclass(frozen=True)
class UnaryExpression:
    """Logical negation."""
    operator: UnaryOperator
    operand: "Expression"
    position: Optional[Position] = _position_field()

    def __str__(self) -> str:
        return f"{self.operator} {self.operand}"


@dataclass(frozen=True)
class FunctionCallExpression:
    """Built-in function call. ``name`` is kept as written."""
    name: str
    arguments: Tuple["Expression", ...] = ()
    position: Optional[Position] = _position_field()

    def __str__(self) -> str:
        args = ", ".join(str(arg) for arg in self.arguments)
        return f"{self.name}({args})"


@dataclass(frozen=True)
class BetweenExpression:
    """Inclusive range test: ``expression BETWEEN lower_bound AND upper_bound``."""
    expression: "Expression"
    lower_bound: "Expression"
    upper_bound: "Expression"
    position: Optional[Position] = _position_field()

    def __str__(self) -> str:
        return f"({self.expression} BETWEEN {self.lower_bound} AND {self.upper_bound})"


Expression = Union[
    ConstantExpression,
    PropertyExpression,
    ParameterExpression,
    BinaryExpression,
    UnaryExpression,
    FunctionCallExpression,
    BetweenExpression,
]


# Clauses

@dataclass(frozen=True)
class SelectAllItem:
    """``SELECT *``"""

    def __str__(self) -> str:
        return "*"


@dataclass(frozen=True)
class PropertySelectItem:
    """Projected property path."""
    path: str

    def __str__(self) -> str:
        return self.path


SelectItem = Union[SelectAllItem, PropertySelectItem]


@dataclass(frozen=True)
class SelectClause:
    items: Tuple[SelectItem, ...]
    top: Optional[int] = None

    @property
    def is_select_all(self) -> bool:
        return any(isinstance(item, SelectAllItem) for item in self.items)

    def __str__(self) -> str:
        top = f"TOP {self.top} " if self.top is not None else ""
        return f"SELECT {top}" + ", ".join(str(item) for item in self.items)


@dataclass(frozen=True)
class FromClause:
    source: str
    alias: Optional[str] = None

    def __str__(self) -> str:
        if self.alias:
            return f"FROM {self.source} AS {self.alias}"
        return f"FROM {self.source}"


@dataclass(frozen=True)
class WhereClause:
    condition: Expression

    def __str__(self) -> str:
        return f"WHERE {self.condition}"


@dataclass(frozen=True)
class OrderByItem:
    path: str
    descending: bool = False

    def __str__(self) -> str:
        return f"{self.path} {'DESC' if self.descending else 'ASC'}"


@dataclass(frozen=True)
class OrderByClause:
    items: Tuple[OrderByItem, ...]

    def __str__(self) -> str:
        return "ORDER BY " + ", ".join(str(item) for item in self.items)


@dataclass(frozen=True)
class LimitClause:
    value: int

    def __str__(self) -> str:
        return f"LIMIT {self.value}"


@dataclass(frozen=True)
class Query:
    """Root of a parsed query."""
    select: SelectClause
    from_clause: FromClause
    where: Optional[WhereClause] = None
    order_by: Optional[OrderByClause] = None
    limit: Optional[LimitClause] = None

    def __str__(self) -> str:
        parts = [str(self.select), str(self.from_clause)]
        for clause in (self.where, self.order_by, self.limit):
            if clause is not None:
                parts.append(str(clause))
        return " ".join(parts)
