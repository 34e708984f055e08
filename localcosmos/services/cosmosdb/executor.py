"""
Cosmos DB SQL Query Executor.

Evaluates a parsed ``Query`` against an in-memory list of JSON documents.
The pipeline runs in a fixed order, each stage skipped when its clause is
absent:

1. Filter   WHERE condition evaluated in boolean context
2. Order    stable multi-key sort, direction applied per key
3. Limit    TOP, then LIMIT (both are prefix takes)
4. Project  selected paths copied into new documents, id always kept

Expressions are evaluated in one of two contexts:

- Boolean context (``evaluate_expression``) answers "does this document
  match". Bare properties and parameters are truthy when present and not
  null; an unbound parameter is simply false.
- Value context (``evaluate_value``) produces operands for comparisons.
  Absent properties and unbound parameters yield ``MISSING``.

Missing data never raises. The only evaluation errors are unknown functions,
wrong function arity, unsupported expression nodes, and NOT applied to a
non-boolean value.

Example:
    >>> executor = QueryExecutor()
    >>> query = parse_query("SELECT c.name FROM c WHERE c.age > 21")
    >>> executor.execute(query, [{"id": "1", "name": "A", "age": 30}])
    [{'id': '1', 'name': 'A'}]

Author: LocalCosmos Team
Version: 1.0.0
"""

import copy
import logging
from dataclasses import dataclass, field
from functools import cmp_to_key
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Tuple

from ...core.config_manager import QueryConfig
from .document import MISSING, compare_values, is_missing, is_null_or_missing, lookup_key
from .exceptions import QueryError, TypeMismatchError, UnsupportedConstructError
from .functions import FunctionRegistry
from .operators import OperatorEvaluator
from .query_ast import (
    BetweenExpression,
    BinaryExpression,
    BinaryOperator,
    ConstantExpression,
    Expression,
    FromClause,
    FunctionCallExpression,
    ParameterExpression,
    PropertyExpression,
    PropertySelectItem,
    Query,
    UnaryExpression,
    UnaryOperator,
)

Document = Dict[str, Any]


@dataclass(frozen=True)
class QueryContext:
    """
    Per-execution state shared by every expression evaluation.

    Attributes:
        aliases: Leading path segments stripped before navigation
        parameters: Bound parameter values keyed by name without '@'
    """
    aliases: FrozenSet[str] = frozenset()
    parameters: Mapping[str, Any] = field(default_factory=dict)


def normalize_parameters(parameters: Any) -> Dict[str, Any]:
    """
    Normalize query parameters to a name -> value mapping.

    Accepts a mapping, a sequence of ``(name, value)`` pairs, or a sequence
    of ``{"name": ..., "value": ...}`` dicts (the Cosmos DB REST shape).
    Names are stored without the leading '@'.

    Raises:
        QueryError: If an entry has no name
    """
    if not parameters:
        return {}

    if isinstance(parameters, Mapping):
        entries: Iterable[Tuple[Any, Any]] = parameters.items()
    else:
        entries = []
        for entry in parameters:
            if isinstance(entry, Mapping):
                if "name" not in entry:
                    raise QueryError(f"Query parameter is missing a name: {entry!r}")
                entries.append((entry["name"], entry.get("value")))
            else:
                name, value = entry
                entries.append((name, value))

    normalized: Dict[str, Any] = {}
    for name, value in entries:
        if not isinstance(name, str) or not name.lstrip("@"):
            raise QueryError(f"Invalid query parameter name: {name!r}")
        normalized[name[1:] if name.startswith("@") else name] = value
    return normalized


class QueryExecutor:
    """
    Executes parsed queries against document snapshots.

    The executor holds no per-query state, so one instance may serve any
    number of sequential or concurrent ``execute`` calls as long as the
    document lists themselves are not mutated meanwhile.
    """

    def __init__(
        self,
        logger: Optional[logging.Logger] = None,
        settings: Optional[QueryConfig] = None,
        functions: Optional[FunctionRegistry] = None,
    ):
        """
        Initialize query executor.

        Args:
            logger: Diagnostic logger (defaults to this module's logger)
            settings: Query engine settings
            functions: Function registry (defaults to the built-in library)
        """
        self.logger = logger or logging.getLogger(__name__)
        self.settings = settings or QueryConfig()
        self.functions = functions or FunctionRegistry()
        self.operators = OperatorEvaluator(
            compare_values=compare_values,
            logger=self.logger,
            tolerance=self.settings.equality_tolerance,
        )

    def create_context(self, from_clause: Optional[FromClause] = None, parameters: Any = None) -> QueryContext:
        """
        Build the evaluation context for one execution.

        The alias set holds the FROM alias (or the source name when no alias
        is given) plus the configured implicit aliases.
        """
        aliases = set(self.settings.implicit_aliases)
        if from_clause is not None:
            aliases.add(from_clause.alias or from_clause.source)
        return QueryContext(frozenset(aliases), normalize_parameters(parameters))

    def execute(
        self,
        query: Query,
        documents: Sequence[Document],
        parameters: Any = None,
    ) -> List[Document]:
        """
        Execute a query.

        Args:
            query: Parsed query
            documents: Document snapshot; never mutated
            parameters: Query parameters (mapping, pairs, or name/value dicts)

        Returns:
            Matching documents, ordered, limited and projected. SELECT *
            returns the input documents themselves; projections are new
            documents.
        """
        context = self.create_context(query.from_clause, parameters)
        self.logger.debug(f"Executing query over {len(documents)} documents: {query}")

        results = list(documents)

        if query.where is not None:
            condition = query.where.condition
            results = [doc for doc in results if self.evaluate_expression(doc, condition, context)]
            self.logger.debug(f"WHERE matched {len(results)} of {len(documents)} documents")

        if query.order_by is not None:
            results = self._order(results, query.order_by.items, context)

        if query.select.top is not None:
            results = results[:query.select.top]
        if query.limit is not None:
            results = results[:query.limit.value]

        if not query.select.is_select_all:
            paths = [item.path for item in query.select.items if isinstance(item, PropertySelectItem)]
            results = [self._project(doc, paths, context) for doc in results]

        return results

    # Boolean context

    def evaluate_expression(self, document: Document, expression: Expression, context: QueryContext) -> bool:
        """
        Evaluate an expression to a match decision.

        Raises:
            TypeMismatchError: NOT applied to a non-boolean value
            UnsupportedFunctionError: Unknown function
            UnsupportedConstructError: Unknown expression node or operator
        """
        if isinstance(expression, ConstantExpression):
            return _truthy(expression.value)

        if isinstance(expression, PropertyExpression):
            return _truthy(self.get_property_by_path(document, expression.path, context))

        if isinstance(expression, ParameterExpression):
            return _truthy(self._parameter(expression, context))

        if isinstance(expression, BinaryExpression):
            return self._evaluate_binary(document, expression, context)

        if isinstance(expression, UnaryExpression):
            return self._evaluate_unary(document, expression, context)

        if isinstance(expression, FunctionCallExpression):
            return self.evaluate_function(document, expression, context)

        if isinstance(expression, BetweenExpression):
            value = self.evaluate_value(document, expression.expression, context)
            bounds = self.evaluate_value(document, expression, context)
            return self.operators.evaluate(BinaryOperator.BETWEEN, value, bounds)

        raise UnsupportedConstructError(f"Unsupported expression: {type(expression).__name__}")

    def _evaluate_binary(self, document: Document, expression: BinaryExpression, context: QueryContext) -> bool:
        operator = expression.operator

        if operator.is_logical:
            return self.operators.evaluate(
                operator,
                lambda: self.evaluate_expression(document, expression.left, context),
                lambda: self.evaluate_expression(document, expression.right, context),
            )

        left = self.evaluate_value(document, expression.left, context)
        right = self.evaluate_value(document, expression.right, context)

        if operator == BinaryOperator.BETWEEN:
            if not isinstance(right, (list, tuple)) or len(right) != 2:
                raise UnsupportedConstructError("BETWEEN requires a lower and an upper bound")

        return self.operators.evaluate(operator, left, right)

    def _evaluate_unary(self, document: Document, expression: UnaryExpression, context: QueryContext) -> bool:
        if expression.operator != UnaryOperator.NOT:
            raise UnsupportedConstructError(f"Unsupported unary operator: {expression.operator}")

        operand = expression.operand
        if not isinstance(operand, (PropertyExpression, ParameterExpression, ConstantExpression)):
            return not self.evaluate_expression(document, operand, context)

        value = self.evaluate_value(document, operand, context)
        if isinstance(value, bool):
            return not value
        if is_null_or_missing(value):
            return False
        raise TypeMismatchError(
            f"NOT requires a boolean operand, got {type(value).__name__} from {operand}",
            expected="bool",
            actual=type(value).__name__,
        )

    # Value context

    def evaluate_value(self, document: Document, expression: Expression, context: QueryContext) -> Any:
        """
        Evaluate an expression to an operand value.

        Returns:
            The literal, property or parameter value (MISSING when absent),
            the boolean result of a nested operator or function, or the
            ``[lower, upper]`` bounds of a BETWEEN expression
        """
        if isinstance(expression, ConstantExpression):
            return expression.value

        if isinstance(expression, PropertyExpression):
            return self.get_property_by_path(document, expression.path, context)

        if isinstance(expression, ParameterExpression):
            return self._parameter(expression, context)

        if isinstance(expression, BetweenExpression):
            return [
                self.evaluate_value(document, expression.lower_bound, context),
                self.evaluate_value(document, expression.upper_bound, context),
            ]

        if isinstance(expression, (BinaryExpression, UnaryExpression, FunctionCallExpression)):
            return self.evaluate_expression(document, expression, context)

        raise UnsupportedConstructError(f"Unsupported expression: {type(expression).__name__}")

    def evaluate_function(self, document: Document, expression: FunctionCallExpression, context: QueryContext) -> bool:
        """
        Evaluate a built-in function call.

        Arguments are evaluated in value context, so an absent property is
        passed as MISSING and an explicit null as None.
        """
        args = [self.evaluate_value(document, arg, context) for arg in expression.arguments]
        return self.functions.call(expression.name, args)

    def _parameter(self, expression: ParameterExpression, context: QueryContext) -> Any:
        value = context.parameters.get(expression.name, MISSING)
        if is_missing(value):
            self.logger.debug(f"Parameter @{expression.name} is not bound")
        return value

    # Paths

    def _strip_alias(self, segments: List[str], context: Optional[QueryContext]) -> List[str]:
        aliases = context.aliases if context is not None else frozenset(self.settings.implicit_aliases)
        if len(segments) > 1 and segments[0] in aliases:
            return segments[1:]
        return segments

    def get_property_by_path(self, document: Any, path: str, context: Optional[QueryContext] = None) -> Any:
        """
        Navigate a dotted property path.

        A leading alias segment is stripped first. Each segment is looked up
        by exact key, then case-insensitively.

        Returns:
            The value found, MISSING as soon as a segment is absent or the
            current value is not an object, or the whole document for "*"
        """
        if path == "*":
            return document

        current = document
        for segment in self._strip_alias(path.split("."), context):
            if not isinstance(current, dict):
                return MISSING
            current = lookup_key(current, segment)
            if is_missing(current):
                return MISSING
        return current

    # Ordering and projection

    def _order(self, documents: List[Document], items, context: QueryContext) -> List[Document]:
        keyed = [
            ([self.get_property_by_path(doc, item.path, context) for item in items], doc)
            for doc in documents
        ]
        directions = [item.descending for item in items]

        def compare(left, right) -> int:
            for left_value, right_value, descending in zip(left[0], right[0], directions):
                result = compare_values(left_value, right_value)
                if result:
                    return -result if descending else result
            return 0

        # list.sort is stable, so ties keep input order
        keyed.sort(key=cmp_to_key(compare))
        return [doc for _, doc in keyed]

    def _project(self, document: Document, paths: List[str], context: QueryContext) -> Document:
        projected: Document = {}
        copied_id = None

        for id_key in ("id", "Id"):
            if id_key in document:
                projected[id_key] = copy.deepcopy(document[id_key])
                copied_id = id_key.lower()
                break

        for path in paths:
            segments = self._strip_alias(path.split("."), context)
            # id is already present under its original key
            if copied_id and len(segments) == 1 and segments[0].lower() == copied_id:
                continue
            value = self.get_property_by_path(document, path, context)
            if is_missing(value):
                continue
            set_property_by_path(projected, segments, copy.deepcopy(value))

        return projected


def set_property_by_path(target: Document, segments: List[str], value: Any) -> None:
    """
    Set a value at a nested location, creating intermediate objects.

    An existing non-object value on the way is replaced by an object.
    """
    current = target
    for segment in segments[:-1]:
        child = current.get(segment)
        if not isinstance(child, dict):
            child = {}
            current[segment] = child
        current = child
    current[segments[-1]] = value


def _truthy(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return not is_null_or_missing(value)
