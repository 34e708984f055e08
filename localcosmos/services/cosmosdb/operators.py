"""
Operator evaluators for Cosmos DB SQL expressions.

Each binary operator is a handler in an enum-keyed dispatch table. Handlers
take already-evaluated operand values (or, for AND/OR, zero-argument
callables producing the operand's boolean) and always return a bool.

Coercion rules:
- Numeric: native int/float, or a string that fully parses as a number
- Equality: ordinal for two strings, then numeric within a tolerance, then
  boolean, then structural. MISSING is never equal to anything
- Ordering: numeric when both sides coerce, otherwise the generic comparer;
  MISSING makes every ordering comparison false
- BETWEEN: inclusive; numeric, then timestamp, then string, then text forms

Author: LocalCosmos Team
Version: 1.0.0
"""

import logging
from typing import Any, Callable, Dict, Optional

from .document import (
    compare_values as default_compare_values,
    is_missing,
    is_null_or_missing,
    parse_timestamp,
    to_boolean,
    to_number,
    to_text,
)
from .exceptions import UnsupportedConstructError
from .query_ast import BinaryOperator

DEFAULT_TOLERANCE = 1e-6

Comparer = Callable[[Any, Any], int]


class OperatorEvaluator:
    """
    Evaluates binary operators over Cosmos DB values.

    Example:
        >>> ops = OperatorEvaluator()
        >>> ops.evaluate(BinaryOperator.EQUAL, 30, "30")
        True
        >>> ops.evaluate(BinaryOperator.GREATER_THAN, None, 1)
        False
    """

    def __init__(
        self,
        compare_values: Optional[Comparer] = None,
        logger: Optional[logging.Logger] = None,
        tolerance: float = DEFAULT_TOLERANCE,
    ):
        """
        Initialize operator evaluator.

        Args:
            compare_values: Generic three-way comparer for non-numeric values
            logger: Diagnostic logger
            tolerance: Absolute tolerance for numeric equality
        """
        self.compare_values = compare_values or default_compare_values
        self.logger = logger or logging.getLogger(__name__)
        self.tolerance = tolerance

        self._handlers: Dict[BinaryOperator, Callable[[Any, Any], bool]] = {
            BinaryOperator.EQUAL: self.equal,
            BinaryOperator.NOT_EQUAL: self.not_equal,
            BinaryOperator.GREATER_THAN: lambda left, right: self._ordering(left, right, lambda c: c > 0),
            BinaryOperator.LESS_THAN: lambda left, right: self._ordering(left, right, lambda c: c < 0),
            BinaryOperator.GREATER_THAN_OR_EQUAL: lambda left, right: self._ordering(left, right, lambda c: c >= 0),
            BinaryOperator.LESS_THAN_OR_EQUAL: lambda left, right: self._ordering(left, right, lambda c: c <= 0),
            BinaryOperator.AND: self.logical_and,
            BinaryOperator.OR: self.logical_or,
            BinaryOperator.BETWEEN: lambda value, bounds: self.between(value, bounds[0], bounds[1]),
        }

    def evaluate(self, operator: BinaryOperator, left: Any, right: Any) -> bool:
        """
        Apply a binary operator.

        For AND/OR, ``left`` and ``right`` are zero-argument callables. For
        BETWEEN, ``right`` is the ``(lower, upper)`` bounds pair.

        Raises:
            UnsupportedConstructError: If the operator has no handler
        """
        handler = self._handlers.get(operator)
        if handler is None:
            raise UnsupportedConstructError(f"Unsupported operator: {operator}")
        return handler(left, right)

    def equal(self, left: Any, right: Any) -> bool:
        if is_missing(left) or is_missing(right):
            return False

        if isinstance(left, str) and isinstance(right, str):
            return left == right

        left_num = to_number(left)
        right_num = to_number(right)
        if left_num is not None and right_num is not None:
            return left_num == right_num or abs(left_num - right_num) <= self.tolerance

        left_bool = to_boolean(left)
        right_bool = to_boolean(right)
        if left_bool is not None and right_bool is not None:
            return left_bool == right_bool

        # bool subclasses int; keep true from matching 1
        if isinstance(left, bool) != isinstance(right, bool):
            return False
        return left == right

    def not_equal(self, left: Any, right: Any) -> bool:
        return not self.equal(left, right)

    def _ordering(self, left: Any, right: Any, accept: Callable[[int], bool]) -> bool:
        if is_missing(left) or is_missing(right):
            return False

        left_num = to_number(left)
        right_num = to_number(right)
        if left_num is not None and right_num is not None:
            if left_num < right_num:
                return accept(-1)
            if left_num > right_num:
                return accept(1)
            return accept(0)

        return accept(self.compare_values(left, right))

    def logical_and(self, left: Callable[[], bool], right: Callable[[], bool]) -> bool:
        if not left():
            return False
        return bool(right())

    def logical_or(self, left: Callable[[], bool], right: Callable[[], bool]) -> bool:
        if left():
            return True
        return bool(right())

    def between(self, value: Any, lower: Any, upper: Any) -> bool:
        """
        Inclusive range test.

        Returns:
            False if the value or either bound is null/missing
        """
        if any(is_null_or_missing(v) for v in (value, lower, upper)):
            return False

        numbers = [to_number(v) for v in (value, lower, upper)]
        if all(n is not None for n in numbers):
            return numbers[1] <= numbers[0] <= numbers[2]

        timestamps = [parse_timestamp(v) for v in (value, lower, upper)]
        if all(t is not None for t in timestamps):
            return timestamps[1] <= timestamps[0] <= timestamps[2]

        if all(isinstance(v, str) for v in (value, lower, upper)):
            return lower <= value <= upper

        self.logger.debug(
            f"BETWEEN operands of mixed types compared as text: {value!r}, {lower!r}, {upper!r}"
        )
        texts = [to_text(v) for v in (value, lower, upper)]
        return texts[1] <= texts[0] <= texts[2]

