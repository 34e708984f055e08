"""
Cosmos DB SQL Function Library.

Built-in functions callable from WHERE expressions. Functions receive
arguments that have already been evaluated in value context, so an absent
property arrives as ``MISSING`` and an explicit null as ``None``.

Supported:
    CONTAINS(str, search [, ignoreCase])
    STARTSWITH(str, prefix [, ignoreCase])
    ARRAY_CONTAINS(array, value)
    IS_NULL(value)
    IS_DEFINED(value)

All functions return bool and never raise on missing or mistyped data.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from .document import is_missing, is_null_or_missing, to_boolean, to_text
from .exceptions import FunctionArgumentError, UnsupportedFunctionError


@dataclass(frozen=True)
class FunctionSignature:
    """
    Function arity definition.

    Attributes:
        min_args: Minimum number of arguments
        max_args: Maximum number of arguments
    """
    min_args: int
    max_args: int

    def accepts(self, count: int) -> bool:
        return self.min_args <= count <= self.max_args

    def __repr__(self) -> str:
        if self.min_args == self.max_args:
            return f"({self.min_args} args)"
        return f"({self.min_args}-{self.max_args} args)"


def _ignore_case(args: Tuple[Any, ...], index: int) -> bool:
    if len(args) > index:
        return to_boolean(args[index]) is True
    return False


class FunctionLibrary:
    """Cosmos DB function implementations."""

    @staticmethod
    def contains(s: Any, search: Any, *flags: Any) -> bool:
        """
        Substring test.

        Example:
            >>> FunctionLibrary.contains("JOHN DOE", "john", True)
            True
            >>> FunctionLibrary.contains("JOHN DOE", "john")
            False
        """
        if is_null_or_missing(s) or is_null_or_missing(search):
            return False
        text, needle = to_text(s), to_text(search)
        if _ignore_case(flags, 0):
            return needle.casefold() in text.casefold()
        return needle in text

    @staticmethod
    def startswith(s: Any, prefix: Any, *flags: Any) -> bool:
        """Prefix test; case-sensitive unless the optional flag is true."""
        if is_null_or_missing(s) or is_null_or_missing(prefix):
            return False
        text, start = to_text(s), to_text(prefix)
        if _ignore_case(flags, 0):
            return text.casefold().startswith(start.casefold())
        return text.startswith(start)

    @staticmethod
    def array_contains(array: Any, search: Any) -> bool:
        """
        Check whether any element's text form equals the search value's text
        form, ignoring case.

        Returns:
            False if the target is not an array
        """
        if not isinstance(array, (list, tuple)) or is_missing(search):
            return False

        wanted = _fold(search)
        return any(_fold(item) == wanted for item in array)

    @staticmethod
    def is_null(value: Any) -> bool:
        """True for an absent field or an explicit null."""
        return is_null_or_missing(value)

    @staticmethod
    def is_defined(value: Any) -> bool:
        """True whenever the field is present, even if its value is null."""
        return not is_missing(value)


def _fold(value: Any) -> Optional[str]:
    text = to_text(value)
    return text.casefold() if text is not None else None


class FunctionRegistry:
    """
    Registry of available query functions.

    Provides function lookup, arity validation, and execution. Names are
    matched case-insensitively.
    """

    def __init__(self):
        self._functions: Dict[str, Tuple[Callable[..., bool], FunctionSignature]] = {}
        self._register_all()

    def _register_all(self):
        lib = FunctionLibrary

        self.register('CONTAINS', lib.contains, FunctionSignature(2, 3))
        self.register('STARTSWITH', lib.startswith, FunctionSignature(2, 3))
        self.register('ARRAY_CONTAINS', lib.array_contains, FunctionSignature(2, 2))
        self.register('IS_NULL', lib.is_null, FunctionSignature(1, 1))
        self.register('IS_DEFINED', lib.is_defined, FunctionSignature(1, 1))

    def register(self, name: str, func: Callable[..., bool], signature: FunctionSignature):
        """
        Register a function.

        Args:
            name: Function name
            func: Function implementation
            signature: Accepted argument count
        """
        self._functions[name.upper()] = (func, signature)

    def lookup(self, name: str) -> Optional[Tuple[Callable[..., bool], FunctionSignature]]:
        return self._functions.get(name.upper())

    def call(self, name: str, args: List[Any]) -> bool:
        """
        Call function with evaluated arguments.

        Raises:
            UnsupportedFunctionError: If the function is unknown
            FunctionArgumentError: If the argument count is wrong
        """
        result = self.lookup(name)
        if result is None:
            raise UnsupportedFunctionError(f"Unsupported function: {name}", name)

        func, signature = result
        if not signature.accepts(len(args)):
            raise FunctionArgumentError(
                f"Function '{name.upper()}' expects {signature!r}, got {len(args)}",
                name,
            )

        return func(*args)

    def list_functions(self) -> List[str]:
        return sorted(self._functions.keys())
