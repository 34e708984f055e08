"""
Cosmos DB Exceptions.

Custom exception classes for Cosmos DB store and query operations,
matching Azure Cosmos DB error codes and messages.

Two families live here:

- Store errors (database, container and document lookups).
- Query errors raised by the SQL parser and executor. Missing properties,
  missing parameters and null comparisons are NOT errors; they resolve to
  null/false/MISSING during evaluation.

Author: LocalCosmos Team
"""

from typing import Optional


class CosmosDBError(Exception):
    """Base exception for Cosmos DB errors.

    Attributes:
        message: Error message
        error_code: Azure Cosmos DB error code
    """

    def __init__(self, message: str, error_code: str = "InternalServerError"):
        """Initialize Cosmos DB error.

        Args:
            message: Error message
            error_code: Azure error code
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code


class DatabaseNotFoundError(CosmosDBError):
    """Database not found error."""

    def __init__(self, message: str, database_id: str = ""):
        super().__init__(message, "NotFound")
        self.database_id = database_id


class DatabaseAlreadyExistsError(CosmosDBError):
    """Database already exists error."""

    def __init__(self, message: str, database_id: str = ""):
        super().__init__(message, "Conflict")
        self.database_id = database_id


class ContainerNotFoundError(CosmosDBError):
    """Container not found error."""

    def __init__(self, message: str, container_id: str = "", database_id: str = ""):
        """Initialize container not found error.

        Args:
            message: Error message
            container_id: Container identifier
            database_id: Database identifier
        """
        super().__init__(message, "NotFound")
        self.container_id = container_id
        self.database_id = database_id


class ContainerAlreadyExistsError(CosmosDBError):
    """Container already exists error."""

    def __init__(self, message: str, container_id: str = "", database_id: str = ""):
        super().__init__(message, "Conflict")
        self.container_id = container_id
        self.database_id = database_id


class BadRequestError(CosmosDBError):
    """Bad request error."""

    def __init__(self, message: str):
        super().__init__(message, "BadRequest")


class DocumentNotFoundError(CosmosDBError):
    """Document not found error."""

    def __init__(self, message: str, document_id: str = ""):
        """Initialize document not found error.

        Args:
            message: Error message
            document_id: Document identifier
        """
        super().__init__(message, "NotFound")
        self.document_id = document_id


class DocumentAlreadyExistsError(CosmosDBError):
    """Document already exists error."""

    def __init__(self, message: str, document_id: str = ""):
        super().__init__(message, "Conflict")
        self.document_id = document_id


class QueryError(CosmosDBError):
    """Base class for errors raised while parsing or executing a query."""

    def __init__(self, message: str):
        super().__init__(message, "BadRequest")


class QuerySyntaxError(QueryError):
    """Malformed query text.

    Raised by the lexer and parser; never recovered from.

    Attributes:
        position: Source position of the offending token (may be None)
        fragment: Unparsed remainder of the query at the error position
        suggestion: Optional hint for fixing the query
    """

    def __init__(
        self,
        message: str,
        position=None,
        fragment: Optional[str] = None,
        suggestion: Optional[str] = None,
    ):
        self.position = position
        self.fragment = fragment
        self.suggestion = suggestion

        error_str = message
        if position is not None:
            error_str = f"{message} at {position}"
        if fragment:
            error_str += f" near {fragment!r}"
        if suggestion:
            error_str += f"\n  Suggestion: {suggestion}"

        super().__init__(error_str)
        self.reason = message


class UnsupportedConstructError(QueryError):
    """Syntactically valid query using an operator or expression the engine does not implement."""


class UnsupportedFunctionError(UnsupportedConstructError):
    """Unknown function name in a query."""

    def __init__(self, message: str, function_name: str = ""):
        super().__init__(message)
        self.function_name = function_name


class FunctionArgumentError(QueryError):
    """Known function called with the wrong number of arguments."""

    def __init__(self, message: str, function_name: str = ""):
        super().__init__(message)
        self.function_name = function_name


class TypeMismatchError(QueryError):
    """Operand type rejected by an operator (e.g. NOT over a string).

    Attributes:
        expected: Name of the expected type
        actual: Name of the type encountered
    """

    def __init__(self, message: str, expected: str = "", actual: str = ""):
        super().__init__(message)
        self.expected = expected
        self.actual = actual
