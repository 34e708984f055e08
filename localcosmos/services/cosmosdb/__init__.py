"""
Azure Cosmos DB Query Emulator.

In-memory Cosmos DB store with a SQL query engine: parser, AST, operator
evaluators, function library and executor.

Author: LocalCosmos Team
Date: 2025-12-11
"""

from localcosmos.services.cosmosdb.backend import CosmosDBBackend
from localcosmos.services.cosmosdb.document import MISSING, compare_values
from localcosmos.services.cosmosdb.executor import QueryContext, QueryExecutor
from localcosmos.services.cosmosdb.functions import FunctionRegistry
from localcosmos.services.cosmosdb.operators import OperatorEvaluator
from localcosmos.services.cosmosdb.pagination import PaginationManager
from localcosmos.services.cosmosdb.parser import ParseError, parse_query
from localcosmos.services.cosmosdb.lexer import LexerError
from localcosmos.services.cosmosdb.query_ast import Query
from localcosmos.services.cosmosdb.models import (
    Database,
    Container,
    CreateDatabaseRequest,
    CreateContainerRequest,
    DatabaseListResult,
    ContainerListResult,
    DocumentListResult,
    QueryParameter,
    QueryRequest,
    QueryResult,
)
from localcosmos.services.cosmosdb.exceptions import (
    CosmosDBError,
    DatabaseNotFoundError,
    DatabaseAlreadyExistsError,
    ContainerNotFoundError,
    ContainerAlreadyExistsError,
    BadRequestError,
    DocumentNotFoundError,
    DocumentAlreadyExistsError,
    QueryError,
    QuerySyntaxError,
    UnsupportedConstructError,
    UnsupportedFunctionError,
    FunctionArgumentError,
    TypeMismatchError,
)

__all__ = [
    # Backend
    "CosmosDBBackend",
    "PaginationManager",
    # Query engine
    "parse_query",
    "Query",
    "QueryExecutor",
    "QueryContext",
    "OperatorEvaluator",
    "FunctionRegistry",
    "MISSING",
    "compare_values",
    # Models
    "Database",
    "Container",
    "CreateDatabaseRequest",
    "CreateContainerRequest",
    "DatabaseListResult",
    "ContainerListResult",
    "DocumentListResult",
    "QueryParameter",
    "QueryRequest",
    "QueryResult",
    # Exceptions - store
    "CosmosDBError",
    "DatabaseNotFoundError",
    "DatabaseAlreadyExistsError",
    "ContainerNotFoundError",
    "ContainerAlreadyExistsError",
    "BadRequestError",
    "DocumentNotFoundError",
    "DocumentAlreadyExistsError",
    # Exceptions - query
    "QueryError",
    "QuerySyntaxError",
    "LexerError",
    "ParseError",
    "UnsupportedConstructError",
    "UnsupportedFunctionError",
    "FunctionArgumentError",
    "TypeMismatchError",
]
