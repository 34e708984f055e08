"""
LocalCosmos: Local Azure Cosmos DB Query Emulator

An in-memory Cosmos DB store and SQL query engine for offline development
and testing.
"""

__version__ = "0.1.0"

from .services.cosmosdb import CosmosDBBackend, QueryExecutor, parse_query

__all__ = ["CosmosDBBackend", "QueryExecutor", "parse_query", "__version__"]
