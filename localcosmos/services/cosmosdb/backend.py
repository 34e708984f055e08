"""
Cosmos DB Backend.

In-memory store for databases, containers and documents, with SQL query
support through the query engine. Store access is serialized by a single
async lock; queries run against a snapshot of the container taken under it.

Author: LocalCosmos Team
Date: 2025-12-11
"""

import asyncio
import time
import hashlib
import uuid
import copy
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ...core.config_manager import QueryConfig
from ...core.logging_config import clear_activity_id, log_with_context, set_activity_id
from .document import get_document_id
from .executor import QueryExecutor
from .models import (
    Database,
    Container,
    CreateDatabaseRequest,
    CreateContainerRequest,
    DatabaseListResult,
    ContainerListResult,
    DocumentListResult,
    QueryRequest,
    QueryResult,
)
from .exceptions import (
    BadRequestError,
    DatabaseNotFoundError,
    DatabaseAlreadyExistsError,
    ContainerNotFoundError,
    ContainerAlreadyExistsError,
    DocumentNotFoundError,
    DocumentAlreadyExistsError,
)
from .pagination import PaginationManager
from .parser import parse_query

SYSTEM_PROPERTIES = ("_rid", "_ts", "_self", "_etag", "_attachments")


class CosmosDBBackend:
    """Backend for Cosmos DB operations.

    Provides database, container and document management with in-memory
    storage, plus SQL queries over a container's documents.

    Attributes:
        _databases: Dictionary of databases by ID
        _containers: Dictionary of containers by database ID and container ID
        _documents: Documents by database ID, container ID and document ID,
            in insertion order
        _lock: Async lock for store access
    """

    def __init__(
        self,
        settings: Optional[QueryConfig] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        """Initialize Cosmos DB backend.

        Args:
            settings: Query engine settings
            logger: Logger shared with the query engine
        """
        self.settings = settings or QueryConfig()
        self.logger = logger or logging.getLogger(__name__)
        self.executor = QueryExecutor(logger=self.logger, settings=self.settings)
        self.pagination = PaginationManager(
            default_max_item_count=self.settings.default_max_item_count,
            logger=self.logger,
        )

        self._databases: Dict[str, Database] = {}
        self._containers: Dict[str, Dict[str, Container]] = {}
        self._documents: Dict[str, Dict[str, Dict[str, Dict[str, Any]]]] = {}
        self._lock = asyncio.Lock()

    def _generate_resource_id(self, resource_type: str, identifier: str) -> str:
        """Generate a resource ID.

        Args:
            resource_type: Type of resource (db, coll, doc)
            identifier: Resource identifier

        Returns:
            Generated resource ID
        """
        hash_input = f"{resource_type}:{identifier}:{time.time()}"
        return hashlib.sha256(hash_input.encode()).hexdigest()[:8]

    def _generate_timestamp(self) -> int:
        return int(datetime.now(timezone.utc).timestamp())

    def _generate_etag(self) -> str:
        return f'"{uuid.uuid4().hex[:16]}"'

    # Databases

    async def create_database(self, request: CreateDatabaseRequest) -> Database:
        """Create a new database.

        Raises:
            DatabaseAlreadyExistsError: If database already exists
        """
        async with self._lock:
            if request.id in self._databases:
                raise DatabaseAlreadyExistsError(
                    f"Database with id '{request.id}' already exists",
                    database_id=request.id
                )

            rid = self._generate_resource_id("db", request.id)
            database = Database(
                id=request.id,
                _rid=rid,
                _ts=self._generate_timestamp(),
                _self=f"dbs/{rid}",
                _etag=f'"{rid}"',
                _colls=f"dbs/{rid}/colls/",
            )

            self._databases[request.id] = database
            self._containers[request.id] = {}
            self._documents[request.id] = {}
            self.logger.info(f"Created database '{request.id}'")

            return database

    async def list_databases(self) -> DatabaseListResult:
        async with self._lock:
            databases = list(self._databases.values())
            return DatabaseListResult(
                _rid="",
                Databases=databases,
                _count=len(databases)
            )

    async def get_database(self, database_id: str) -> Database:
        """Get a database by ID.

        Raises:
            DatabaseNotFoundError: If database not found
        """
        async with self._lock:
            return self._get_database_unlocked(database_id)

    async def delete_database(self, database_id: str) -> None:
        """Delete a database with all its containers and documents.

        Raises:
            DatabaseNotFoundError: If database not found
        """
        async with self._lock:
            self._get_database_unlocked(database_id)

            del self._containers[database_id]
            del self._documents[database_id]
            del self._databases[database_id]
            self.logger.info(f"Deleted database '{database_id}'")

    # Containers

    async def create_container(
        self,
        database_id: str,
        request: CreateContainerRequest
    ) -> Container:
        """Create a new container in a database.

        Raises:
            DatabaseNotFoundError: If database not found
            ContainerAlreadyExistsError: If container already exists
        """
        async with self._lock:
            db = self._get_database_unlocked(database_id)

            if request.id in self._containers[database_id]:
                raise ContainerAlreadyExistsError(
                    f"Container with id '{request.id}' already exists in database '{database_id}'",
                    database_id=database_id,
                    container_id=request.id
                )

            rid = self._generate_resource_id("coll", request.id)
            container = Container(
                id=request.id,
                _rid=rid,
                _ts=self._generate_timestamp(),
                _self=f"{db.self_link}/colls/{rid}",
                _etag=f'"{rid}"',
                _docs=f"{db.self_link}/colls/{rid}/docs/",
            )

            self._containers[database_id][request.id] = container
            self._documents[database_id][request.id] = {}
            self.logger.info(f"Created container '{request.id}' in database '{database_id}'")

            return container

    async def list_containers(self, database_id: str) -> ContainerListResult:
        """List all containers in a database.

        Raises:
            DatabaseNotFoundError: If database not found
        """
        async with self._lock:
            db = self._get_database_unlocked(database_id)
            containers = list(self._containers[database_id].values())
            return ContainerListResult(
                _rid=db.rid,
                DocumentCollections=containers,
                _count=len(containers)
            )

    async def get_container(self, database_id: str, container_id: str) -> Container:
        """Get a container by ID.

        Raises:
            DatabaseNotFoundError: If database not found
            ContainerNotFoundError: If container not found
        """
        async with self._lock:
            return self._get_container_unlocked(database_id, container_id)

    async def delete_container(self, database_id: str, container_id: str) -> None:
        """Delete a container and its documents.

        Raises:
            DatabaseNotFoundError: If database not found
            ContainerNotFoundError: If container not found
        """
        async with self._lock:
            self._get_container_unlocked(database_id, container_id)

            del self._containers[database_id][container_id]
            del self._documents[database_id][container_id]
            self.logger.info(f"Deleted container '{container_id}' from database '{database_id}'")

    # Documents

    def _prepare_document(self, document_data: Dict[str, Any]) -> Dict[str, Any]:
        """Copy user data, normalize ``Id`` to ``id`` and drop system properties.

        Raises:
            BadRequestError: If the document has no id
        """
        if not isinstance(document_data, dict):
            raise BadRequestError("Document must be a JSON object")

        document = {
            key: copy.deepcopy(value)
            for key, value in document_data.items()
            if key not in SYSTEM_PROPERTIES
        }

        doc_id = get_document_id(document)
        if not doc_id:
            raise BadRequestError("Document must have an 'id' or 'Id' property")

        if document.get("id") is None:
            document["id"] = document["Id"]

        return document

    def _stamp(self, container: Container, document: Dict[str, Any], rid: Optional[str] = None) -> Dict[str, Any]:
        doc_id = get_document_id(document)
        rid = rid or self._generate_resource_id("doc", doc_id)
        document.update({
            "_rid": rid,
            "_ts": self._generate_timestamp(),
            "_self": f"{container.self_link}/docs/{rid}",
            "_etag": self._generate_etag(),
            "_attachments": "attachments/",
        })
        return document

    async def create_document(
        self,
        database_id: str,
        container_id: str,
        document_data: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Create a new document in a container.

        Returns:
            Created document with system properties

        Raises:
            DatabaseNotFoundError: If database not found
            ContainerNotFoundError: If container not found
            DocumentAlreadyExistsError: If a document with the same id exists
            BadRequestError: If the document has no id
        """
        async with self._lock:
            container = self._get_container_unlocked(database_id, container_id)
            document = self._prepare_document(document_data)
            doc_id = get_document_id(document)

            store = self._documents[database_id][container_id]
            if doc_id in store:
                raise DocumentAlreadyExistsError(
                    f"Document with id '{doc_id}' already exists",
                    document_id=doc_id
                )

            store[doc_id] = self._stamp(container, document)
            return copy.deepcopy(store[doc_id])

    async def upsert_document(
        self,
        database_id: str,
        container_id: str,
        document_data: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Create a document, or replace the one with the same id.

        A replaced document moves to the end of the container's order.

        Raises:
            DatabaseNotFoundError: If database not found
            ContainerNotFoundError: If container not found
            BadRequestError: If the document has no id
        """
        async with self._lock:
            container = self._get_container_unlocked(database_id, container_id)
            document = self._prepare_document(document_data)
            doc_id = get_document_id(document)

            store = self._documents[database_id][container_id]
            existing = store.pop(doc_id, None)
            rid = existing["_rid"] if existing else None

            store[doc_id] = self._stamp(container, document, rid)
            return copy.deepcopy(store[doc_id])

    async def get_document(
        self,
        database_id: str,
        container_id: str,
        document_id: str
    ) -> Dict[str, Any]:
        """Get a document by ID.

        Raises:
            DatabaseNotFoundError: If database not found
            ContainerNotFoundError: If container not found
            DocumentNotFoundError: If document not found
        """
        async with self._lock:
            return copy.deepcopy(self._get_document_unlocked(database_id, container_id, document_id))

    async def replace_document(
        self,
        database_id: str,
        container_id: str,
        document_id: str,
        document_data: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Replace an entire document, keeping its position and ``_rid``.

        Raises:
            DatabaseNotFoundError: If database not found
            ContainerNotFoundError: If container not found
            DocumentNotFoundError: If document not found
        """
        async with self._lock:
            container = self._get_container_unlocked(database_id, container_id)
            existing = self._get_document_unlocked(database_id, container_id, document_id)

            document = self._prepare_document({**document_data, "id": document_id})
            self._documents[database_id][container_id][document_id] = self._stamp(
                container, document, existing["_rid"]
            )
            return copy.deepcopy(self._documents[database_id][container_id][document_id])

    async def delete_document(
        self,
        database_id: str,
        container_id: str,
        document_id: str
    ) -> None:
        """Delete a document.

        Raises:
            DatabaseNotFoundError: If database not found
            ContainerNotFoundError: If container not found
            DocumentNotFoundError: If document not found
        """
        async with self._lock:
            self._get_document_unlocked(database_id, container_id, document_id)
            del self._documents[database_id][container_id][document_id]

    async def list_documents(
        self,
        database_id: str,
        container_id: str
    ) -> DocumentListResult:
        """List all documents in a container, in insertion order.

        Raises:
            DatabaseNotFoundError: If database not found
            ContainerNotFoundError: If container not found
        """
        async with self._lock:
            container = self._get_container_unlocked(database_id, container_id)
            documents = list(self._documents[database_id][container_id].values())

            return DocumentListResult(
                _rid=container.rid,
                Documents=[copy.deepcopy(doc) for doc in documents],
                _count=len(documents)
            )

    # Queries

    async def query_documents(
        self,
        database_id: str,
        container_id: str,
        query: str,
        parameters: Any = None,
        max_item_count: Optional[int] = None,
        continuation_token: Optional[str] = None
    ) -> QueryResult:
        """Execute a SQL query and return one page of results.

        Args:
            database_id: Database identifier
            container_id: Container identifier
            query: SQL query string
            parameters: Query parameters (mapping, pairs, or name/value dicts)
            max_item_count: Maximum items per page
            continuation_token: Token from the previous page

        Returns:
            Query result page with continuation token

        Raises:
            DatabaseNotFoundError: If database not found
            ContainerNotFoundError: If container not found
            QueryError: If the query is malformed or cannot be evaluated
        """
        set_activity_id(uuid.uuid4().hex)
        try:
            parsed = parse_query(query)

            async with self._lock:
                container = self._get_container_unlocked(database_id, container_id)
                snapshot = list(self._documents[database_id][container_id].values())
                results = self.executor.execute(parsed, snapshot, parameters)

            page, next_token = self.pagination.get_page(results, max_item_count, continuation_token)
            log_with_context(
                self.logger,
                logging.DEBUG,
                f"Query returned {len(page)} of {len(results)} documents",
                database=database_id,
                container=container_id,
                query=query,
            )

            return QueryResult(
                _rid=container.rid,
                Documents=[copy.deepcopy(doc) for doc in page],
                _count=len(page),
                _continuation=next_token
            )
        finally:
            clear_activity_id()

    async def execute_query_request(
        self,
        database_id: str,
        container_id: str,
        request: QueryRequest
    ) -> QueryResult:
        """Execute a query given in the REST request shape."""
        parameters: List[Dict[str, Any]] = [p.model_dump() for p in request.parameters]
        return await self.query_documents(
            database_id,
            container_id,
            request.query,
            parameters=parameters,
            max_item_count=request.max_item_count,
            continuation_token=request.continuation,
        )

    async def clear(self) -> None:
        """Remove all databases, containers and documents."""
        async with self._lock:
            self._databases.clear()
            self._containers.clear()
            self._documents.clear()

    # Internal lookups (caller holds the lock)

    def _get_database_unlocked(self, database_id: str) -> Database:
        if database_id not in self._databases:
            raise DatabaseNotFoundError(
                f"Database with id '{database_id}' not found",
                database_id=database_id
            )
        return self._databases[database_id]

    def _get_container_unlocked(self, database_id: str, container_id: str) -> Container:
        self._get_database_unlocked(database_id)

        if container_id not in self._containers[database_id]:
            raise ContainerNotFoundError(
                f"Container with id '{container_id}' not found in database '{database_id}'",
                container_id=container_id,
                database_id=database_id
            )

        return self._containers[database_id][container_id]

    def _get_document_unlocked(self, database_id: str, container_id: str, document_id: str) -> Dict[str, Any]:
        self._get_container_unlocked(database_id, container_id)

        document = self._documents[database_id][container_id].get(document_id)
        if document is None:
            raise DocumentNotFoundError(
                f"Document with id '{document_id}' not found",
                document_id=document_id
            )
        return document
