"""
Unit tests for Cosmos DB backend operations.

Tests database, container and document management plus SQL queries
through the store.
"""

import pytest
from pydantic import ValidationError

from localcosmos.core.config_manager import QueryConfig
from localcosmos.services.cosmosdb.backend import CosmosDBBackend
from localcosmos.services.cosmosdb.exceptions import (
    BadRequestError,
    ContainerAlreadyExistsError,
    ContainerNotFoundError,
    DatabaseAlreadyExistsError,
    DatabaseNotFoundError,
    DocumentAlreadyExistsError,
    DocumentNotFoundError,
    QuerySyntaxError,
    TypeMismatchError,
)
from localcosmos.services.cosmosdb.models import (
    CreateContainerRequest,
    CreateDatabaseRequest,
    QueryParameter,
    QueryRequest,
)


PEOPLE = [
    {"id": "1", "name": "Alice", "age": 30},
    {"id": "2", "name": "Bob", "age": 17},
    {"id": "3", "name": "Carol", "age": 65},
    {"id": "4", "name": "Dave", "age": 21},
]


@pytest.fixture
def backend():
    """Create a fresh backend for each test."""
    return CosmosDBBackend()


@pytest.fixture
async def backend_with_container(backend):
    """Create a backend with database 'db' and container 'people'."""
    await backend.create_database(CreateDatabaseRequest(id="db"))
    await backend.create_container("db", CreateContainerRequest(id="people"))
    for doc in PEOPLE:
        await backend.create_document("db", "people", doc)
    return backend


class TestDatabases:
    """Test database operations."""

    @pytest.mark.asyncio
    async def test_create_database(self, backend):
        """Test creating a database sets system properties."""
        db = await backend.create_database(CreateDatabaseRequest(id="db1"))

        assert db.id == "db1"
        assert len(db.rid) == 8
        assert db.self_link == f"dbs/{db.rid}"
        assert db.ts > 0

    @pytest.mark.asyncio
    async def test_create_duplicate_database(self, backend):
        """Test duplicate database is a conflict."""
        await backend.create_database(CreateDatabaseRequest(id="db1"))

        with pytest.raises(DatabaseAlreadyExistsError) as exc_info:
            await backend.create_database(CreateDatabaseRequest(id="db1"))

        assert exc_info.value.error_code == "Conflict"

    def test_invalid_database_id(self):
        """Test invalid id is rejected by the request model."""
        with pytest.raises(ValidationError):
            CreateDatabaseRequest(id="bad id!")

    @pytest.mark.asyncio
    async def test_list_and_delete(self, backend):
        """Test listing and deleting databases."""
        await backend.create_database(CreateDatabaseRequest(id="a"))
        await backend.create_database(CreateDatabaseRequest(id="b"))

        listed = await backend.list_databases()
        assert [db.id for db in listed.databases] == ["a", "b"]
        assert listed.count == 2

        await backend.delete_database("a")

        with pytest.raises(DatabaseNotFoundError):
            await backend.get_database("a")

    @pytest.mark.asyncio
    async def test_delete_missing_database(self, backend):
        """Test deleting an unknown database."""
        with pytest.raises(DatabaseNotFoundError):
            await backend.delete_database("nope")


class TestContainers:
    """Test container operations."""

    @pytest.mark.asyncio
    async def test_create_container(self, backend):
        """Test container links hang off the database."""
        db = await backend.create_database(CreateDatabaseRequest(id="db"))
        container = await backend.create_container("db", CreateContainerRequest(id="items"))

        assert container.id == "items"
        assert container.self_link.startswith(f"dbs/{db.rid}/colls/")

    @pytest.mark.asyncio
    async def test_create_container_missing_database(self, backend):
        """Test container in unknown database."""
        with pytest.raises(DatabaseNotFoundError):
            await backend.create_container("nope", CreateContainerRequest(id="items"))

    @pytest.mark.asyncio
    async def test_duplicate_container(self, backend_with_container):
        """Test duplicate container is a conflict."""
        with pytest.raises(ContainerAlreadyExistsError):
            await backend_with_container.create_container("db", CreateContainerRequest(id="people"))

    @pytest.mark.asyncio
    async def test_list_and_delete(self, backend_with_container):
        """Test listing and deleting containers."""
        listed = await backend_with_container.list_containers("db")
        assert [c.id for c in listed.document_collections] == ["people"]

        await backend_with_container.delete_container("db", "people")

        with pytest.raises(ContainerNotFoundError):
            await backend_with_container.get_container("db", "people")


class TestDocuments:
    """Test document operations."""

    @pytest.mark.asyncio
    async def test_create_document_adds_system_properties(self, backend_with_container):
        """Test created document carries system properties."""
        doc = await backend_with_container.create_document("db", "people", {"id": "9", "name": "Zed"})

        assert doc["name"] == "Zed"
        for key in ("_rid", "_ts", "_self", "_etag", "_attachments"):
            assert key in doc

    @pytest.mark.asyncio
    async def test_capital_id(self, backend_with_container):
        """Test Id is accepted and copied to id."""
        doc = await backend_with_container.create_document("db", "people", {"Id": "x1", "name": "Cap"})

        assert doc["id"] == "x1"
        assert (await backend_with_container.get_document("db", "people", "x1"))["name"] == "Cap"

    @pytest.mark.asyncio
    async def test_document_without_id(self, backend_with_container):
        """Test document without id is rejected."""
        with pytest.raises(BadRequestError):
            await backend_with_container.create_document("db", "people", {"name": "anon"})

    @pytest.mark.asyncio
    async def test_duplicate_document(self, backend_with_container):
        """Test duplicate id is a conflict."""
        with pytest.raises(DocumentAlreadyExistsError):
            await backend_with_container.create_document("db", "people", {"id": "1"})

    @pytest.mark.asyncio
    async def test_get_returns_copy(self, backend_with_container):
        """Test mutating a returned document does not change the store."""
        doc = await backend_with_container.get_document("db", "people", "1")
        doc["name"] = "changed"

        again = await backend_with_container.get_document("db", "people", "1")
        assert again["name"] == "Alice"

    @pytest.mark.asyncio
    async def test_replace_keeps_position_and_rid(self, backend_with_container):
        """Test replace keeps order and resource id."""
        before = await backend_with_container.get_document("db", "people", "2")

        replaced = await backend_with_container.replace_document("db", "people", "2", {"name": "Robert", "age": 18})

        assert replaced["_rid"] == before["_rid"]
        assert "age" in replaced and replaced["id"] == "2"
        listed = await backend_with_container.list_documents("db", "people")
        assert [d["id"] for d in listed.documents] == ["1", "2", "3", "4"]

    @pytest.mark.asyncio
    async def test_replace_missing(self, backend_with_container):
        """Test replacing unknown document."""
        with pytest.raises(DocumentNotFoundError):
            await backend_with_container.replace_document("db", "people", "99", {"name": "x"})

    @pytest.mark.asyncio
    async def test_upsert_moves_to_end(self, backend_with_container):
        """Test upsert of an existing id moves it to the end."""
        await backend_with_container.upsert_document("db", "people", {"id": "1", "name": "Alice", "age": 31})

        listed = await backend_with_container.list_documents("db", "people")
        assert [d["id"] for d in listed.documents] == ["2", "3", "4", "1"]
        assert listed.documents[-1]["age"] == 31

    @pytest.mark.asyncio
    async def test_upsert_creates(self, backend_with_container):
        """Test upsert of a new id creates it."""
        await backend_with_container.upsert_document("db", "people", {"id": "5", "name": "Eve"})

        listed = await backend_with_container.list_documents("db", "people")
        assert listed.count == 5

    @pytest.mark.asyncio
    async def test_delete_document(self, backend_with_container):
        """Test deleting a document."""
        await backend_with_container.delete_document("db", "people", "3")

        with pytest.raises(DocumentNotFoundError):
            await backend_with_container.get_document("db", "people", "3")

    @pytest.mark.asyncio
    async def test_system_properties_not_stored_from_input(self, backend_with_container):
        """Test client-supplied system properties are replaced."""
        doc = await backend_with_container.create_document(
            "db", "people", {"id": "7", "_rid": "fake", "_etag": "fake"}
        )

        assert doc["_rid"] != "fake"
        assert doc["_etag"] != "fake"


class TestQueries:
    """Test SQL queries through the backend."""

    @pytest.mark.asyncio
    async def test_query_filters(self, backend_with_container):
        """Test WHERE filter over stored documents."""
        result = await backend_with_container.query_documents("db", "people", "SELECT * FROM c WHERE c.age > 21")

        assert [d["id"] for d in result.documents] == ["1", "3"]
        assert result.count == 2
        assert result.continuation is None

    @pytest.mark.asyncio
    async def test_query_projection(self, backend_with_container):
        """Test projection output has no system properties."""
        result = await backend_with_container.query_documents(
            "db", "people", "SELECT c.name FROM c WHERE c.id = '2'"
        )

        assert result.documents == [{"id": "2", "name": "Bob"}]

    @pytest.mark.asyncio
    async def test_query_parameters(self, backend_with_container):
        """Test parameterized query."""
        result = await backend_with_container.query_documents(
            "db", "people",
            "SELECT * FROM c WHERE c.age BETWEEN @low AND @high ORDER BY c.age",
            parameters=[{"name": "@low", "value": 18}, {"name": "@high", "value": 30}],
        )

        assert [d["id"] for d in result.documents] == ["4", "1"]

    @pytest.mark.asyncio
    async def test_query_pagination(self, backend_with_container):
        """Test paging through results with continuation tokens."""
        sql = "SELECT * FROM c ORDER BY c.age"

        first = await backend_with_container.query_documents("db", "people", sql, max_item_count=3)
        second = await backend_with_container.query_documents(
            "db", "people", sql, max_item_count=3, continuation_token=first.continuation
        )

        assert [d["id"] for d in first.documents] == ["2", "4", "1"]
        assert first.continuation is not None
        assert [d["id"] for d in second.documents] == ["3"]
        assert second.continuation is None

    @pytest.mark.asyncio
    async def test_default_page_size_from_settings(self):
        """Test configured default page size."""
        backend = CosmosDBBackend(settings=QueryConfig(default_max_item_count=2))
        await backend.create_database(CreateDatabaseRequest(id="db"))
        await backend.create_container("db", CreateContainerRequest(id="c1"))
        for doc in PEOPLE:
            await backend.create_document("db", "c1", doc)

        result = await backend.query_documents("db", "c1", "SELECT * FROM c")

        assert result.count == 2
        assert result.continuation is not None

    @pytest.mark.asyncio
    async def test_query_result_is_copy(self, backend_with_container):
        """Test query results do not alias stored documents."""
        result = await backend_with_container.query_documents("db", "people", "SELECT * FROM c WHERE c.id = '1'")
        result.documents[0]["name"] = "changed"

        doc = await backend_with_container.get_document("db", "people", "1")
        assert doc["name"] == "Alice"

    @pytest.mark.asyncio
    async def test_query_syntax_error(self, backend_with_container):
        """Test malformed query raises."""
        with pytest.raises(QuerySyntaxError):
            await backend_with_container.query_documents("db", "people", "SELECT * FROM c WHERE")

    @pytest.mark.asyncio
    async def test_query_type_error(self, backend_with_container):
        """Test NOT over a string value raises."""
        with pytest.raises(TypeMismatchError):
            await backend_with_container.query_documents("db", "people", "SELECT * FROM c WHERE NOT c.name")

    @pytest.mark.asyncio
    async def test_query_missing_container(self, backend_with_container):
        """Test query against unknown container."""
        with pytest.raises(ContainerNotFoundError):
            await backend_with_container.query_documents("db", "nope", "SELECT * FROM c")

    @pytest.mark.asyncio
    async def test_execute_query_request(self, backend_with_container):
        """Test REST-shaped query request."""
        request = QueryRequest.model_validate({
            "query": "SELECT * FROM c WHERE c.name = @name",
            "parameters": [{"name": "@name", "value": "Carol"}],
            "maxItemCount": 5,
        })

        result = await backend_with_container.execute_query_request("db", "people", request)

        assert [d["id"] for d in result.documents] == ["3"]
        dumped = result.model_dump(by_alias=True)
        assert dumped["_count"] == 1
        assert dumped["_continuation"] is None

    def test_query_parameter_name_required(self):
        """Test empty parameter name is rejected."""
        with pytest.raises(ValidationError):
            QueryParameter(name="@", value=1)

    @pytest.mark.asyncio
    async def test_clear(self, backend_with_container):
        """Test clearing the store."""
        await backend_with_container.clear()

        listed = await backend_with_container.list_databases()
        assert listed.count == 0
