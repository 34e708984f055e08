"""
Cosmos DB Models.

Pydantic models for databases, containers and query requests/results,
following the Azure Cosmos DB resource shapes (system properties such as
``_rid`` and ``_ts`` are exposed under their wire aliases).

Author: LocalCosmos Team
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def validate_resource_id(kind: str, v: Any) -> str:
    """Validate a database or container ID.

    Args:
        kind: Resource kind used in error messages ("Database", "Container")
        v: Candidate ID

    Returns:
        Validated ID

    Raises:
        ValueError: If ID is invalid
    """
    if not isinstance(v, str) or not v:
        raise ValueError(f"{kind} ID cannot be empty")

    if len(v) > 255:
        raise ValueError(f"{kind} ID must be 255 characters or less")

    # Alphanumeric, underscore, and hyphen only
    if not all(c.isalnum() or c in ['_', '-'] for c in v):
        raise ValueError(f"{kind} ID can only contain alphanumeric characters, underscores, and hyphens")

    return v


class Database(BaseModel):
    """Cosmos DB database.

    Attributes:
        id: Database identifier
        rid: Resource ID (``_rid``)
        ts: Last modified timestamp in epoch seconds (``_ts``)
        self_link: Self link (``_self``)
        etag: ETag (``_etag``)
        colls: Containers link (``_colls``)
    """

    id: str
    rid: str = Field(default="", alias="_rid")
    ts: int = Field(default=0, alias="_ts")
    self_link: str = Field(default="", alias="_self")
    etag: str = Field(default="", alias="_etag")
    colls: str = Field(default="", alias="_colls")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("id", mode="before")
    @classmethod
    def validate_id(cls, v: Any) -> str:
        return validate_resource_id("Database", v)


class Container(BaseModel):
    """Cosmos DB container.

    Attributes:
        id: Container identifier
        rid: Resource ID (``_rid``)
        ts: Last modified timestamp (``_ts``)
        self_link: Self link (``_self``)
        etag: ETag (``_etag``)
        docs: Documents link (``_docs``)
    """

    id: str
    rid: str = Field(default="", alias="_rid")
    ts: int = Field(default=0, alias="_ts")
    self_link: str = Field(default="", alias="_self")
    etag: str = Field(default="", alias="_etag")
    docs: str = Field(default="", alias="_docs")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("id", mode="before")
    @classmethod
    def validate_id(cls, v: Any) -> str:
        return validate_resource_id("Container", v)


class CreateDatabaseRequest(BaseModel):
    """Request to create a database."""

    id: str

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("id", mode="before")
    @classmethod
    def validate_id(cls, v: Any) -> str:
        return validate_resource_id("Database", v)


class CreateContainerRequest(BaseModel):
    """Request to create a container."""

    id: str

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("id", mode="before")
    @classmethod
    def validate_id(cls, v: Any) -> str:
        return validate_resource_id("Container", v)


class DatabaseListResult(BaseModel):
    """List of databases.

    Attributes:
        databases: Databases (``Databases``)
        count: Number of databases (``_count``)
    """

    rid: str = Field(default="", alias="_rid")
    databases: List[Database] = Field(default_factory=list, alias="Databases")
    count: int = Field(default=0, alias="_count")

    model_config = ConfigDict(populate_by_name=True)


class ContainerListResult(BaseModel):
    """List of containers in a database."""

    rid: str = Field(default="", alias="_rid")
    document_collections: List[Container] = Field(default_factory=list, alias="DocumentCollections")
    count: int = Field(default=0, alias="_count")

    model_config = ConfigDict(populate_by_name=True)


class DocumentListResult(BaseModel):
    """List of documents in a container."""

    rid: str = Field(default="", alias="_rid")
    documents: List[Dict[str, Any]] = Field(default_factory=list, alias="Documents")
    count: int = Field(default=0, alias="_count")

    model_config = ConfigDict(populate_by_name=True)


class QueryParameter(BaseModel):
    """Named query parameter in the REST ``{"name": "@x", "value": ...}`` shape."""

    name: str
    value: Any = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v.lstrip("@"):
            raise ValueError("Parameter name cannot be empty")
        return v


class QueryRequest(BaseModel):
    """SQL query request.

    Attributes:
        query: SQL query string
        parameters: Query parameters for parameterized queries
        max_item_count: Page size (``maxItemCount``)
        continuation: Continuation token from a previous page
    """

    query: str
    parameters: List[QueryParameter] = Field(default_factory=list)
    max_item_count: Optional[int] = Field(default=None, alias="maxItemCount", gt=0)
    continuation: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)


class QueryResult(BaseModel):
    """SQL query result page.

    Attributes:
        rid: Resource ID of container (``_rid``)
        documents: Documents in this page (``Documents``)
        count: Count of documents in this page (``_count``)
        continuation: Token for the next page, None on the last page
    """

    rid: str = Field(default="", alias="_rid")
    documents: List[Dict[str, Any]] = Field(default_factory=list, alias="Documents")
    count: int = Field(default=0, alias="_count")
    continuation: Optional[str] = Field(default=None, alias="_continuation")

    model_config = ConfigDict(populate_by_name=True)
