"""Concrete infrastructure adapters (DynamoDB single table, in-memory)."""

from dynamo_auth_sessions.infrastructure.adapters.schema import (
    SchemaMapper,
    encode_expiry,
)
from dynamo_auth_sessions.infrastructure.adapters.query import (
    KeyCondition,
    PaginatedQueryExecutor,
    SortOperator,
)
from dynamo_auth_sessions.infrastructure.adapters.batch import BatchDeleteExecutor
from dynamo_auth_sessions.infrastructure.adapters.expiry import ExpiryScanner
from dynamo_auth_sessions.infrastructure.adapters.users import (
    ExternalUserRetrieval,
    TableUserRetrieval,
)
from dynamo_auth_sessions.infrastructure.adapters.session import (
    DynamoDBSessionAdapter,
    InMemorySessionAdapter,
)

__all__ = [
    # Schema
    "SchemaMapper",
    "encode_expiry",
    # Executors
    "KeyCondition",
    "PaginatedQueryExecutor",
    "SortOperator",
    "BatchDeleteExecutor",
    "ExpiryScanner",
    # User retrieval
    "ExternalUserRetrieval",
    "TableUserRetrieval",
    # Session adapters
    "DynamoDBSessionAdapter",
    "InMemorySessionAdapter",
]
