"""
dynamo-auth-sessions: DynamoDB single-table storage for auth sessions.

Stores users and sessions in one table and uses two global secondary
indexes to list a user's sessions and to sweep expired sessions.
"""

__version__ = "0.1.0"

from dynamo_auth_sessions.config import (
    IndexSchema,
    KeySchema,
    SessionStoreConfig,
)
from dynamo_auth_sessions.domain import (
    User,
    Session,
    SessionStoreError,
    MalformedRecordError,
    UnprocessedItemsError,
)
from dynamo_auth_sessions.infrastructure.ports import (
    SessionStorePort,
    UserRetrievalStrategy,
)
from dynamo_auth_sessions.infrastructure.adapters import (
    DynamoDBSessionAdapter,
    InMemorySessionAdapter,
    ExternalUserRetrieval,
    TableUserRetrieval,
    SchemaMapper,
)

__all__ = [
    # Version
    "__version__",
    # Config
    "IndexSchema",
    "KeySchema",
    "SessionStoreConfig",
    # Domain
    "User",
    "Session",
    "SessionStoreError",
    "MalformedRecordError",
    "UnprocessedItemsError",
    # Ports
    "SessionStorePort",
    "UserRetrievalStrategy",
    # Adapters
    "DynamoDBSessionAdapter",
    "InMemorySessionAdapter",
    "ExternalUserRetrieval",
    "TableUserRetrieval",
    "SchemaMapper",
]
