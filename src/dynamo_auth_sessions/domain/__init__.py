"""Domain entities and errors."""

from dynamo_auth_sessions.domain.entities import User, Session
from dynamo_auth_sessions.domain.errors import (
    SessionStoreError,
    MalformedRecordError,
    UnprocessedItemsError,
)

__all__ = [
    "User",
    "Session",
    "SessionStoreError",
    "MalformedRecordError",
    "UnprocessedItemsError",
]
