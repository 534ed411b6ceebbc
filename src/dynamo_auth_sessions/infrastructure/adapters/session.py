"""
Session Adapter Implementations.

Provides backends for SessionStorePort:
- DynamoDBSessionAdapter: For production (single table, two GSIs)
- InMemorySessionAdapter: For development/testing
"""

import logging
import time
from datetime import datetime, timezone
from typing import Optional, Dict, Any

from botocore.exceptions import ClientError

from dynamo_auth_sessions.config import SessionStoreConfig
from dynamo_auth_sessions.domain.entities import (
    Session,
    User,
    as_utc,
    epoch_seconds,
)
from dynamo_auth_sessions.infrastructure.adapters.batch import BatchDeleteExecutor
from dynamo_auth_sessions.infrastructure.adapters.expiry import ExpiryScanner
from dynamo_auth_sessions.infrastructure.adapters.query import (
    KeyCondition,
    PaginatedQueryExecutor,
    SortOperator,
)
from dynamo_auth_sessions.infrastructure.adapters.schema import (
    SchemaMapper,
    encode_expiry,
)
from dynamo_auth_sessions.infrastructure.adapters.users import TableUserRetrieval
from dynamo_auth_sessions.infrastructure.ports.session import SessionStorePort
from dynamo_auth_sessions.infrastructure.ports.users import UserRetrievalStrategy

logger = logging.getLogger("dynamo_auth_sessions.infrastructure.adapters.session")


def _is_conditional_check_failure(error: ClientError) -> bool:
    code = error.response.get("Error", {}).get("Code", "")
    return code == "ConditionalCheckFailedException"


# ═══════════════════════════════════════════════════════════════
# DYNAMODB ADAPTER (Production)
# ═══════════════════════════════════════════════════════════════


class DynamoDBSessionAdapter(SessionStorePort):
    """
    DynamoDB implementation of SessionStorePort.

    All entities live in one table. Sessions are found by id through the
    primary key, by user through the first GSI and by expiry through the
    second GSI. Store errors propagate unmodified; this adapter neither
    retries nor caches.

    Requires: aioboto3

    Usage:
        import aioboto3

        async with aioboto3.Session().client("dynamodb") as client:
            store = DynamoDBSessionAdapter(
                client,
                SessionStoreConfig(
                    table_name="AuthTable",
                    excluded_user_attributes={"HashedPassword"},
                ),
            )
            await store.set_session(session)
    """

    def __init__(
        self,
        client: Any,  # aioboto3 DynamoDB client
        config: Optional[SessionStoreConfig] = None,
        user_retrieval: Optional[UserRetrievalStrategy] = None,
    ):
        self._client = client
        self.config = config or SessionStoreConfig()
        self._mapper = SchemaMapper(self.config)
        self._queries = PaginatedQueryExecutor(client, self.config.table_name)
        self._batch = BatchDeleteExecutor(
            client, self.config.table_name, self.config.max_batch_size
        )
        self._expiry = ExpiryScanner(
            self.config, self._mapper, self._queries, self._batch
        )
        self._user_retrieval = user_retrieval or TableUserRetrieval(
            self.config, self._mapper
        )

    @property
    def mapper(self) -> SchemaMapper:
        return self._mapper

    async def get_session_and_user(
        self, session_id: str
    ) -> tuple[Optional[Session], Optional[User]]:
        response = await self._client.get_item(
            TableName=self.config.table_name,
            Key=self._mapper.session_key(session_id),
            ConsistentRead=self.config.consistent_read,
        )
        item = response.get("Item")
        if not item:
            return None, None

        session = self._mapper.item_to_session(item)
        user = await self._user_retrieval.get_user(session.user_id, self._client)
        return session, user

    async def get_user_sessions(self, user_id: str) -> list[Session]:
        index = self.config.user_index
        items = await self._queries.query(
            KeyCondition(
                index.partition_key,
                self._mapper.user_partition(user_id),
                sort_key=index.sort_key,
                sort_operator=SortOperator.BEGINS_WITH,
                sort_value=self.config.session_prefix,
            ),
            index_name=index.name,
        )
        return [self._mapper.item_to_session(item) for item in items]

    async def set_session(self, session: Session) -> None:
        await self._client.put_item(
            TableName=self.config.table_name,
            Item=self._mapper.session_to_item(session),
        )
        logger.debug(f"Saved session: {session.id}")

    async def update_session_expiration(
        self, session_id: str, expires_at: datetime
    ) -> None:
        # Compare at full precision, before truncating to seconds
        if as_utc(expires_at) <= datetime.now(timezone.utc):
            logger.debug(f"Expiry of session {session_id} is in the past, deleting")
            await self.delete_session(session_id)
            return

        config = self.config
        expires = epoch_seconds(expires_at)
        try:
            await self._client.update_item(
                TableName=config.table_name,
                Key=self._mapper.session_key(session_id),
                UpdateExpression="SET #exp = :exp, #gs1sk = :gs1sk, #gs2sk = :gs2sk",
                ConditionExpression="attribute_exists(#pk)",
                ExpressionAttributeNames={
                    "#pk": config.primary.partition_key,
                    "#exp": config.expires_attribute,
                    "#gs1sk": config.user_index.sort_key,
                    "#gs2sk": config.expiry_index.sort_key,
                },
                ExpressionAttributeValues={
                    ":exp": {"N": str(expires)},
                    ":gs1sk": {"S": self._mapper.user_index_sort(expires)},
                    ":gs2sk": {"S": encode_expiry(expires)},
                },
            )
        except ClientError as e:
            if not _is_conditional_check_failure(e):
                raise
            logger.debug(f"Session {session_id} no longer exists, expiry not updated")
            return
        logger.debug(f"Updated expiry of session {session_id} to {expires}")

    async def delete_session(self, session_id: str) -> None:
        await self._client.delete_item(
            TableName=self.config.table_name,
            Key=self._mapper.session_key(session_id),
        )
        logger.debug(f"Deleted session: {session_id}")

    async def delete_user_sessions(self, user_id: str) -> int:
        index = self.config.user_index
        primary = self.config.primary
        items = await self._queries.query(
            KeyCondition(
                index.partition_key,
                self._mapper.user_partition(user_id),
                sort_key=index.sort_key,
                sort_operator=SortOperator.BEGINS_WITH,
                sort_value=self.config.session_prefix,
            ),
            index_name=index.name,
            projection=[primary.partition_key, primary.sort_key],
        )
        keys = [self._mapper.key_from_item(item) for item in items]
        count = await self._batch.delete(keys)
        logger.debug(f"Deleted {count} session(s) of user {user_id}")
        return count

    async def delete_expired_sessions(self) -> int:
        return await self._expiry.delete_expired(int(time.time()))


# ═══════════════════════════════════════════════════════════════
# IN-MEMORY ADAPTER (Development/Testing)
# ═══════════════════════════════════════════════════════════════


class InMemorySessionAdapter(SessionStorePort):
    """
    In-memory implementation of SessionStorePort.

    Suitable for development and testing. Not for production
    as sessions are lost on restart and not distributed.

    Usage:
        store = InMemorySessionAdapter()
        store.add_user(User(id="u1", attributes={"email": "a@b.c"}))
        await store.set_session(session)
    """

    def __init__(self, user_retrieval: Optional[UserRetrievalStrategy] = None):
        self._sessions: Dict[str, Session] = {}
        self._users: Dict[str, User] = {}
        self._user_retrieval = user_retrieval

    def add_user(self, user: User) -> None:
        """Seed a user (the session store itself never writes users)."""
        self._users[user.id] = user

    async def get_session_and_user(
        self, session_id: str
    ) -> tuple[Optional[Session], Optional[User]]:
        session = self._sessions.get(session_id)
        if session is None:
            return None, None
        if self._user_retrieval is not None:
            user = await self._user_retrieval.get_user(session.user_id, None)
        else:
            user = self._users.get(session.user_id)
        return session, user

    async def get_user_sessions(self, user_id: str) -> list[Session]:
        sessions = [s for s in self._sessions.values() if s.user_id == user_id]
        sessions.sort(key=lambda s: s.expires_at)
        return sessions

    async def set_session(self, session: Session) -> None:
        self._sessions[session.id] = session
        logger.debug(f"Saved session: {session.id}")

    async def update_session_expiration(
        self, session_id: str, expires_at: datetime
    ) -> None:
        session = self._sessions.get(session_id)
        if session is None:
            return
        if as_utc(expires_at) <= datetime.now(timezone.utc):
            await self.delete_session(session_id)
            return
        updated = Session(
            id=session.id,
            user_id=session.user_id,
            expires_at=expires_at,
            attributes=session.attributes,
        )
        self._sessions[session_id] = updated

    async def delete_session(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)
        logger.debug(f"Deleted session: {session_id}")

    async def delete_user_sessions(self, user_id: str) -> int:
        doomed = [sid for sid, s in self._sessions.items() if s.user_id == user_id]
        for sid in doomed:
            del self._sessions[sid]
        return len(doomed)

    async def delete_expired_sessions(self) -> int:
        now = datetime.now(timezone.utc).replace(microsecond=0)
        expired = [sid for sid, s in self._sessions.items() if s.expires_at < now]
        for sid in expired:
            del self._sessions[sid]
        return len(expired)

    def clear(self) -> None:
        """Clear all sessions and users (for testing)."""
        self._sessions.clear()
        self._users.clear()


__all__ = [
    "DynamoDBSessionAdapter",
    "InMemorySessionAdapter",
]
