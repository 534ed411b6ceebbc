"""
User retrieval strategies.

- TableUserRetrieval: point read of the user item in the session table
- ExternalUserRetrieval: defers to a caller-supplied async function
"""

import logging
from typing import Any, Awaitable, Callable, Optional

from dynamo_auth_sessions.config import SessionStoreConfig
from dynamo_auth_sessions.domain.entities import User
from dynamo_auth_sessions.infrastructure.adapters.schema import SchemaMapper
from dynamo_auth_sessions.infrastructure.ports.users import UserRetrievalStrategy

logger = logging.getLogger("dynamo_auth_sessions.infrastructure.adapters.users")

GetUserFn = Callable[[str, Any], Awaitable[Optional[User]]]


class TableUserRetrieval(UserRetrievalStrategy):
    """Reads "User#<id>" / "User" from the configured table."""

    def __init__(self, config: SessionStoreConfig, mapper: Optional[SchemaMapper] = None):
        self._config = config
        self._mapper = mapper or SchemaMapper(config)

    async def get_user(self, user_id: str, client: Any) -> Optional[User]:
        response = await client.get_item(
            TableName=self._config.table_name,
            Key=self._mapper.user_key(user_id),
        )
        item = response.get("Item")
        if not item:
            logger.debug(f"User not found: {user_id}")
            return None
        return self._mapper.item_to_user(item)


class ExternalUserRetrieval(UserRetrievalStrategy):
    """
    Delegates to a function that may read another store entirely.

    Usage:
        async def load_user(user_id, client):
            row = await users_db.fetch(user_id)
            return User(id=row.id, attributes={"email": row.email}) if row else None

        store = DynamoDBSessionAdapter(
            client, config, user_retrieval=ExternalUserRetrieval(load_user)
        )
    """

    def __init__(self, get_user: GetUserFn):
        self._get_user = get_user

    async def get_user(self, user_id: str, client: Any) -> Optional[User]:
        return await self._get_user(user_id, client)
