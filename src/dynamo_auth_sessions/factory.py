"""
Factory functions for automatic store creation.

Builds the configuration from environment variables when none is
provided and wires an aioboto3 DynamoDB client into the adapter.
"""

import os
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import aioboto3

from dynamo_auth_sessions.config import MAX_BATCH_WRITE_ITEMS, SessionStoreConfig
from dynamo_auth_sessions.infrastructure.adapters.session import (
    DynamoDBSessionAdapter,
)
from dynamo_auth_sessions.infrastructure.ports.users import UserRetrievalStrategy

logger = logging.getLogger(__name__)

ENV_PREFIX = "SESSION_STORE_"


def _env_list(name: str) -> frozenset[str]:
    raw = os.environ.get(name, "")
    return frozenset(part.strip() for part in raw.split(",") if part.strip())


def config_from_env() -> SessionStoreConfig:
    """
    Create a SessionStoreConfig from SESSION_STORE_* environment variables.

    Recognized variables:
        SESSION_STORE_TABLE
        SESSION_STORE_CONSISTENT_READ        "true"/"false"
        SESSION_STORE_EXCLUDED_USER_ATTRIBUTES      comma separated
        SESSION_STORE_EXCLUDED_SESSION_ATTRIBUTES   comma separated
        SESSION_STORE_MAX_BATCH_SIZE
    """
    defaults = SessionStoreConfig()
    return SessionStoreConfig(
        table_name=os.environ.get(f"{ENV_PREFIX}TABLE", defaults.table_name),
        consistent_read=os.environ.get(f"{ENV_PREFIX}CONSISTENT_READ", "false").lower()
        == "true",
        excluded_user_attributes=_env_list(f"{ENV_PREFIX}EXCLUDED_USER_ATTRIBUTES"),
        excluded_session_attributes=_env_list(
            f"{ENV_PREFIX}EXCLUDED_SESSION_ATTRIBUTES"
        ),
        max_batch_size=int(
            os.environ.get(f"{ENV_PREFIX}MAX_BATCH_SIZE", MAX_BATCH_WRITE_ITEMS)
        ),
    )


@asynccontextmanager
async def dynamodb_session_store(
    config: Optional[SessionStoreConfig] = None,
    endpoint_url: Optional[str] = None,
    region_name: Optional[str] = None,
    user_retrieval: Optional[UserRetrievalStrategy] = None,
    session: Optional[aioboto3.Session] = None,
) -> AsyncIterator[DynamoDBSessionAdapter]:
    """
    Open a DynamoDB client and yield a session store bound to it.

    Usage:
        async with dynamodb_session_store(endpoint_url="http://localhost:8000") as store:
            await store.delete_expired_sessions()
    """
    config = config or config_from_env()
    endpoint_url = endpoint_url or os.environ.get(f"{ENV_PREFIX}ENDPOINT_URL") or None
    region_name = region_name or os.environ.get("AWS_REGION") or None
    session = session or aioboto3.Session()

    logger.debug(
        f"Opening DynamoDB client for table {config.table_name}"
        f"{' at ' + endpoint_url if endpoint_url else ''}"
    )
    async with session.client(
        "dynamodb", endpoint_url=endpoint_url, region_name=region_name
    ) as client:
        yield DynamoDBSessionAdapter(client, config, user_retrieval=user_retrieval)
