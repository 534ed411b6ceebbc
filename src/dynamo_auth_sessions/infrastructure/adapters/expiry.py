"""
Expiry Scanner.

Finds expired sessions with one range query on the expiry index
(Gs2Pk = "Session" AND Gs2Sk < now) instead of a full table scan, and
removes them through the batch delete executor.
"""

import logging
import time
from typing import Optional

from dynamo_auth_sessions.config import SessionStoreConfig
from dynamo_auth_sessions.infrastructure.adapters.batch import BatchDeleteExecutor
from dynamo_auth_sessions.infrastructure.adapters.query import (
    KeyCondition,
    PaginatedQueryExecutor,
    SortOperator,
)
from dynamo_auth_sessions.infrastructure.adapters.schema import (
    Item,
    SchemaMapper,
    encode_expiry,
)

logger = logging.getLogger("dynamo_auth_sessions.infrastructure.adapters.expiry")


class ExpiryScanner:
    def __init__(
        self,
        config: SessionStoreConfig,
        mapper: SchemaMapper,
        query_executor: PaginatedQueryExecutor,
        batch_executor: BatchDeleteExecutor,
    ):
        self._config = config
        self._mapper = mapper
        self._query = query_executor
        self._batch = batch_executor

    async def find_expired_keys(self, now: Optional[int] = None) -> list[Item]:
        """
        Primary keys of every session whose expiry is strictly before now.

        Args:
            now: Epoch seconds; defaults to the current time

        Returns:
            Primary key maps in ascending expiry order
        """
        if now is None:
            now = int(time.time())
        index = self._config.expiry_index
        primary = self._config.primary

        items = await self._query.query(
            KeyCondition(
                index.partition_key,
                self._config.session_type,
                sort_key=index.sort_key,
                sort_operator=SortOperator.LT,
                sort_value=encode_expiry(now),
            ),
            index_name=index.name,
            projection=[primary.partition_key, primary.sort_key],
        )
        return [self._mapper.key_from_item(item) for item in items]

    async def delete_expired(self, now: Optional[int] = None) -> int:
        """Delete every expired session. Returns the number of keys submitted."""
        keys = await self.find_expired_keys(now)
        if not keys:
            logger.debug("No expired sessions to delete")
            return 0
        deleted = await self._batch.delete(keys)
        logger.debug(f"Deleted {deleted} expired session(s)")
        return deleted
