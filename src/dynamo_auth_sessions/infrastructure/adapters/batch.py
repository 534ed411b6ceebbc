"""
Batch Delete Executor.

Deletes any number of primary keys through BatchWriteItem, one chunk of
at most 25 keys per request. Chunks run sequentially and independently:
a failing chunk does not stop the following ones and nothing is rolled
back, so after an error an indeterminate subset of keys is gone.

Keys the store reports as unprocessed are not retried. They are
collected and reported through UnprocessedItemsError once every chunk
has been attempted.
"""

import json
import logging
from typing import Any, Iterable, Optional

from dynamo_auth_sessions.config import MAX_BATCH_WRITE_ITEMS
from dynamo_auth_sessions.domain.errors import UnprocessedItemsError

logger = logging.getLogger("dynamo_auth_sessions.infrastructure.adapters.batch")

Key = dict[str, dict[str, Any]]


def chunked(keys: list[Key], size: int) -> Iterable[list[Key]]:
    for start in range(0, len(keys), size):
        yield keys[start : start + size]


class BatchDeleteExecutor:
    """
    Usage:
        executor = BatchDeleteExecutor(client, "AuthTable")
        deleted = await executor.delete(keys)
    """

    def __init__(
        self,
        client: Any,
        table_name: str,
        max_batch_size: int = MAX_BATCH_WRITE_ITEMS,
    ):
        if not 1 <= max_batch_size <= MAX_BATCH_WRITE_ITEMS:
            raise ValueError(
                f"max_batch_size must be between 1 and {MAX_BATCH_WRITE_ITEMS}"
            )
        self._client = client
        self._table_name = table_name
        self._max_batch_size = max_batch_size

    @staticmethod
    def _unique(keys: Iterable[Key]) -> list[Key]:
        # BatchWriteItem rejects a request that names the same key twice
        seen = set()
        unique = []
        for key in keys:
            marker = json.dumps(key, sort_keys=True, default=str)
            if marker not in seen:
                seen.add(marker)
                unique.append(key)
        return unique

    async def delete(self, keys: Iterable[Key]) -> int:
        """
        Delete every key, returning the number of distinct keys submitted.

        Raises the first store error after all chunks were attempted, or
        UnprocessedItemsError if the store left keys unprocessed.
        """
        unique_keys = self._unique(keys)
        if not unique_keys:
            return 0

        first_error: Optional[Exception] = None
        unprocessed: list[Key] = []

        for index, chunk in enumerate(chunked(unique_keys, self._max_batch_size)):
            try:
                response = await self._client.batch_write_item(
                    RequestItems={
                        self._table_name: [
                            {"DeleteRequest": {"Key": key}} for key in chunk
                        ]
                    }
                )
            except Exception as e:
                logger.warning(
                    f"Batch delete chunk {index} ({len(chunk)} keys) on "
                    f"{self._table_name} failed: {e}"
                )
                if first_error is None:
                    first_error = e
                continue

            leftover = (response.get("UnprocessedItems") or {}).get(
                self._table_name, []
            )
            if leftover:
                logger.warning(
                    f"Batch delete chunk {index} on {self._table_name} left "
                    f"{len(leftover)} key(s) unprocessed"
                )
                unprocessed.extend(
                    request["DeleteRequest"]["Key"] for request in leftover
                )

        if first_error is not None:
            raise first_error
        if unprocessed:
            raise UnprocessedItemsError(unprocessed)

        logger.debug(f"Batch deleted {len(unique_keys)} key(s) from {self._table_name}")
        return len(unique_keys)
