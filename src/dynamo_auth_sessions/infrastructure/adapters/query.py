"""
Paginated Query Executor.

Drives a DynamoDB Query to completion, following LastEvaluatedKey
until the store reports no further pages. Pages are requested strictly
one after another, so results keep the index's ascending sort order.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, AsyncIterator, Optional, Sequence

logger = logging.getLogger("dynamo_auth_sessions.infrastructure.adapters.query")

Item = dict[str, dict[str, Any]]


class SortOperator(Enum):
    """Conditions DynamoDB accepts on the sort key of a key condition."""

    EQ = "="
    LT = "<"
    LE = "<="
    GT = ">"
    GE = ">="
    BEGINS_WITH = "begins_with"


@dataclass(frozen=True)
class KeyCondition:
    """
    Equality on a partition key, optionally narrowed on the sort key.

    Values are plain strings; sort keys in this schema are always strings.

    Example:
        KeyCondition(
            "Gs1Pk", "User#u1",
            sort_key="Gs1Sk",
            sort_operator=SortOperator.BEGINS_WITH,
            sort_value="Session#",
        )
    """

    partition_key: str
    partition_value: str
    sort_key: Optional[str] = None
    sort_operator: Optional[SortOperator] = None
    sort_value: Optional[str] = None

    def __post_init__(self):
        narrowed = (self.sort_key, self.sort_operator, self.sort_value)
        if any(v is not None for v in narrowed) and any(v is None for v in narrowed):
            raise ValueError(
                "sort_key, sort_operator and sort_value must be given together"
            )

    def to_request(self) -> dict[str, Any]:
        """Render KeyConditionExpression and its placeholder maps."""
        names = {"#pk": self.partition_key}
        values = {":pk": {"S": self.partition_value}}
        expression = "#pk = :pk"

        if self.sort_key is not None:
            names["#sk"] = self.sort_key
            values[":sk"] = {"S": self.sort_value}
            if self.sort_operator is SortOperator.BEGINS_WITH:
                expression += " AND begins_with(#sk, :sk)"
            else:
                expression += f" AND #sk {self.sort_operator.value} :sk"

        return {
            "KeyConditionExpression": expression,
            "ExpressionAttributeNames": names,
            "ExpressionAttributeValues": values,
        }


class PaginatedQueryExecutor:
    """
    Runs key-condition queries against one table and its indexes.

    Usage:
        executor = PaginatedQueryExecutor(client, "AuthTable")
        items = await executor.query(
            KeyCondition("Gs1Pk", "User#u1"), index_name="Gs1"
        )
    """

    def __init__(self, client: Any, table_name: str):
        self._client = client
        self._table_name = table_name

    def _request(
        self,
        condition: KeyCondition,
        index_name: Optional[str],
        consistent_read: bool,
        projection: Optional[Sequence[str]],
        page_size: Optional[int],
    ) -> dict[str, Any]:
        request = {"TableName": self._table_name, **condition.to_request()}
        if index_name:
            request["IndexName"] = index_name
        if consistent_read:
            request["ConsistentRead"] = True
        if page_size:
            request["Limit"] = page_size
        if projection:
            placeholders = []
            for i, name in enumerate(projection):
                placeholder = f"#p{i}"
                request["ExpressionAttributeNames"][placeholder] = name
                placeholders.append(placeholder)
            request["Select"] = "SPECIFIC_ATTRIBUTES"
            request["ProjectionExpression"] = ", ".join(placeholders)
        return request

    async def pages(
        self,
        condition: KeyCondition,
        index_name: Optional[str] = None,
        consistent_read: bool = False,
        projection: Optional[Sequence[str]] = None,
        page_size: Optional[int] = None,
    ) -> AsyncIterator[list[Item]]:
        """
        Yield each page of raw items in order.

        The iterator is not restartable; the next page is only requested
        once the previous one has been consumed.
        """
        request = self._request(
            condition, index_name, consistent_read, projection, page_size
        )
        page_number = 0
        while True:
            response = await self._client.query(**request)
            items = response.get("Items") or []
            page_number += 1
            logger.debug(
                f"Query page {page_number} on {self._table_name}"
                f"{'/' + index_name if index_name else ''}: {len(items)} item(s)"
            )
            yield items

            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                return
            request["ExclusiveStartKey"] = last_key

    async def query(
        self,
        condition: KeyCondition,
        index_name: Optional[str] = None,
        consistent_read: bool = False,
        projection: Optional[Sequence[str]] = None,
        page_size: Optional[int] = None,
    ) -> list[Item]:
        """Return the complete result set across all pages."""
        items: list[Item] = []
        async for page in self.pages(
            condition,
            index_name=index_name,
            consistent_read=consistent_read,
            projection=projection,
            page_size=page_size,
        ):
            items.extend(page)
        return items
