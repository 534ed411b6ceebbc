"""
Pytest configuration for dynamo-auth-sessions tests.
"""

import re
from datetime import datetime, timezone, timedelta
from unittest.mock import AsyncMock

import pytest
from botocore.exceptions import ClientError

from dynamo_auth_sessions.config import SessionStoreConfig
from dynamo_auth_sessions.domain.entities import Session, User


_KEY_CONDITION = re.compile(
    r"^(?P<pk>#\w+) = (?P<pv>:\w+)"
    r"(?: AND (?:begins_with\((?P<bsk>#\w+), (?P<bsv>:\w+)\)"
    r"|(?P<sk>#\w+) (?P<op><=|>=|<|>|=) (?P<sv>:\w+)))?$"
)

_COMPARE = {
    "=": lambda a, b: a == b,
    "<": lambda a, b: a < b,
    "<=": lambda a, b: a <= b,
    ">": lambda a, b: a > b,
    ">=": lambda a, b: a >= b,
}


def _scalar(attribute):
    if "S" in attribute:
        return attribute["S"]
    if "N" in attribute:
        return float(attribute["N"])
    raise ValueError(f"Unsupported key attribute: {attribute}")


class FakeDynamoDBClient:
    """
    In-memory stand-in for the aioboto3 DynamoDB client methods the
    session store calls. Items are kept in their typed form.

    page_size splits query results into pages; batch_failures and
    unprocessed let tests inject per-chunk failures.
    """

    def __init__(self, config: SessionStoreConfig, page_size=None):
        self.config = config
        self.page_size = page_size
        self.items = {}
        self.calls = []
        self.batch_failures = {}  # chunk number -> exception
        self.unprocessed = {}  # chunk number -> number of keys left over
        self._batch_count = 0

    def _schema(self, index_name=None):
        if index_name is None:
            return self.config.primary
        for index in (self.config.user_index, self.config.expiry_index):
            if index.name == index_name:
                return index
        raise ValueError(f"Unknown index {index_name}")

    def _key(self, key):
        primary = self.config.primary
        return (key[primary.partition_key]["S"], key[primary.sort_key]["S"])

    async def get_item(self, TableName, Key, ConsistentRead=False):
        self.calls.append(("get_item", {"Key": Key, "ConsistentRead": ConsistentRead}))
        item = self.items.get(self._key(Key))
        return {"Item": dict(item)} if item else {}

    async def put_item(self, TableName, Item):
        self.calls.append(("put_item", {"Item": Item}))
        self.items[self._key(Item)] = dict(Item)
        return {}

    async def delete_item(self, TableName, Key):
        self.calls.append(("delete_item", {"Key": Key}))
        self.items.pop(self._key(Key), None)
        return {}

    async def update_item(
        self,
        TableName,
        Key,
        UpdateExpression,
        ExpressionAttributeNames,
        ExpressionAttributeValues,
        ConditionExpression=None,
    ):
        self.calls.append(("update_item", {"Key": Key}))
        item = self.items.get(self._key(Key))
        if ConditionExpression and item is None:
            raise ClientError(
                {
                    "Error": {
                        "Code": "ConditionalCheckFailedException",
                        "Message": "The conditional request failed",
                    }
                },
                "UpdateItem",
            )
        item = item if item is not None else dict(Key)
        assignments = UpdateExpression[len("SET ") :].split(", ")
        for assignment in assignments:
            name, value = assignment.split(" = ")
            item[ExpressionAttributeNames[name]] = ExpressionAttributeValues[value]
        self.items[self._key(Key)] = item
        return {}

    async def query(
        self,
        TableName,
        KeyConditionExpression,
        ExpressionAttributeNames,
        ExpressionAttributeValues,
        IndexName=None,
        ExclusiveStartKey=None,
        ProjectionExpression=None,
        Select=None,
        ConsistentRead=False,
        Limit=None,
    ):
        self.calls.append(
            ("query", {"IndexName": IndexName, "ExclusiveStartKey": ExclusiveStartKey})
        )
        schema = self._schema(IndexName)
        match = _KEY_CONDITION.match(KeyConditionExpression)
        assert match, KeyConditionExpression
        names, values = ExpressionAttributeNames, ExpressionAttributeValues
        assert names[match["pk"]] == schema.partition_key
        partition_value = values[match["pv"]]["S"]

        results = []
        for item in self.items.values():
            if schema.partition_key not in item or schema.sort_key not in item:
                continue  # sparse index
            if item[schema.partition_key]["S"] != partition_value:
                continue
            sort_value = _scalar(item[schema.sort_key])
            if match["bsk"]:
                assert names[match["bsk"]] == schema.sort_key
                if not sort_value.startswith(values[match["bsv"]]["S"]):
                    continue
            elif match["sk"]:
                assert names[match["sk"]] == schema.sort_key
                if not _COMPARE[match["op"]](sort_value, _scalar(values[match["sv"]])):
                    continue
            results.append(item)
        results.sort(key=lambda i: (_scalar(i[schema.sort_key]), self._key(i)))

        offset = int(ExclusiveStartKey["__offset"]["N"]) if ExclusiveStartKey else 0
        limit = Limit or self.page_size or len(results) or 1
        page = results[offset : offset + limit]

        if ProjectionExpression:
            projected = [names[p.strip()] for p in ProjectionExpression.split(",")]
            page = [{n: i[n] for n in projected if n in i} for i in page]
        else:
            page = [dict(i) for i in page]

        response = {"Items": page, "Count": len(page)}
        if offset + limit < len(results):
            response["LastEvaluatedKey"] = {"__offset": {"N": str(offset + limit)}}
        return response

    async def batch_write_item(self, RequestItems):
        chunk = self._batch_count
        self._batch_count += 1
        requests = RequestItems[self.config.table_name]
        self.calls.append(("batch_write_item", {"count": len(requests)}))
        assert len(requests) <= 25

        if chunk in self.batch_failures:
            raise self.batch_failures[chunk]

        leftover_count = self.unprocessed.get(chunk, 0)
        processed = requests[leftover_count:]
        for request in processed:
            self.items.pop(self._key(request["DeleteRequest"]["Key"]), None)

        response = {"UnprocessedItems": {}}
        if leftover_count:
            response["UnprocessedItems"] = {
                self.config.table_name: requests[:leftover_count]
            }
        return response

    def calls_of(self, name):
        return [kwargs for call, kwargs in self.calls if call == name]


# -----------------------------------------------------------------------------
# FIXTURES
# -----------------------------------------------------------------------------


@pytest.fixture
def config():
    return SessionStoreConfig(
        table_name="AuthTable",
        excluded_user_attributes={"HashedPassword"},
    )


@pytest.fixture
def make_fake_client(config):
    def factory(page_size=None):
        return FakeDynamoDBClient(config, page_size=page_size)

    return factory


@pytest.fixture
def fake_client(make_fake_client):
    return make_fake_client()


@pytest.fixture
def mock_client():
    mock = AsyncMock()
    mock.get_item.return_value = {}
    mock.query.return_value = {"Items": []}
    mock.batch_write_item.return_value = {"UnprocessedItems": {}}
    return mock


@pytest.fixture
def future_expiry():
    return datetime.now(timezone.utc).replace(microsecond=0) + timedelta(hours=1)


@pytest.fixture
def user():
    return User(
        id="user-1",
        attributes={"username": "alice", "email": "alice@example.com"},
    )


@pytest.fixture
def session(future_expiry):
    return Session(
        id="session-1",
        user_id="user-1",
        expires_at=future_expiry,
        attributes={"country": "GR", "device": {"os": "linux", "trusted": True}},
    )
