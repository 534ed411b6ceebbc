"""
Tests for the Batch Delete Executor.
"""

import pytest
from botocore.exceptions import ClientError

from dynamo_auth_sessions.domain.errors import UnprocessedItemsError
from dynamo_auth_sessions.infrastructure.adapters.batch import (
    BatchDeleteExecutor,
    chunked,
)


def _key(n):
    return {"Pk": {"S": f"Session#{n}"}, "Sk": {"S": "Session"}}


def _throttled():
    return ClientError(
        {"Error": {"Code": "ProvisionedThroughputExceededException", "Message": "slow"}},
        "BatchWriteItem",
    )


def test_chunked():
    assert [len(c) for c in chunked(list(range(57)), 25)] == [25, 25, 7]
    assert list(chunked([], 25)) == []


def test_batch_size_is_bounded(mock_client):
    with pytest.raises(ValueError):
        BatchDeleteExecutor(mock_client, "AuthTable", max_batch_size=26)


@pytest.mark.asyncio
async def test_57_keys_use_three_requests(make_fake_client):
    client = make_fake_client()
    for n in range(57):
        client.items[(f"Session#{n}", "Session")] = _key(n)
    executor = BatchDeleteExecutor(client, "AuthTable")

    deleted = await executor.delete([_key(n) for n in range(57)])

    assert deleted == 57
    assert [c["count"] for c in client.calls_of("batch_write_item")] == [25, 25, 7]
    assert client.items == {}


@pytest.mark.asyncio
async def test_request_shape(mock_client):
    executor = BatchDeleteExecutor(mock_client, "AuthTable")

    await executor.delete([_key(1)])

    mock_client.batch_write_item.assert_awaited_once_with(
        RequestItems={"AuthTable": [{"DeleteRequest": {"Key": _key(1)}}]}
    )


@pytest.mark.asyncio
async def test_no_keys_no_requests(mock_client):
    executor = BatchDeleteExecutor(mock_client, "AuthTable")

    assert await executor.delete([]) == 0
    mock_client.batch_write_item.assert_not_called()


@pytest.mark.asyncio
async def test_duplicate_keys_are_sent_once(mock_client):
    executor = BatchDeleteExecutor(mock_client, "AuthTable")

    deleted = await executor.delete([_key(1), _key(1), _key(2)])

    assert deleted == 2
    requests = mock_client.batch_write_item.call_args.kwargs["RequestItems"]["AuthTable"]
    assert len(requests) == 2


@pytest.mark.asyncio
async def test_custom_batch_size(mock_client):
    executor = BatchDeleteExecutor(mock_client, "AuthTable", max_batch_size=10)

    await executor.delete([_key(n) for n in range(21)])

    assert mock_client.batch_write_item.await_count == 3


@pytest.mark.asyncio
async def test_failed_chunk_does_not_stop_later_chunks(make_fake_client):
    client = make_fake_client()
    for n in range(57):
        client.items[(f"Session#{n}", "Session")] = _key(n)
    first = _throttled()
    client.batch_failures = {0: first, 1: _throttled()}
    executor = BatchDeleteExecutor(client, "AuthTable")

    with pytest.raises(ClientError) as exc:
        await executor.delete([_key(n) for n in range(57)])

    # The first failure surfaces, and the last chunk was still attempted
    assert exc.value is first
    assert len(client.calls_of("batch_write_item")) == 3
    assert len(client.items) == 50


@pytest.mark.asyncio
async def test_unprocessed_items_are_reported(make_fake_client):
    client = make_fake_client()
    for n in range(30):
        client.items[(f"Session#{n}", "Session")] = _key(n)
    client.unprocessed = {0: 2}
    executor = BatchDeleteExecutor(client, "AuthTable")

    with pytest.raises(UnprocessedItemsError) as exc:
        await executor.delete([_key(n) for n in range(30)])

    assert exc.value.keys == [_key(0), _key(1)]
    assert len(client.calls_of("batch_write_item")) == 2
    assert set(client.items) == {("Session#0", "Session"), ("Session#1", "Session")}


@pytest.mark.asyncio
async def test_transport_error_takes_precedence_over_unprocessed(make_fake_client):
    client = make_fake_client()
    error = _throttled()
    client.unprocessed = {0: 1}
    client.batch_failures = {1: error}
    executor = BatchDeleteExecutor(client, "AuthTable")

    with pytest.raises(ClientError) as exc:
        await executor.delete([_key(n) for n in range(30)])
    assert exc.value is error
