"""RedisLinkStore tests against a live server at REDIS_URL.

Skipped when no Redis server answers.
"""

import asyncio
import datetime
import os
import uuid
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
import redis.asyncio as redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

import shortlinks.stores.redis_store as redis_module
from shortlinks.errors import StorageUnavailableError
from shortlinks.stores.base import InsertOutcome
from shortlinks.stores.redis_store import RedisLinkStore

REDIS_URL = os.environ.get("REDIS_URL", "redis://localhost:6379/15")


@pytest_asyncio.fixture
async def redis_store() -> AsyncGenerator[RedisLinkStore, None]:
    client = redis.from_url(REDIS_URL, encoding="utf-8", decode_responses=True, socket_connect_timeout=0.5)
    try:
        await client.ping()
    except (RedisConnectionError, RedisTimeoutError, OSError):
        await client.aclose()
        pytest.skip(f"Redis not reachable at {REDIS_URL}")

    prefix = f"test-shortlinks-{uuid.uuid4().hex[:8]}"
    store = RedisLinkStore(client, key_prefix=prefix)
    yield store

    keys = [key async for key in client.scan_iter(match=f"{prefix}:*")]
    if keys:
        await client.delete(*keys)
    await store.close()


@pytest.mark.asyncio
async def test_insert_then_get(redis_store: RedisLinkStore) -> None:
    result = await redis_store.try_insert("docs", "https://example.com/docs")
    assert result.inserted

    record = await redis_store.get("docs")
    assert record.id == result.record.id
    assert record.target == "https://example.com/docs"
    assert record.access_count == 0


@pytest.mark.asyncio
async def test_concurrent_inserts_of_one_code_yield_one_winner(redis_store: RedisLinkStore) -> None:
    results = await asyncio.gather(
        redis_store.try_insert("race", "https://example.com/1"),
        redis_store.try_insert("race", "https://example.com/2"),
    )
    assert sorted(r.outcome for r in results) == [InsertOutcome.CODE_TAKEN, InsertOutcome.INSERTED]


@pytest.mark.asyncio
async def test_concurrent_increments_are_not_lost(redis_store: RedisLinkStore) -> None:
    record = (await redis_store.try_insert("hot", "https://example.com")).record

    await asyncio.gather(*(redis_store.increment_access(record.id) for _ in range(50)))

    assert (await redis_store.get("hot")).access_count == 50


@pytest.mark.asyncio
async def test_increment_after_delete_does_not_resurrect(redis_store: RedisLinkStore) -> None:
    record = (await redis_store.try_insert("gone", "https://example.com")).record

    assert await redis_store.delete(record.id) is True
    assert await redis_store.increment_access(record.id) is False
    assert await redis_store.get("gone") is None
    assert (await redis_store.try_insert("gone", "https://example.com/again")).inserted


@pytest.mark.asyncio
async def test_list_is_ordered_and_counted(redis_store: RedisLinkStore) -> None:
    codes = [f"code{i}" for i in range(5)]
    for code in codes:
        await redis_store.try_insert(code, f"https://example.com/{code}")

    page = await redis_store.list(offset=0, count=3)

    assert page.total == 5
    assert [r.code for r in page.records] == codes[:3]


@pytest.mark.asyncio
async def test_list_keeps_insertion_order_within_one_clock_tick(
    redis_store: RedisLinkStore, monkeypatch: pytest.MonkeyPatch
) -> None:
    frozen = datetime.datetime(2024, 1, 1, tzinfo=datetime.timezone.utc)
    monkeypatch.setattr(redis_module, "utcnow", lambda: frozen)
    codes = [f"tick{i}" for i in range(6)]
    for code in codes:
        await redis_store.try_insert(code, f"https://example.com/{code}")

    page = await redis_store.list(offset=0, count=10)

    assert [r.code for r in page.records] == codes


@pytest.mark.asyncio
async def test_connection_failure_is_storage_unavailable() -> None:
    client = redis.from_url("redis://127.0.0.1:1/0", decode_responses=True, socket_connect_timeout=0.2)
    store = RedisLinkStore(client)
    with pytest.raises(StorageUnavailableError):
        await store.get("anything")
    await store.close()
