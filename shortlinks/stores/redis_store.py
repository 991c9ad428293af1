"""Redis-backed LinkStore.

Key Layout
==========
::
    {prefix}:code:{code}   STRING  -> link id           (uniqueness gate)
    {prefix}:link:{id}     HASH    id, code, target, access_count,
                                   created_at, updated_at (ISO-8601)
    {prefix}:created       ZSET    member=id, score=insert sequence
    {prefix}:seq           STRING  insert sequence counter (INCR)

Key Behaviours
===============
- Insert, increment and delete each run as one Lua script, so every
  multi-key step is atomic on the server.
- Insert claims the code with ``SET NX`` inside the script; a failed claim
  writes nothing and reports CODE_TAKEN.
- Increment refuses to touch a hash that no longer exists, so a delete racing
  an increment never resurrects a partial record.
- Listing reads ids from the sorted set in insertion order and then the
  hashes in one pipeline; ids deleted in between are skipped.
- Connection failures and timeouts surface as StorageUnavailableError.
"""

import datetime
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import redis.asyncio as redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from shortlinks.errors import StorageUnavailableError
from shortlinks.stores.base import InsertOutcome, InsertResult, LinkPage, LinkRecord, new_link_id, utcnow

__all__ = ["RedisLinkStore"]

INSERT_SCRIPT = """
if redis.call("SET", KEYS[1], ARGV[1], "NX") then
    redis.call("HSET", KEYS[2],
        "id", ARGV[1], "code", ARGV[2], "target", ARGV[3],
        "access_count", 0, "created_at", ARGV[4], "updated_at", ARGV[4])
    redis.call("ZADD", KEYS[3], redis.call("INCR", KEYS[4]), ARGV[1])
    return 1
end
return 0
"""

INCREMENT_SCRIPT = """
if redis.call("EXISTS", KEYS[1]) == 0 then
    return -1
end
local count = redis.call("HINCRBY", KEYS[1], "access_count", 1)
redis.call("HSET", KEYS[1], "updated_at", ARGV[1])
return count
"""

DELETE_SCRIPT = """
local code = redis.call("HGET", KEYS[1], "code")
if not code then
    return 0
end
redis.call("DEL", KEYS[1])
redis.call("DEL", ARGV[1] .. code)
redis.call("ZREM", KEYS[2], ARGV[2])
return 1
"""


class RedisLinkStore:
    """LinkStore over a redis.asyncio client created with ``decode_responses=True``."""

    def __init__(self, client: redis.Redis, key_prefix: str = "shortlinks", logger: logging.Logger | None = None):
        self._redis = client
        self._prefix = key_prefix
        self._logger = logger or logging.getLogger("shortlinks.stores.redis")
        self._insert = client.register_script(INSERT_SCRIPT)
        self._increment = client.register_script(INCREMENT_SCRIPT)
        self._delete = client.register_script(DELETE_SCRIPT)

    def _code_key(self, code: str) -> str:
        return f"{self._prefix}:code:{code}"

    def _link_key(self, link_id: str) -> str:
        return f"{self._prefix}:link:{link_id}"

    @property
    def _created_key(self) -> str:
        return f"{self._prefix}:created"

    @property
    def _seq_key(self) -> str:
        return f"{self._prefix}:seq"

    @asynccontextmanager
    async def _storage_errors(self, operation: str) -> AsyncIterator[None]:
        try:
            yield
        except (RedisConnectionError, RedisTimeoutError) as exc:
            self._logger.error(f"Redis {operation} failed: {exc}")
            raise StorageUnavailableError(f"Redis {operation} failed") from exc

    async def try_insert(self, code: str, target: str) -> InsertResult:
        assert code, "code must be non-empty"
        assert target, "target must be non-empty"
        link_id = new_link_id()
        now = utcnow()
        async with self._storage_errors("insert"):
            inserted = await self._insert(
                keys=[self._code_key(code), self._link_key(link_id), self._created_key, self._seq_key],
                args=[link_id, code, target, now.isoformat()],
            )
        if not inserted:
            self._logger.debug(f"SET NX rejected code: {code}")
            return InsertResult.taken()
        record = LinkRecord(id=link_id, target=target, code=code, access_count=0, created_at=now, updated_at=now)
        return InsertResult(InsertOutcome.INSERTED, record)

    async def get(self, code: str) -> LinkRecord | None:
        async with self._storage_errors("lookup"):
            link_id = await self._redis.get(self._code_key(code))
            if link_id is None:
                return None
            fields = await self._redis.hgetall(self._link_key(link_id))
        return _record_from_hash(fields)

    async def increment_access(self, link_id: str) -> bool:
        async with self._storage_errors("increment"):
            count = await self._increment(keys=[self._link_key(link_id)], args=[utcnow().isoformat()])
        return int(count) >= 0

    async def delete(self, link_id: str) -> bool:
        async with self._storage_errors("delete"):
            removed = await self._delete(
                keys=[self._link_key(link_id), self._created_key],
                args=[f"{self._prefix}:code:", link_id],
            )
        return bool(removed)

    async def list(self, offset: int, count: int) -> LinkPage:
        assert offset >= 0 and count >= 0, f"offset/count must be non-negative, got {offset}/{count}"
        async with self._storage_errors("list"):
            if count == 0:
                return LinkPage(records=[], total=await self._redis.zcard(self._created_key))

            pipe = self._redis.pipeline(transaction=True)
            pipe.zrange(self._created_key, offset, offset + count - 1)
            pipe.zcard(self._created_key)
            link_ids, total = await pipe.execute()

            pipe = self._redis.pipeline(transaction=False)
            for link_id in link_ids:
                pipe.hgetall(self._link_key(link_id))
            hashes = await pipe.execute()

        records = [record for record in map(_record_from_hash, hashes) if record is not None]
        return LinkPage(records=records, total=int(total))

    async def ping(self) -> bool:
        async with self._storage_errors("ping"):
            return bool(await self._redis.ping())

    async def close(self) -> None:
        await self._redis.aclose()


def _record_from_hash(fields: dict[str, str]) -> LinkRecord | None:
    if not fields:
        return None
    return LinkRecord(
        id=fields["id"],
        target=fields["target"],
        code=fields["code"],
        access_count=int(fields["access_count"]),
        created_at=datetime.datetime.fromisoformat(fields["created_at"]),
        updated_at=datetime.datetime.fromisoformat(fields["updated_at"]),
    )
