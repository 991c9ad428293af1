"""Process-local LinkStore backed by dictionaries.

Every operation runs its read and write under one lock with no await in
between, so the atomicity guarantees match the durable backends. Used by the
test suite and by ``LINK_STORE_BACKEND=memory`` for local development.
"""

import dataclasses
import itertools
import threading

from shortlinks.stores.base import InsertOutcome, InsertResult, LinkPage, LinkRecord, new_link_id, utcnow

__all__ = ["MemoryLinkStore"]


class MemoryLinkStore:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._by_id: dict[str, LinkRecord] = {}
        self._id_by_code: dict[str, str] = {}
        # Tie-breaker for records created within the same clock tick.
        self._sequence = itertools.count()
        self._order: dict[str, int] = {}

    async def try_insert(self, code: str, target: str) -> InsertResult:
        with self._lock:
            if code in self._id_by_code:
                return InsertResult.taken()
            now = utcnow()
            record = LinkRecord(
                id=new_link_id(),
                target=target,
                code=code,
                access_count=0,
                created_at=now,
                updated_at=now,
            )
            self._by_id[record.id] = record
            self._id_by_code[code] = record.id
            self._order[record.id] = next(self._sequence)
        return InsertResult(InsertOutcome.INSERTED, record)

    async def get(self, code: str) -> LinkRecord | None:
        with self._lock:
            link_id = self._id_by_code.get(code)
            return self._by_id.get(link_id) if link_id is not None else None

    async def increment_access(self, link_id: str) -> bool:
        with self._lock:
            record = self._by_id.get(link_id)
            if record is None:
                return False
            self._by_id[link_id] = dataclasses.replace(
                record,
                access_count=record.access_count + 1,
                updated_at=utcnow(),
            )
            return True

    async def delete(self, link_id: str) -> bool:
        with self._lock:
            record = self._by_id.pop(link_id, None)
            if record is None:
                return False
            del self._id_by_code[record.code]
            del self._order[link_id]
            return True

    async def list(self, offset: int, count: int) -> LinkPage:
        assert offset >= 0 and count >= 0, f"offset/count must be non-negative, got {offset}/{count}"
        with self._lock:
            ordered = sorted(self._by_id.values(), key=lambda r: (r.created_at, self._order[r.id]))
            return LinkPage(records=ordered[offset : offset + count], total=len(ordered))

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        return None
