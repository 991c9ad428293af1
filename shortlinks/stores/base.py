"""LinkStore capability and the records it exchanges.

Data Model Layout
=================
::
    LinkRecord
    ├─ id: str            (uuid4 hex string, immutable, never reused)
    ├─ target: str        (validated before insert, immutable)
    ├─ code: str          (unique among live links, immutable)
    ├─ access_count: int  (starts at 0, only ever incremented)
    ├─ created_at: datetime
    └─ updated_at: datetime (moves on every increment)

Contract
========
::
    try_insert(code, target) ─► InsertResult(INSERTED, record)
                              └► InsertResult(CODE_TAKEN, None)
    get(code)                ─► LinkRecord | None
    increment_access(id)     ─► True | False (False = no such id)
    delete(id)               ─► True | False
    list(offset, count)      ─► LinkPage(records ordered by created_at, total)
    ping()                   ─► True when the backend answers

Key Behaviours
===============
- ``try_insert`` is the only uniqueness gate. Implementations must make the
  "absent?" test and the write one atomic step (unique index, SET NX, or a
  lock held across both).
- ``increment_access`` is a single atomic increment, so concurrent calls on
  the same id never lose updates.
- ``delete`` frees the code: a later ``try_insert`` with it succeeds.
- Backend failures surface as StorageUnavailableError, never as None/False.

Any object with these coroutine methods satisfies ``LinkStore``; there is no
base class to inherit.
"""

import datetime
import uuid
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Protocol, runtime_checkable

__all__ = ["InsertOutcome", "InsertResult", "LinkPage", "LinkRecord", "LinkStore", "new_link_id", "utcnow"]


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def new_link_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class LinkRecord:
    id: str
    target: str
    code: str
    access_count: int
    created_at: datetime.datetime
    updated_at: datetime.datetime


class InsertOutcome(StrEnum):
    INSERTED = "inserted"
    CODE_TAKEN = "code_taken"


@dataclass(frozen=True)
class InsertResult:
    outcome: InsertOutcome
    record: LinkRecord | None = None

    @property
    def inserted(self) -> bool:
        return self.outcome is InsertOutcome.INSERTED

    @classmethod
    def taken(cls) -> "InsertResult":
        return cls(InsertOutcome.CODE_TAKEN)


@dataclass(frozen=True)
class LinkPage:
    records: list[LinkRecord] = field(default_factory=list)
    total: int = 0


@runtime_checkable
class LinkStore(Protocol):
    async def try_insert(self, code: str, target: str) -> InsertResult: ...

    async def get(self, code: str) -> LinkRecord | None: ...

    async def increment_access(self, link_id: str) -> bool: ...

    async def delete(self, link_id: str) -> bool: ...

    async def list(self, offset: int, count: int) -> LinkPage: ...

    async def ping(self) -> bool: ...

    async def close(self) -> None: ...
