"""Code resolution with background access counting.

Flow Diagram: LinkResolver.resolve()
=====================================
::
    ┌─────────────┐
    │ resolve(code)│
    └──────┬──────┘
           ▼
    ┌─────────────┐  None   ┌──────────────────┐
    │ store.get() ├────────►│ LinkNotFoundError│
    └──────┬──────┘         └──────────────────┘
           ▼
    ┌─────────────┐
    │ create_task │──────────────┐
    │ (increment) │              │ runs after resolve() returns
    └──────┬──────┘              ▼
           ▼              ┌──────────────────────┐
    ┌─────────────┐       │ increment_access(id) │
    │ return      │       └──────────┬───────────┘
    │ target, id  │       transient failure?
    └─────────────┘       ┌──────────┴─────────┐
                          │ YES                │ NO
                          ▼                    ▼
                  ┌──────────────┐     ┌──────────────┐
                  │ retry after  │     │ success, or  │
                  │ delay (once  │     │ link deleted │
                  │ by default)  │     │ meanwhile    │
                  └──────┬───────┘     └──────────────┘
                         ▼ still failing
                  ┌──────────────┐
                  │ log error +  │
                  │ failed metric│
                  └──────────────┘

Key Behaviours
===============
- The target is returned as soon as the lookup succeeds; the increment is
  not awaited and its durability is not confirmed before the caller sees
  the target.
- Each resolution dispatches exactly one increment task. Tasks are held in a
  set until they finish, so none is garbage collected mid-flight.
- A StorageUnavailableError during the increment is retried
  ``increment_retries`` times. A retry after an ambiguous timeout may count
  the access twice.
- Every outcome is logged and counted; ``drain()`` waits for in-flight
  increments (used on shutdown and in tests).
"""

import asyncio
import logging
from dataclasses import dataclass

from prometheus_client import Counter

from shortlinks.enums import IncrementStatus, RequestStatus
from shortlinks.errors import LinkNotFoundError, StorageUnavailableError
from shortlinks.stores.base import LinkStore

__all__ = ["LinkResolver", "ResolvedLink"]

RESOLVE_REQUESTS_TOTAL = Counter(
    "shortlinks_resolve_requests_total",
    "Total short code resolutions",
    ["status"],
)
ACCESS_INCREMENTS_TOTAL = Counter(
    "shortlinks_access_increments_total",
    "Background access-count increments by outcome",
    ["status"],
)


@dataclass(frozen=True)
class ResolvedLink:
    target: str
    id: str


class LinkResolver:
    def __init__(
        self,
        store: LinkStore,
        *,
        increment_retries: int = 1,
        retry_delay: float = 0.05,
        logger: logging.Logger | None = None,
    ):
        assert increment_retries >= 0, f"increment_retries must be non-negative, got {increment_retries!r}"
        self._store = store
        self._retries = increment_retries
        self._retry_delay = retry_delay
        self._logger = logger or logging.getLogger("shortlinks.resolver")
        self._pending: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> int:
        """Number of increments dispatched but not yet finished."""
        return len(self._pending)

    async def resolve(self, code: str) -> ResolvedLink:
        """Return the target for ``code`` and schedule one access increment.

        Raises:
            LinkNotFoundError: No live link holds ``code``.
            StorageUnavailableError: The lookup itself failed.
        """
        try:
            record = await self._store.get(code)
        except StorageUnavailableError:
            RESOLVE_REQUESTS_TOTAL.labels(status=RequestStatus.ERROR).inc()
            raise

        if record is None:
            RESOLVE_REQUESTS_TOTAL.labels(status=RequestStatus.NOT_FOUND).inc()
            raise LinkNotFoundError(code)

        self._dispatch_increment(record.id)
        RESOLVE_REQUESTS_TOTAL.labels(status=RequestStatus.SUCCESS).inc()
        return ResolvedLink(target=record.target, id=record.id)

    async def drain(self) -> None:
        """Wait until every dispatched increment has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def _dispatch_increment(self, link_id: str) -> None:
        task = asyncio.create_task(self._record_access(link_id), name=f"increment-access:{link_id}")
        self._pending.add(task)
        task.add_done_callback(self._on_increment_done)

    def _on_increment_done(self, task: asyncio.Task[None]) -> None:
        self._pending.discard(task)
        if task.cancelled():
            ACCESS_INCREMENTS_TOTAL.labels(status=IncrementStatus.FAILED).inc()
            self._logger.error(f"Access increment cancelled: {task.get_name()}")
            return

        exc = task.exception()
        if exc is not None:
            ACCESS_INCREMENTS_TOTAL.labels(status=IncrementStatus.FAILED).inc()
            self._logger.error(f"Access increment failed: {task.get_name()}", exc_info=exc)

    async def _record_access(self, link_id: str) -> None:
        attempts = self._retries + 1
        for attempt in range(1, attempts + 1):
            try:
                found = await self._store.increment_access(link_id)
            except StorageUnavailableError as exc:
                if attempt == attempts:
                    raise
                ACCESS_INCREMENTS_TOTAL.labels(status=IncrementStatus.RETRIED).inc()
                self._logger.warning(f"Access increment for {link_id} failed ({exc}), retry {attempt}/{self._retries}")
                await asyncio.sleep(self._retry_delay)
                continue

            if not found:
                ACCESS_INCREMENTS_TOTAL.labels(status=IncrementStatus.DROPPED).inc()
                self._logger.info(f"Link {link_id} deleted before its access was counted")
                return

            ACCESS_INCREMENTS_TOTAL.labels(status=IncrementStatus.SUCCESS).inc()
            return
