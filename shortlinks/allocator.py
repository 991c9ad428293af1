"""Link allocation: validate the target, pick a code, commit through the store.

Flow Diagram: LinkAllocator.create()
=====================================
::
    ┌─────────────┐
    │ create(     │
    │ target,     │
    │ custom_code)│
    └──────┬──────┘
           ▼
    ┌─────────────┐  rejected  ┌─────────────────────┐
    │ validate_   ├───────────►│ RejectedTargetError │
    │ target()    │            └─────────────────────┘
    └──────┬──────┘
    custom code?
    ┌─────┴──────────────────────────┐
    │ YES                             │ NO
    ▼                                 ▼
┌──────────────┐ bad  ┌───────────┐ ┌──────────────────┐
│ format rule  ├─────►│ Rejected  │ │ for attempt in   │
└──────┬───────┘      │ CodeFormat│ │ 1..max_attempts: │
       ▼              └───────────┘ │  code = next()   │
┌──────────────┐ taken ┌──────────┐ │  try_insert()    │
│ try_insert() ├──────►│ Conflict │ │  inserted? return│
└──────┬───────┘       └──────────┘ └────────┬─────────┘
       ▼                                     │ all taken
    LinkRecord                               ▼
                                  ┌──────────────────────┐
                                  │ CodeSpaceExhausted   │
                                  └──────────────────────┘

Key Behaviours
===============
- The store's atomic ``try_insert`` is the only uniqueness check; no lookup
  precedes it.
- A taken custom code is reported as a conflict. It is never retried and
  never replaced by a generated code.
- Generated codes are retried up to ``max_attempts`` times. With 62 symbols
  and 8 characters a collision needs roughly N / 62**8 odds per attempt, so
  the bound only trips when something is badly wrong.
- StorageUnavailableError from the store propagates unchanged.
"""

import logging
import time

from prometheus_client import Counter, Histogram

from shortlinks.codegen import CodeGenerator, is_valid_custom_code
from shortlinks.enums import RequestStatus
from shortlinks.errors import (
    CodeConflictError,
    CodeSpaceExhaustedError,
    LinkError,
    RejectedCodeFormatError,
    RejectedTargetError,
)
from shortlinks.safety import validate_target
from shortlinks.stores.base import LinkRecord, LinkStore

__all__ = ["DEFAULT_MAX_ATTEMPTS", "LinkAllocator"]

DEFAULT_MAX_ATTEMPTS = 10

LINK_CREATION_REQUESTS_TOTAL = Counter(
    "shortlinks_link_creation_requests_total",
    "Total link creation requests",
    ["status"],
)
LINK_CREATION_DURATION = Histogram(
    "shortlinks_link_creation_duration_seconds",
    "Time taken to create links",
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
)
CODE_COLLISIONS_TOTAL = Counter(
    "shortlinks_code_collisions_total",
    "Generated short codes rejected because they were already taken",
)

_STATUS_BY_ERROR: dict[type[LinkError], RequestStatus] = {
    RejectedTargetError: RequestStatus.REJECTED,
    RejectedCodeFormatError: RequestStatus.REJECTED,
    CodeConflictError: RequestStatus.CONFLICT,
    CodeSpaceExhaustedError: RequestStatus.EXHAUSTED,
}


class LinkAllocator:
    """Creates links from a target and an optional caller-chosen code.

    Example:
        >>> allocator = LinkAllocator(store, CodeGenerator(), strict=True)
        >>> link = await allocator.create("https://example.com/docs")
        >>> len(link.code)
        8
    """

    def __init__(
        self,
        store: LinkStore,
        generator: CodeGenerator,
        *,
        strict: bool,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        logger: logging.Logger | None = None,
    ):
        assert max_attempts >= 1, f"max_attempts must be at least 1, got {max_attempts!r}"
        self._store = store
        self._generator = generator
        self._strict = strict
        self._max_attempts = max_attempts
        self._logger = logger or logging.getLogger("shortlinks.allocator")

    @property
    def strict(self) -> bool:
        return self._strict

    async def create(self, target: str, custom_code: str | None = None) -> LinkRecord:
        """Store a new link and return it in full.

        Args:
            target: Long address to redirect to.
            custom_code: Caller-chosen code; ``None`` asks for a generated one.

        Returns:
            LinkRecord: The committed record, access_count 0.

        Raises:
            RejectedTargetError: Target failed the safety policy.
            RejectedCodeFormatError: Custom code breaks the format rule.
            CodeConflictError: Custom code already taken.
            CodeSpaceExhaustedError: Every generated candidate collided.
            StorageUnavailableError: The store could not be reached.
        """
        start_time = time.perf_counter()
        try:
            link = await self._create(target, custom_code)
        except LinkError as exc:
            LINK_CREATION_REQUESTS_TOTAL.labels(status=_STATUS_BY_ERROR.get(type(exc), RequestStatus.ERROR)).inc()
            raise
        except Exception:
            LINK_CREATION_REQUESTS_TOTAL.labels(status=RequestStatus.ERROR).inc()
            raise
        finally:
            LINK_CREATION_DURATION.observe(time.perf_counter() - start_time)

        LINK_CREATION_REQUESTS_TOTAL.labels(status=RequestStatus.SUCCESS).inc()
        self._logger.info(f"Link created: {link.code} -> {link.target}")
        return link

    async def _create(self, target: str, custom_code: str | None) -> LinkRecord:
        verdict = validate_target(target, self._strict)
        if not verdict.ok:
            self._logger.info(f"Target rejected ({verdict.reason}): {target}")
            raise RejectedTargetError(target, verdict.reason)

        if custom_code is not None:
            return await self._insert_custom(target, custom_code)
        return await self._insert_generated(target)

    async def _insert_custom(self, target: str, custom_code: str) -> LinkRecord:
        if not is_valid_custom_code(custom_code):
            raise RejectedCodeFormatError(custom_code)

        result = await self._store.try_insert(custom_code, target)
        if not result.inserted:
            self._logger.warning(f"Custom code conflict: {custom_code}")
            raise CodeConflictError(custom_code)
        return result.record

    async def _insert_generated(self, target: str) -> LinkRecord:
        for attempt in range(1, self._max_attempts + 1):
            candidate = self._generator.next()
            result = await self._store.try_insert(candidate, target)
            if result.inserted:
                return result.record
            CODE_COLLISIONS_TOTAL.inc()
            self._logger.debug(f"Generated code collided (attempt {attempt}/{self._max_attempts}): {candidate}")

        self._logger.error(f"Code space exhausted after {self._max_attempts} attempts")
        raise CodeSpaceExhaustedError(self._max_attempts)
