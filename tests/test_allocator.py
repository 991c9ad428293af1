"""LinkAllocator tests: target policy, custom codes, generated codes, races."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from shortlinks.allocator import LinkAllocator
from shortlinks.codegen import ALPHABET, CodeGenerator
from shortlinks.enums import TargetRejection
from shortlinks.errors import (
    CodeConflictError,
    CodeSpaceExhaustedError,
    RejectedCodeFormatError,
    RejectedTargetError,
    StorageUnavailableError,
)
from shortlinks.stores.memory_store import MemoryLinkStore


def make_allocator(store, *, strict: bool = False, generator=None, max_attempts: int = 10) -> LinkAllocator:
    return LinkAllocator(store, generator or CodeGenerator(), strict=strict, max_attempts=max_attempts)


class FixedGenerator:
    """Returns the given codes in order, then repeats the last one."""

    def __init__(self, *codes: str):
        self._codes = list(codes)
        self.calls = 0

    def next(self) -> str:
        code = self._codes[min(self.calls, len(self._codes) - 1)]
        self.calls += 1
        return code


@pytest.mark.asyncio
async def test_generated_code_has_fixed_length_and_alphabet(memory_store: MemoryLinkStore) -> None:
    allocator = make_allocator(memory_store)

    link = await allocator.create("https://example.com/path")

    assert len(link.code) == 8
    assert all(c in ALPHABET for c in link.code)
    assert link.target == "https://example.com/path"
    assert link.access_count == 0
    assert (await memory_store.get(link.code)).id == link.id


@pytest.mark.asyncio
async def test_generated_codes_are_unique_across_links(memory_store: MemoryLinkStore) -> None:
    allocator = make_allocator(memory_store)

    links = await asyncio.gather(*(allocator.create(f"https://example.com/{i}") for i in range(50)))

    assert len({link.code for link in links}) == 50
    assert (await memory_store.list(0, 100)).total == 50


@pytest.mark.asyncio
async def test_generated_collision_retries_with_next_candidate(memory_store: MemoryLinkStore) -> None:
    await memory_store.try_insert("AAAAAAAA", "https://example.com/existing")
    generator = FixedGenerator("AAAAAAAA", "AAAAAAAA", "BBBBBBBB")
    allocator = make_allocator(memory_store, generator=generator)

    link = await allocator.create("https://example.com/new")

    assert link.code == "BBBBBBBB"
    assert generator.calls == 3


@pytest.mark.asyncio
async def test_exhausted_after_bounded_attempts(memory_store: MemoryLinkStore) -> None:
    await memory_store.try_insert("AAAAAAAA", "https://example.com/existing")
    generator = FixedGenerator("AAAAAAAA")
    allocator = make_allocator(memory_store, generator=generator, max_attempts=3)

    with pytest.raises(CodeSpaceExhaustedError) as exc_info:
        await allocator.create("https://example.com/new")

    assert exc_info.value.attempts == 3
    assert generator.calls == 3
    assert (await memory_store.list(0, 10)).total == 1


@pytest.mark.asyncio
async def test_custom_code_is_used_verbatim(memory_store: MemoryLinkStore) -> None:
    allocator = make_allocator(memory_store)

    link = await allocator.create("https://www.github.com", custom_code="my_code-1")

    assert link.code == "my_code-1"


@pytest.mark.asyncio
async def test_taken_custom_code_conflicts_without_fallback(memory_store: MemoryLinkStore) -> None:
    generator = MagicMock(spec=CodeGenerator)
    allocator = make_allocator(memory_store, generator=generator)
    await allocator.create("https://www.github.com", custom_code="taken1")

    with pytest.raises(CodeConflictError, match="taken1"):
        await allocator.create("https://www.example.com", custom_code="taken1")

    generator.next.assert_not_called()
    assert (await memory_store.list(0, 10)).total == 1


@pytest.mark.asyncio
async def test_concurrent_custom_code_creates_yield_one_link_one_conflict(memory_store: MemoryLinkStore) -> None:
    allocator = make_allocator(memory_store)

    results = await asyncio.gather(
        allocator.create("https://example.com/a", custom_code="same"),
        allocator.create("https://example.com/b", custom_code="same"),
        return_exceptions=True,
    )

    conflicts = [r for r in results if isinstance(r, CodeConflictError)]
    created = [r for r in results if not isinstance(r, Exception)]
    assert len(conflicts) == 1
    assert len(created) == 1
    assert created[0].code == "same"


@pytest.mark.asyncio
@pytest.mark.parametrize("strict", [True, False])
@pytest.mark.parametrize("code", ["ab", "test@123", "x" * 51])
async def test_bad_custom_code_format_rejected(memory_store: MemoryLinkStore, strict: bool, code: str) -> None:
    allocator = make_allocator(memory_store, strict=strict)

    with pytest.raises(RejectedCodeFormatError):
        await allocator.create("https://example.com/path", custom_code=code)

    assert (await memory_store.list(0, 10)).total == 0


@pytest.mark.asyncio
async def test_empty_custom_code_is_a_format_error(memory_store: MemoryLinkStore) -> None:
    allocator = make_allocator(memory_store)

    with pytest.raises(RejectedCodeFormatError):
        await allocator.create("https://example.com/path", custom_code="")


@pytest.mark.asyncio
@pytest.mark.parametrize("strict", [True, False])
async def test_unsafe_scheme_rejected_before_touching_store(strict: bool) -> None:
    store = AsyncMock(spec=MemoryLinkStore)
    allocator = make_allocator(store, strict=strict)

    with pytest.raises(RejectedTargetError) as exc_info:
        await allocator.create("javascript:alert(1)", custom_code="valid")

    assert exc_info.value.reason is TargetRejection.SCHEME_NOT_ALLOWED
    store.try_insert.assert_not_awaited()


@pytest.mark.asyncio
async def test_private_target_depends_on_strict_mode(memory_store: MemoryLinkStore) -> None:
    with pytest.raises(RejectedTargetError):
        await make_allocator(memory_store, strict=True).create("http://localhost:3000")

    link = await make_allocator(memory_store, strict=False).create("http://localhost:3000")
    assert link.target == "http://localhost:3000"


@pytest.mark.asyncio
async def test_storage_failure_propagates_unchanged() -> None:
    store = AsyncMock(spec=MemoryLinkStore)
    store.try_insert.side_effect = StorageUnavailableError("database down")
    allocator = make_allocator(store)

    with pytest.raises(StorageUnavailableError, match="database down"):
        await allocator.create("https://example.com")

    assert store.try_insert.await_count == 1
