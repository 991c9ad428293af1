"""Settings and engine wiring tests."""

import pytest

from shortlinks.config import Settings
from shortlinks.container import build_link_engine, build_store
from shortlinks.enums import StoreBackend
from shortlinks.stores.base import LinkStore
from shortlinks.stores.memory_store import MemoryLinkStore
from shortlinks.stores.redis_store import RedisLinkStore
from shortlinks.stores.sql_store import SqlLinkStore


@pytest.mark.parametrize(
    "app_env, override, expected",
    [
        ("production", None, True),
        ("development", None, False),
        ("test", None, False),
        ("development", True, True),
        ("production", False, False),
    ],
)
def test_strict_targets_follow_environment(app_env: str, override: bool | None, expected: bool) -> None:
    settings = Settings(APP_ENV=app_env, STRICT_TARGET_VALIDATION=override)
    assert settings.strict_targets is expected


@pytest.mark.parametrize(
    "backend, store_type",
    [
        (StoreBackend.MEMORY, MemoryLinkStore),
        (StoreBackend.SQL, SqlLinkStore),
        (StoreBackend.REDIS, RedisLinkStore),
    ],
)
def test_build_store_selects_backend(backend: StoreBackend, store_type: type) -> None:
    settings = Settings(LINK_STORE_BACKEND=backend, DATABASE_URL="sqlite+aiosqlite:///:memory:")

    store = build_store(settings)

    assert isinstance(store, store_type)
    assert isinstance(store, LinkStore)


@pytest.mark.asyncio
async def test_engine_components_share_one_store(settings: Settings) -> None:
    store = MemoryLinkStore()
    engine = build_link_engine(settings, store=store)

    assert engine.store is store
    assert engine.service.store is store
    assert engine.service.resolver is engine.resolver
    assert engine.allocator.strict is False

    await engine.close()


@pytest.mark.asyncio
async def test_separate_engines_do_not_share_state(settings: Settings) -> None:
    first = build_link_engine(settings)
    second = build_link_engine(settings)

    await first.service.create_link("https://example.com", custom_code="mine")

    assert (await second.store.get("mine")) is None
    await first.close()
    await second.close()

