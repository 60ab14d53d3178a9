"""Shared pytest fixtures for registry, store and API tests."""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from fakeredis import FakeAsyncRedis
from httpx import ASGITransport, AsyncClient

from alias_registry.aliases import AliasPolicy
from alias_registry.config import Settings
from alias_registry.dependencies import build_store, get_registry, get_settings_for_request
from alias_registry.enums import StoreBackend
from alias_registry.main import app
from alias_registry.redis import RedisAliasStore
from alias_registry.registry import AliasRegistry
from alias_registry.store import AliasStore, MemoryAliasStore

BASE_URL = "http://sho.rt"


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, STORE_BACKEND=StoreBackend.MEMORY, BASE_URL=BASE_URL)


@pytest.fixture
def policy(settings: Settings) -> AliasPolicy:
    return AliasPolicy.from_settings(settings)


@pytest.fixture
def memory_store() -> MemoryAliasStore:
    return MemoryAliasStore()


@pytest.fixture
def registry(memory_store: MemoryAliasStore, policy: AliasPolicy) -> AliasRegistry:
    return AliasRegistry(memory_store, policy)


@pytest_asyncio.fixture(scope="function")
async def sql_store(tmp_path) -> AsyncGenerator[AliasStore, None]:
    sql_settings = Settings(
        _env_file=None,
        STORE_BACKEND=StoreBackend.SQL,
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'aliases.db'}",
    )
    store = await build_store(sql_settings)
    yield store
    await store.close()


@pytest_asyncio.fixture(scope="function")
async def redis_store() -> AsyncGenerator[RedisAliasStore, None]:
    # Lua scripts run for real inside fakeredis (needs the lupa extra).
    store = RedisAliasStore(FakeAsyncRedis(decode_responses=True), prefix="test-aliases")
    yield store
    await store.close()


@pytest_asyncio.fixture(scope="function")
async def client(registry: AliasRegistry, settings: Settings) -> AsyncGenerator[AsyncClient, None]:
    app.dependency_overrides[get_registry] = lambda: registry
    app.dependency_overrides[get_settings_for_request] = lambda: settings

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
