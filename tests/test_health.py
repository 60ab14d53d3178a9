"""Health endpoint tests."""

from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient

from alias_registry.enums import HealthStatus
from alias_registry.store import MemoryAliasStore


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient) -> None:
    response = await client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == HealthStatus.HEALTHY.value
    assert data["store"] == HealthStatus.HEALTHY.value


@pytest.mark.asyncio
async def test_health_check_store_down(client: AsyncClient, memory_store: MemoryAliasStore) -> None:
    memory_store.ping = AsyncMock(return_value=False)

    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "unhealthy", "store": "unhealthy"}
