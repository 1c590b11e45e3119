"""Health endpoint tests."""

from unittest.mock import AsyncMock

import pytest

from sentrycircle.store.kv import StoreUnavailable


@pytest.mark.asyncio
async def test_health_returns_ok(client):
    """Health endpoint should return server status and version."""
    resp = await client.get("/api/v1/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "healthy"
    assert data["server"] == "ok"
    assert data["store"] == "ok"
    assert data["store_backend"] == "memory"
    assert "version" in data


@pytest.mark.asyncio
async def test_health_degraded_when_store_down(client, store):
    store.ping = AsyncMock(side_effect=StoreUnavailable("PING failed: refused"))
    resp = await client.get("/api/v1/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "degraded"
    assert data["store"].startswith("error:")


@pytest.mark.asyncio
async def test_health_needs_no_token(client):
    resp = await client.get("/api/v1/health", headers={"Authorization": "Bearer junk"})
    assert resp.status_code == 200
