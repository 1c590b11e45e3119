"""Store outage tests — infrastructure failures are 503, never 403 or 404."""

from unittest.mock import AsyncMock

import pytest

from sentrycircle.store.kv import StoreUnavailable


@pytest.mark.asyncio
async def test_store_failure_during_access_check_is_503(client, store, guardian, device):
    store.get = AsyncMock(side_effect=StoreUnavailable("GET failed: connection refused"))

    r = await client.get(f"/api/v1/devices/{device['id']}", headers=guardian["headers"])
    assert r.status_code == 503
    assert r.json()["detail"] == "Storage temporarily unavailable"
    assert r.headers["Retry-After"] == "5"


@pytest.mark.asyncio
async def test_store_failure_on_write_is_503(client, store, guardian):
    store.put = AsyncMock(side_effect=StoreUnavailable("SET failed"))
    r = await client.post("/api/v1/families", json={"name": "Fam"}, headers=guardian["headers"])
    assert r.status_code == 503


@pytest.mark.asyncio
async def test_token_checks_do_not_touch_store(client, store, guardian):
    """Verifying a token is stateless: it still works while the store is down."""
    store.get = AsyncMock(side_effect=StoreUnavailable("down"))
    r = await client.post("/api/v1/auth/verify", json={"token": guardian["token"]})
    assert r.status_code == 200
