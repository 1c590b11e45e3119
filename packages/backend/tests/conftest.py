"""Test fixtures — a fresh in-memory store and token service per test.

Learn: the app's two process-wide dependencies are overridden:

1. get_store → a new MemoryKVStore, so nothing leaks between tests
2. get_token_service → a TokenService with a test-only secret

ASGITransport doesn't run the lifespan, so the global store stays
uninitialized; the rate limiter sees that and steps aside.

Auth runs for real: fixtures register accounts through the API and use
the tokens it hands back.
"""

import uuid

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from sentrycircle.auth.codec import HmacTokenCodec
from sentrycircle.auth.jwt import TokenService, get_token_service
from sentrycircle.main import app
from sentrycircle.store.kv import MemoryKVStore, get_store

TEST_SECRET = "test-secret-0123456789abcdef0123456789abcdef"


class FakeClock:
    """Callable clock frozen at a settable Unix time."""

    def __init__(self, now: float = 1_700_000_000):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture()
def store():
    return MemoryKVStore()


@pytest.fixture()
def token_service():
    return TokenService(codec=HmacTokenCodec(TEST_SECRET))


@pytest_asyncio.fixture()
async def client(store, token_service):
    """HTTP client with the app's store and token service overridden."""
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_token_service] = lambda: token_service

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def register(client, role: str = "guardian", name: str | None = None) -> dict:
    """Register an account; returns {"user", "token", "headers"}."""
    email = f"{role}-{uuid.uuid4().hex[:8]}@example.com"
    r = await client.post(
        "/api/v1/auth/register",
        json={
            "email": email,
            "name": name or f"Test {role}",
            "password": "password_123",
            "role": role,
        },
    )
    assert r.status_code == 201, r.text
    data = r.json()
    data["headers"] = {"Authorization": f"Bearer {data['token']}"}
    return data


@pytest_asyncio.fixture()
async def guardian(client):
    return await register(client, "guardian", "Alex Guardian")


@pytest_asyncio.fixture()
async def outsider(client):
    """A guardian of nothing in particular."""
    return await register(client, "guardian", "Outsider")


@pytest_asyncio.fixture()
async def kid(client):
    return await register(client, "child", "Sam")


@pytest_asyncio.fixture()
async def family(client, guardian):
    r = await client.post(
        "/api/v1/families", json={"name": "The Testers"}, headers=guardian["headers"]
    )
    assert r.status_code == 201, r.text
    return r.json()["family"]


@pytest_asyncio.fixture()
async def child(client, guardian, family, kid):
    """A child in `family`, linked to the `kid` account."""
    r = await client.post(
        "/api/v1/children",
        json={"name": "Sam", "familyId": family["id"], "userId": kid["user"]["id"]},
        headers=guardian["headers"],
    )
    assert r.status_code == 201, r.text
    return r.json()["child"]


@pytest_asyncio.fixture()
async def device(client, kid, child):
    """A device enrolled by the kid's own account (so the kid owns it)."""
    r = await client.post(
        "/api/v1/devices",
        json={"name": "Sam's phone", "type": "android", "childId": child["id"]},
        headers=kid["headers"],
    )
    assert r.status_code == 201, r.text
    return r.json()["device"]
