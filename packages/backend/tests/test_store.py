"""Key-value store tests — memory backend, Redis error wrapping, typed lookups."""

from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from sentrycircle.store import keys
from sentrycircle.store.kv import (
    MemoryKVStore,
    RedisKVStore,
    StoreUnavailable,
    create_store,
)
from sentrycircle.store.lookup import MISSING, Found, find_device, lookup
from sentrycircle.store.records import Device, User


# ═══════════════════════════════════════════════════════════
# MemoryKVStore
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_memory_get_put_delete(store):
    assert await store.get("k") is None
    await store.put("k", {"a": 1})
    assert await store.get("k") == {"a": 1}
    await store.delete("k")
    assert await store.get("k") is None
    # Deleting twice is fine
    await store.delete("k")


@pytest.mark.asyncio
async def test_memory_reads_do_not_alias_writes(store):
    value = {"guardians": ["g1"]}
    await store.put("family:f1", value)
    value["guardians"].append("intruder")

    stored = await store.get("family:f1")
    stored["guardians"].append("intruder")
    assert (await store.get("family:f1"))["guardians"] == ["g1"]


@pytest.mark.asyncio
async def test_memory_rejects_unserializable(store):
    with pytest.raises(TypeError):
        await store.put("k", {"when": object()})


def test_create_store_backends():
    assert isinstance(create_store("memory"), MemoryKVStore)
    assert isinstance(create_store("redis"), RedisKVStore)
    with pytest.raises(ValueError, match="Unknown store backend"):
        create_store("sqlite")


# ═══════════════════════════════════════════════════════════
# RedisKVStore (client mocked)
# ═══════════════════════════════════════════════════════════


@pytest.fixture()
def redis_store():
    s = RedisKVStore("redis://localhost:6379/15")
    s.client = AsyncMock()
    return s


@pytest.mark.asyncio
async def test_redis_stores_json_strings(redis_store):
    await redis_store.put("device:d1", {"id": "d1"})
    redis_store.client.set.assert_awaited_once_with("device:d1", '{"id": "d1"}')

    redis_store.client.get.return_value = '{"id": "d1"}'
    assert await redis_store.get("device:d1") == {"id": "d1"}


@pytest.mark.asyncio
async def test_redis_absent_key(redis_store):
    redis_store.client.get.return_value = None
    assert await redis_store.get("device:nope") is None


@pytest.mark.asyncio
async def test_redis_corrupt_value_reads_as_absent(redis_store):
    redis_store.client.get.return_value = "{not json"
    assert await redis_store.get("device:d1") is None


@pytest.mark.asyncio
@pytest.mark.parametrize("op, args", [
    ("get", ("k",)),
    ("put", ("k", {"a": 1})),
    ("delete", ("k",)),
    ("ping", ()),
])
async def test_redis_errors_become_store_unavailable(redis_store, op, args):
    failure = RedisConnectionError("connection refused")
    for method in ("get", "set", "delete", "ping"):
        getattr(redis_store.client, method).side_effect = failure

    with pytest.raises(StoreUnavailable) as exc:
        await getattr(redis_store, op)(*args)
    assert exc.value.__cause__ is failure


# ═══════════════════════════════════════════════════════════
# Typed lookups
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_lookup_found(store):
    device = Device(id="d1", name="Phone", type="android", child_id="c1", user_id="u1")
    await store.put(keys.device("d1"), device.to_store())

    result = await find_device(store, "d1")
    assert isinstance(result, Found)
    assert result.record == device


@pytest.mark.asyncio
async def test_lookup_missing(store):
    result = await find_device(store, "nope")
    assert result is MISSING
    assert not result


@pytest.mark.asyncio
async def test_lookup_invalid_record_is_missing(store):
    await store.put(keys.device("d1"), {"id": "d1", "name": "no child or owner"})
    assert await find_device(store, "d1") is MISSING


@pytest.mark.asyncio
async def test_records_stored_in_camel_case(store):
    user = User(email="a@b.com", name="A", role="guardian", password_hash="x")
    await store.put(keys.user(user.email), user.to_store())

    raw = await store.get("user:a@b.com")
    assert raw["passwordHash"] == "x"
    assert "createdAt" in raw
    assert "password_hash" not in raw

    result = await lookup(store, User, "user:a@b.com")
    assert result.record.password_hash == "x"
    assert "passwordHash" not in result.record.public()
