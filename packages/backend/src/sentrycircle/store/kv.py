"""Key-value store — the only persistence SentryCircle has.

Learn: every record is a JSON document under a string key
("user:<email>", "device:<id>", ...). There are no transactions and no
multi-key writes: a handler that touches two keys does two puts, and a
failure between them leaves the first one in place.

Two backends share the KVStore interface:
- MemoryKVStore: a dict, for tests and local development
- RedisKVStore: redis.asyncio, for anything that must survive a restart

Infrastructure failures surface as StoreUnavailable so callers never
confuse "the store is down" with "the record doesn't exist".
"""

import json
from abc import ABC, abstractmethod
from typing import Any, Optional

import redis.asyncio as aioredis
import structlog
from redis.exceptions import RedisError

from sentrycircle.config import settings

logger = structlog.get_logger()


class StoreUnavailable(Exception):
    """Raised when the backing store cannot be reached or errors out."""


class KVStore(ABC):
    """Abstract string-keyed JSON document store."""

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        """Return the decoded value at key, or None if absent."""

    @abstractmethod
    async def put(self, key: str, value: Any) -> None:
        """Store a JSON-serializable value at key."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove key. Missing keys are ignored."""

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        return None


class MemoryKVStore(KVStore):
    """In-process store. Values are kept serialized so reads never alias writes."""

    def __init__(self):
        self._data: dict[str, str] = {}

    async def get(self, key: str) -> Optional[Any]:
        raw = self._data.get(key)
        return json.loads(raw) if raw is not None else None

    async def put(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value)

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)


class RedisKVStore(KVStore):
    """Redis-backed store using plain GET/SET of JSON strings."""

    def __init__(self, url: str):
        self.url = url
        self.client: aioredis.Redis = aioredis.from_url(
            url,
            encoding="utf-8",
            decode_responses=True,
        )

    async def get(self, key: str) -> Optional[Any]:
        try:
            raw = await self.client.get(key)
        except RedisError as e:
            raise StoreUnavailable(f"GET {key} failed: {e}") from e
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("store.corrupt_value", key=key)
            return None

    async def put(self, key: str, value: Any) -> None:
        try:
            await self.client.set(key, json.dumps(value))
        except RedisError as e:
            raise StoreUnavailable(f"SET {key} failed: {e}") from e

    async def delete(self, key: str) -> None:
        try:
            await self.client.delete(key)
        except RedisError as e:
            raise StoreUnavailable(f"DEL {key} failed: {e}") from e

    async def ping(self) -> bool:
        try:
            return bool(await self.client.ping())
        except RedisError as e:
            raise StoreUnavailable(f"PING failed: {e}") from e

    async def close(self) -> None:
        await self.client.aclose()


# Global store (initialized in lifespan)
_store: Optional[KVStore] = None


def create_store(backend: Optional[str] = None) -> KVStore:
    """Build a store for the configured backend."""
    backend = backend or settings.store_backend
    if backend == "redis":
        return RedisKVStore(settings.redis_url)
    if backend == "memory":
        return MemoryKVStore()
    raise ValueError(f"Unknown store backend '{backend}'. Available: memory, redis")


async def init_store(store: Optional[KVStore] = None) -> KVStore:
    """Initialize the global store and verify it answers."""
    global _store
    _store = store or create_store()
    await _store.ping()
    return _store


async def close_store() -> None:
    """Close the global store."""
    global _store
    if _store:
        await _store.close()
        _store = None


def get_store() -> KVStore:
    """FastAPI dependency — the process-wide store (must be initialized first)."""
    if _store is None:
        raise RuntimeError("Store not initialized. Call init_store() first.")
    return _store
