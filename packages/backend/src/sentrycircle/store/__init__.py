"""Key-value persistence: store backends, key names, records, typed lookups."""

from sentrycircle.store.kv import (
    KVStore,
    MemoryKVStore,
    RedisKVStore,
    StoreUnavailable,
    close_store,
    get_store,
    init_store,
)
from sentrycircle.store.lookup import MISSING, Found, lookup

__all__ = [
    "KVStore",
    "MemoryKVStore",
    "RedisKVStore",
    "StoreUnavailable",
    "close_store",
    "get_store",
    "init_store",
    "MISSING",
    "Found",
    "lookup",
]
