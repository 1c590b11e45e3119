"""Typed point-lookups returning Found(record) or MISSING.

Learn: the access layer walks Device → Child → Family one read at a time.
Instead of `if json is None` checks sprinkled everywhere, each step
returns a tagged result. Callers must unwrap Found explicitly, so a
dangling reference can't be mistaken for a record.

    result = await lookup(store, Child, keys.child(child_id))
    if isinstance(result, Found):
        child = result.record
"""

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

import structlog
from pydantic import ValidationError

from sentrycircle.store import keys
from sentrycircle.store.kv import KVStore
from sentrycircle.store.records import Child, Device, Family, Record, User

logger = structlog.get_logger()

R = TypeVar("R", bound=Record)


@dataclass(frozen=True)
class Found(Generic[R]):
    record: R


class _Missing:
    """Sentinel for a key that is absent or holds an unreadable record."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISSING"


MISSING = _Missing()

Lookup = Union[Found[R], _Missing]


async def lookup(store: KVStore, model: type[R], key: str) -> Lookup[R]:
    """Read key and parse it as model.

    A record that no longer matches its model is treated as missing —
    it can't be trusted to answer an ownership question.
    """
    raw = await store.get(key)
    if raw is None:
        return MISSING
    try:
        return Found(model.model_validate(raw))
    except ValidationError:
        logger.warning("store.invalid_record", key=key, model=model.__name__)
        return MISSING


async def find_user(store: KVStore, email: str) -> Lookup[User]:
    return await lookup(store, User, keys.user(email))


async def find_family(store: KVStore, family_id: str) -> Lookup[Family]:
    return await lookup(store, Family, keys.family(family_id))


async def find_child(store: KVStore, child_id: str) -> Lookup[Child]:
    return await lookup(store, Child, keys.child(child_id))


async def find_device(store: KVStore, device_id: str) -> Lookup[Device]:
    return await lookup(store, Device, keys.device(device_id))
