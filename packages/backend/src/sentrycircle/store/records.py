"""Record shapes stored in the key-value store.

Learn: records are stored with camelCase field names (that's what the
mobile app and older deployments wrote). Python code uses
snake_case attributes; the alias generator maps between the two, and
to_store() always writes the camelCase form back.

Timestamps on records are Unix milliseconds.
"""

import time
import uuid
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Role = Literal["child", "guardian"]


def now_ms() -> int:
    return int(time.time() * 1000)


def new_id() -> str:
    return str(uuid.uuid4())


class Record(BaseModel):
    """Base for everything persisted under a key."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_store(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class User(Record):
    id: str = Field(default_factory=new_id)
    email: str
    name: str
    role: Role
    password_hash: str
    created_at: int = Field(default_factory=now_ms)

    def public(self) -> dict[str, Any]:
        """Store form without the password hash — safe to return to clients."""
        data = self.to_store()
        data.pop("passwordHash", None)
        return data


class Family(Record):
    id: str = Field(default_factory=new_id)
    name: str
    guardians: list[str]
    children: list[str] = Field(default_factory=list)
    created_at: int = Field(default_factory=now_ms)
    created_by: Optional[str] = None
    updated_at: int = Field(default_factory=now_ms)

    def is_guardian(self, user_id: str) -> bool:
        return user_id in self.guardians


class Child(Record):
    id: str = Field(default_factory=new_id)
    name: str
    family_id: str
    user_id: Optional[str] = None
    devices: list[str] = Field(default_factory=list)
    created_at: int = Field(default_factory=now_ms)
    created_by: Optional[str] = None
    updated_at: int = Field(default_factory=now_ms)


class Device(Record):
    id: str = Field(default_factory=new_id)
    name: str
    type: str
    child_id: str
    user_id: str
    status: str = "active"
    created_at: int = Field(default_factory=now_ms)
    updated_at: int = Field(default_factory=now_ms)


class Coordinates(Record):
    """A position as reported by the device. Extra sensor fields are kept."""

    model_config = ConfigDict(extra="allow")

    latitude: float
    longitude: float
    accuracy: Optional[float] = None


class LocationFix(Record):
    device_id: str
    location: Coordinates
    timestamp: int = Field(default_factory=now_ms)
    battery_level: int = 100


class Command(Record):
    id: str = Field(default_factory=new_id)
    device_id: str
    type: str
    data: dict[str, Any] = Field(default_factory=dict)
    status: str = "pending"
    result: Optional[Any] = None
    created_at: int = Field(default_factory=now_ms)
    created_by: str
    updated_at: int = Field(default_factory=now_ms)
