"""Pydantic schemas for devices and location reports."""

from typing import Optional

from pydantic import Field

from sentrycircle.schemas.family import CamelModel
from sentrycircle.store.records import Coordinates


class DeviceCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    type: str = Field(..., min_length=1, max_length=50)
    child_id: str = Field(..., min_length=1)


class DeviceUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    status: Optional[str] = Field(None, min_length=1, max_length=50)


class LocationReport(CamelModel):
    device_id: str = Field(..., min_length=1)
    location: Coordinates
    timestamp: Optional[int] = None  # Unix ms; server time if omitted
    battery_level: Optional[int] = Field(None, ge=0, le=100)
