"""Pydantic schemas for device commands."""

from typing import Any, Optional

from pydantic import Field

from sentrycircle.schemas.family import CamelModel


class CommandCreate(CamelModel):
    device_id: str = Field(..., min_length=1)
    type: str = Field(..., min_length=1, max_length=50)
    data: dict[str, Any] = Field(default_factory=dict)


class CommandUpdate(CamelModel):
    """Sent by the device as it works through a command."""
    status: Optional[str] = Field(None, min_length=1, max_length=50)
    result: Optional[Any] = None
