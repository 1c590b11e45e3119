"""Pydantic schemas for families and children.

Learn: request bodies arrive camelCase from the mobile app and the
dashboard ("familyId", "userId"); the alias generator accepts both
spellings.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ─── Families ───────────────────────────────────────────

class FamilyCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)


class FamilyUpdate(CamelModel):
    """Replace the name and/or guardian set. The caller always stays a guardian."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    guardians: Optional[list[str]] = None


# ─── Children ───────────────────────────────────────────

class ChildCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    family_id: str = Field(..., min_length=1)
    user_id: Optional[str] = None


class ChildUpdate(CamelModel):
    """user_id may be explicitly null to unlink the child's account."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    user_id: Optional[str] = None
