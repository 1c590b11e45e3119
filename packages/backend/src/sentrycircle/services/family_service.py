"""Family service — families, their guardians, and their children.

Learn: a family is created by a guardian, who becomes its first
guardian. Updates may replace the guardian list, but the acting
guardian is always re-added, so a guardian can't lock themselves out
through their own update.

Writes are plain sequential puts. Creating a child writes the child and
then the family's children list; if the second put fails the child
exists but isn't listed. See DESIGN.md for the guardian-set race.
"""

from typing import Optional

import structlog

from sentrycircle.auth.access import AccessControl, Action
from sentrycircle.auth.jwt import TokenClaims
from sentrycircle.services import NotFound
from sentrycircle.store import keys
from sentrycircle.store.kv import KVStore
from sentrycircle.store.lookup import Found, find_child, find_device, find_family
from sentrycircle.store.records import Child, Device, Family, now_ms

logger = structlog.get_logger()

_UNSET = object()


class FamilyService:
    """Business logic for families and children."""

    def __init__(self, store: KVStore):
        self.store = store
        self.access = AccessControl(store)

    # ─── Families ───────────────────────────────────────

    async def create_family(self, claims: TokenClaims, name: str) -> Family:
        family = Family(
            name=name,
            guardians=[claims.user_id],
            created_by=claims.user_id,
        )
        await self.store.put(keys.family(family.id), family.to_store())
        await self._index_family(claims.user_id, family.id)

        logger.info("family.created", family_id=family.id, user_id=claims.user_id)
        return family

    async def list_families(self, claims: TokenClaims) -> list[Family]:
        """Families the caller is currently a guardian of."""
        family_ids = await self.store.get(keys.user_families(claims.user_id)) or []
        families = []
        for family_id in family_ids:
            found = await find_family(self.store, family_id)
            # The index can lag behind guardian changes; membership is authoritative
            if isinstance(found, Found) and found.record.is_guardian(claims.user_id):
                families.append(found.record)
        return families

    async def get_family(self, claims: TokenClaims, family_id: str) -> Family:
        family = await self._load_family(family_id)
        await self.access.require(claims, family, Action.READ)
        return family

    async def list_children(self, family: Family) -> list[Child]:
        """Child records of an already-authorized family, skipping dangling ids."""
        children = []
        for child_id in family.children:
            found = await find_child(self.store, child_id)
            if isinstance(found, Found):
                children.append(found.record)
        return children

    async def update_family(
        self,
        claims: TokenClaims,
        family_id: str,
        name: Optional[str] = None,
        guardians: Optional[list[str]] = None,
    ) -> Family:
        family = await self._load_family(family_id)
        await self.access.require(claims, family, Action.UPDATE)

        if name:
            family.name = name

        added: list[str] = []
        if guardians is not None:
            new_guardians = list(dict.fromkeys(guardians))
            if claims.user_id not in new_guardians:
                new_guardians.append(claims.user_id)
            added = [g for g in new_guardians if g not in family.guardians]
            family.guardians = new_guardians

        family.updated_at = now_ms()
        await self.store.put(keys.family(family.id), family.to_store())
        for user_id in added:
            await self._index_family(user_id, family.id)

        logger.info(
            "family.updated",
            family_id=family.id,
            user_id=claims.user_id,
            guardians=len(family.guardians),
        )
        return family

    # ─── Children ───────────────────────────────────────

    async def create_child(
        self,
        claims: TokenClaims,
        family_id: str,
        name: str,
        user_id: Optional[str] = None,
    ) -> Child:
        family = await self._load_family(family_id)
        await self.access.require(claims, family, Action.UPDATE)

        child = Child(
            name=name,
            family_id=family.id,
            user_id=user_id,
            created_by=claims.user_id,
        )
        await self.store.put(keys.child(child.id), child.to_store())

        family.children.append(child.id)
        family.updated_at = now_ms()
        await self.store.put(keys.family(family.id), family.to_store())

        logger.info("child.created", child_id=child.id, family_id=family.id)
        return child

    async def get_child(self, claims: TokenClaims, child_id: str) -> Child:
        child = await self._load_child(child_id)
        await self.access.require(claims, child, Action.READ)
        return child

    async def list_devices(self, child: Child) -> list[Device]:
        devices = []
        for device_id in child.devices:
            found = await find_device(self.store, device_id)
            if isinstance(found, Found):
                devices.append(found.record)
        return devices

    async def update_child(
        self,
        claims: TokenClaims,
        child_id: str,
        name: Optional[str] = None,
        user_id=_UNSET,
    ) -> Child:
        """Rename a child or (un)link its user account. Guardians only."""
        child = await self._load_child(child_id)
        await self.access.require(claims, child, Action.UPDATE)

        if name:
            child.name = name
        if user_id is not _UNSET:
            child.user_id = user_id

        child.updated_at = now_ms()
        await self.store.put(keys.child(child.id), child.to_store())
        return child

    # ─── Helpers ────────────────────────────────────────

    async def _load_family(self, family_id: str) -> Family:
        found = await find_family(self.store, family_id)
        if not isinstance(found, Found):
            raise NotFound("Family")
        return found.record

    async def _load_child(self, child_id: str) -> Child:
        found = await find_child(self.store, child_id)
        if not isinstance(found, Found):
            raise NotFound("Child")
        return found.record

    async def _index_family(self, user_id: str, family_id: str) -> None:
        key = keys.user_families(user_id)
        family_ids = await self.store.get(key) or []
        if family_id not in family_ids:
            family_ids.append(family_id)
            await self.store.put(key, family_ids)
