"""Device service — device enrollment and location reports.

Learn: a device is enrolled under a child by a guardian or by the
child's own account, and is owned by whoever enrolled it. The owner and
the family's guardians can read it, update it, and post locations for it.

Locations are kept twice: the latest fix under currentLocation:<id>, and
a newest-first history list capped at location_history_limit entries.
"""

from typing import Any, Optional

import structlog

from sentrycircle.auth.access import AccessControl, Action
from sentrycircle.auth.jwt import TokenClaims
from sentrycircle.config import settings
from sentrycircle.services import NotFound
from sentrycircle.store import keys
from sentrycircle.store.kv import KVStore
from sentrycircle.store.lookup import Found, find_child, find_device, lookup
from sentrycircle.store.records import Coordinates, Device, LocationFix, now_ms

logger = structlog.get_logger()


class DeviceService:
    """Business logic for devices and their locations."""

    def __init__(self, store: KVStore, history_limit: Optional[int] = None):
        self.store = store
        self.access = AccessControl(store)
        self.history_limit = history_limit or settings.location_history_limit

    # ─── Devices ────────────────────────────────────────

    async def register_device(
        self,
        claims: TokenClaims,
        child_id: str,
        name: str,
        device_type: str,
    ) -> Device:
        found = await find_child(self.store, child_id)
        if not isinstance(found, Found):
            raise NotFound("Child")
        child = found.record
        await self.access.require(claims, child, Action.ENROLL)

        device = Device(
            name=name,
            type=device_type,
            child_id=child.id,
            user_id=claims.user_id,
        )
        await self.store.put(keys.device(device.id), device.to_store())

        child.devices.append(device.id)
        child.updated_at = now_ms()
        await self.store.put(keys.child(child.id), child.to_store())

        logger.info(
            "device.registered",
            device_id=device.id,
            child_id=child.id,
            user_id=claims.user_id,
        )
        return device

    async def get_device(
        self, claims: TokenClaims, device_id: str, action: Action = Action.READ
    ) -> Device:
        device = await self._load_device(device_id)
        await self.access.require(claims, device, action)
        return device

    async def update_device(
        self,
        claims: TokenClaims,
        device_id: str,
        name: Optional[str] = None,
        status: Optional[str] = None,
    ) -> Device:
        device = await self.get_device(claims, device_id, Action.UPDATE)
        if name:
            device.name = name
        if status:
            device.status = status
        device.updated_at = now_ms()
        await self.store.put(keys.device(device.id), device.to_store())
        return device

    # ─── Locations ──────────────────────────────────────

    async def report_location(
        self,
        claims: TokenClaims,
        device_id: str,
        location: Coordinates,
        timestamp: Optional[int] = None,
        battery_level: Optional[int] = None,
    ) -> LocationFix:
        device = await self.get_device(claims, device_id, Action.UPDATE)

        fix = LocationFix(
            device_id=device.id,
            location=location,
            timestamp=timestamp or now_ms(),
            battery_level=100 if battery_level is None else battery_level,
        )
        data = fix.to_store()
        await self.store.put(keys.current_location(device.id), data)

        history_key = keys.location_history(device.id)
        history = await self.store.get(history_key) or []
        history.insert(0, data)
        await self.store.put(history_key, history[: self.history_limit])

        return fix

    async def current_location(self, device_id: str) -> Optional[LocationFix]:
        """Latest fix for an already-authorized device, if any."""
        found = await lookup(self.store, LocationFix, keys.current_location(device_id))
        return found.record if isinstance(found, Found) else None

    async def location_history(self, device_id: str) -> list[dict[str, Any]]:
        return await self.store.get(keys.location_history(device_id)) or []

    # ─── Helpers ────────────────────────────────────────

    async def _load_device(self, device_id: str) -> Device:
        found = await find_device(self.store, device_id)
        if not isinstance(found, Found):
            raise NotFound("Device")
        return found.record
