"""Command service — guardian → device remote commands.

Learn: commands flow one way. A guardian of the device's family creates
a command ("lock", "ring", ...); the device polls its command list and
reports progress by updating status/result. Owning the device is enough
to read and update its commands but never to create one.

Each device keeps a newest-first id list (commands:<deviceId>) capped
at command_history_limit; command bodies live under their own keys.
"""

from typing import Any, Optional

import structlog

from sentrycircle.auth.access import AccessControl, Action
from sentrycircle.auth.jwt import TokenClaims
from sentrycircle.config import settings
from sentrycircle.services import NotFound
from sentrycircle.store import keys
from sentrycircle.store.kv import KVStore
from sentrycircle.store.lookup import Found, find_device, lookup
from sentrycircle.store.records import Command, Device, now_ms

logger = structlog.get_logger()


class CommandService:
    """Business logic for device commands."""

    def __init__(self, store: KVStore, history_limit: Optional[int] = None):
        self.store = store
        self.access = AccessControl(store)
        self.history_limit = history_limit or settings.command_history_limit

    async def create_command(
        self,
        claims: TokenClaims,
        device_id: str,
        command_type: str,
        data: Optional[dict[str, Any]] = None,
    ) -> Command:
        device = await self._load_device(device_id)
        await self.access.require(claims, device, Action.COMMAND)

        command = Command(
            device_id=device.id,
            type=command_type,
            data=data or {},
            created_by=claims.user_id,
        )
        await self.store.put(keys.command(device.id, command.id), command.to_store())

        list_key = keys.command_list(device.id)
        command_ids = await self.store.get(list_key) or []
        command_ids.insert(0, command.id)
        await self.store.put(list_key, command_ids[: self.history_limit])

        logger.info(
            "command.created",
            command_id=command.id,
            device_id=device.id,
            type=command_type,
            user_id=claims.user_id,
        )
        return command

    async def list_commands(
        self,
        claims: TokenClaims,
        device_id: str,
        status: Optional[str] = None,
    ) -> list[Command]:
        device = await self._load_device(device_id)
        await self.access.require(claims, device, Action.READ)

        commands = []
        for command_id in await self.store.get(keys.command_list(device.id)) or []:
            found = await lookup(self.store, Command, keys.command(device.id, command_id))
            if not isinstance(found, Found):
                continue
            if status is None or found.record.status == status:
                commands.append(found.record)
        return commands

    async def update_command(
        self,
        claims: TokenClaims,
        device_id: str,
        command_id: str,
        status: Optional[str] = None,
        result: Any = None,
    ) -> Command:
        found = await lookup(self.store, Command, keys.command(device_id, command_id))
        if not isinstance(found, Found):
            raise NotFound("Command")
        command = found.record

        device = await self._load_device(device_id)
        await self.access.require(claims, device, Action.UPDATE)

        if status:
            command.status = status
        if result is not None:
            command.result = result
        command.updated_at = now_ms()
        await self.store.put(keys.command(device_id, command.id), command.to_store())

        logger.info(
            "command.updated",
            command_id=command.id,
            device_id=device_id,
            status=command.status,
        )
        return command

    async def _load_device(self, device_id: str) -> Device:
        found = await find_device(self.store, device_id)
        if not isinstance(found, Found):
            raise NotFound("Device")
        return found.record
