"""Command API routes.

Learn: POST is for guardians only — the device's own token gets 403
even though it can read the same device. GET and PUT are how the
device polls for work and reports back.
"""

from typing import Optional

from fastapi import APIRouter, Depends

from sentrycircle.auth.dependencies import get_current_claims
from sentrycircle.auth.jwt import TokenClaims
from sentrycircle.schemas.command import CommandCreate, CommandUpdate
from sentrycircle.services.command_service import CommandService
from sentrycircle.store.kv import KVStore, get_store

router = APIRouter()


def _svc(store: KVStore = Depends(get_store)) -> CommandService:
    return CommandService(store)


@router.post("/commands", status_code=201)
async def create_command(
    body: CommandCreate,
    claims: TokenClaims = Depends(get_current_claims),
    svc: CommandService = Depends(_svc),
):
    command = await svc.create_command(
        claims, body.device_id, command_type=body.type, data=body.data
    )
    return {"success": True, "command": command.to_store()}


@router.get("/commands/{device_id}")
async def list_commands(
    device_id: str,
    status: Optional[str] = None,
    claims: TokenClaims = Depends(get_current_claims),
    svc: CommandService = Depends(_svc),
):
    commands = await svc.list_commands(claims, device_id, status=status)
    return {"commands": [c.to_store() for c in commands]}


@router.put("/commands/{device_id}/{command_id}")
async def update_command(
    device_id: str,
    command_id: str,
    body: CommandUpdate,
    claims: TokenClaims = Depends(get_current_claims),
    svc: CommandService = Depends(_svc),
):
    command = await svc.update_command(
        claims, device_id, command_id, status=body.status, result=body.result
    )
    return {"success": True, "command": command.to_store()}
