"""Device and location API routes."""

from fastapi import APIRouter, Depends

from sentrycircle.auth.dependencies import get_current_claims
from sentrycircle.auth.jwt import TokenClaims
from sentrycircle.schemas.device import DeviceCreate, DeviceUpdate, LocationReport
from sentrycircle.services import NotFound
from sentrycircle.services.device_service import DeviceService
from sentrycircle.store.kv import KVStore, get_store

router = APIRouter()


def _svc(store: KVStore = Depends(get_store)) -> DeviceService:
    return DeviceService(store)


# ─── Devices ────────────────────────────────────────────

@router.post("/devices", status_code=201)
async def register_device(
    body: DeviceCreate,
    claims: TokenClaims = Depends(get_current_claims),
    svc: DeviceService = Depends(_svc),
):
    """Enroll a device under a child. The caller becomes the device's owner."""
    device = await svc.register_device(
        claims, body.child_id, name=body.name, device_type=body.type
    )
    return {"success": True, "device": device.to_store()}


@router.get("/devices/{device_id}")
async def get_device(
    device_id: str,
    location: bool = False,
    claims: TokenClaims = Depends(get_current_claims),
    svc: DeviceService = Depends(_svc),
):
    device = await svc.get_device(claims, device_id)
    data = device.to_store()
    if location:
        fix = await svc.current_location(device.id)
        data["location"] = fix.to_store() if fix else None
    return data


@router.put("/devices/{device_id}")
async def update_device(
    device_id: str,
    body: DeviceUpdate,
    claims: TokenClaims = Depends(get_current_claims),
    svc: DeviceService = Depends(_svc),
):
    device = await svc.update_device(
        claims, device_id, name=body.name, status=body.status
    )
    return {"success": True, "device": device.to_store()}


# ─── Locations ──────────────────────────────────────────

@router.post("/locations")
async def report_location(
    body: LocationReport,
    claims: TokenClaims = Depends(get_current_claims),
    svc: DeviceService = Depends(_svc),
):
    """Record a location fix from a device (or a guardian on its behalf)."""
    await svc.report_location(
        claims,
        body.device_id,
        location=body.location,
        timestamp=body.timestamp,
        battery_level=body.battery_level,
    )
    return {"success": True}


@router.get("/locations/{device_id}")
async def get_location(
    device_id: str,
    history: bool = False,
    claims: TokenClaims = Depends(get_current_claims),
    svc: DeviceService = Depends(_svc),
):
    device = await svc.get_device(claims, device_id)
    fix = await svc.current_location(device.id)
    if fix is None:
        raise NotFound("Location", "No location data available")
    if history:
        return {
            "current": fix.to_store(),
            "history": await svc.location_history(device.id),
        }
    return fix.to_store()
