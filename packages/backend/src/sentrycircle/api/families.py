"""Family and child API routes.

Learn: routes handle HTTP concerns (status codes, query flags) and hand
the verified claims to FamilyService. NotFound and AccessDenied raised by
the service become 404 / 403 via the app's exception handlers.
"""

from fastapi import APIRouter, Depends

from sentrycircle.auth.dependencies import get_current_claims
from sentrycircle.auth.jwt import TokenClaims
from sentrycircle.schemas.family import ChildCreate, ChildUpdate, FamilyCreate, FamilyUpdate
from sentrycircle.services.family_service import FamilyService
from sentrycircle.store.kv import KVStore, get_store

router = APIRouter()


def _svc(store: KVStore = Depends(get_store)) -> FamilyService:
    return FamilyService(store)


# ─── Families ───────────────────────────────────────────

@router.post("/families", status_code=201)
async def create_family(
    body: FamilyCreate,
    claims: TokenClaims = Depends(get_current_claims),
    svc: FamilyService = Depends(_svc),
):
    """Create a family. The caller becomes its first guardian."""
    family = await svc.create_family(claims, name=body.name)
    return {"success": True, "family": family.to_store()}


@router.get("/families")
async def list_families(
    claims: TokenClaims = Depends(get_current_claims),
    svc: FamilyService = Depends(_svc),
):
    return [f.to_store() for f in await svc.list_families(claims)]


@router.get("/families/{family_id}")
async def get_family(
    family_id: str,
    children: bool = False,
    claims: TokenClaims = Depends(get_current_claims),
    svc: FamilyService = Depends(_svc),
):
    family = await svc.get_family(claims, family_id)
    data = family.to_store()
    if children:
        data["childrenDetails"] = [c.to_store() for c in await svc.list_children(family)]
    return data


@router.put("/families/{family_id}")
async def update_family(
    family_id: str,
    body: FamilyUpdate,
    claims: TokenClaims = Depends(get_current_claims),
    svc: FamilyService = Depends(_svc),
):
    family = await svc.update_family(
        claims, family_id, name=body.name, guardians=body.guardians
    )
    return {"success": True, "family": family.to_store()}


# ─── Children ───────────────────────────────────────────

@router.post("/children", status_code=201)
async def create_child(
    body: ChildCreate,
    claims: TokenClaims = Depends(get_current_claims),
    svc: FamilyService = Depends(_svc),
):
    child = await svc.create_child(
        claims, body.family_id, name=body.name, user_id=body.user_id
    )
    return {"success": True, "child": child.to_store()}


@router.get("/children/{child_id}")
async def get_child(
    child_id: str,
    devices: bool = False,
    claims: TokenClaims = Depends(get_current_claims),
    svc: FamilyService = Depends(_svc),
):
    child = await svc.get_child(claims, child_id)
    data = child.to_store()
    if devices:
        data["devicesDetails"] = [d.to_store() for d in await svc.list_devices(child)]
    return data


@router.put("/children/{child_id}")
async def update_child(
    child_id: str,
    body: ChildUpdate,
    claims: TokenClaims = Depends(get_current_claims),
    svc: FamilyService = Depends(_svc),
):
    changes = {"name": body.name}
    if "user_id" in body.model_fields_set:
        changes["user_id"] = body.user_id
    child = await svc.update_child(claims, child_id, **changes)
    return {"success": True, "child": child.to_store()}
