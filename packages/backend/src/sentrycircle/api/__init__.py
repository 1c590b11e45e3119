"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Auth is applied at the include_router level using FastAPI's
dependencies parameter, so every route in a protected router rejects
requests without a valid bearer token. Health and auth routers are open.
"""

from fastapi import APIRouter, Depends

from sentrycircle.api.auth import router as auth_router
from sentrycircle.api.commands import router as commands_router
from sentrycircle.api.devices import router as devices_router
from sentrycircle.api.families import router as families_router
from sentrycircle.api.health import router as health_router
from sentrycircle.auth.dependencies import get_current_claims

# All protected routers require authentication
_auth = [Depends(get_current_claims)]

api_router = APIRouter(prefix="/api/v1")

# Open routes — no auth required
api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])

# Protected routes — require a valid bearer token
api_router.include_router(families_router, tags=["families", "children"], dependencies=_auth)
api_router.include_router(devices_router, tags=["devices", "locations"], dependencies=_auth)
api_router.include_router(commands_router, tags=["commands"], dependencies=_auth)
