"""Health check endpoint.

Learn: Simple GET endpoint that verifies the server is running
and the key-value store answers.
"""

from fastapi import APIRouter, Depends

from sentrycircle import __version__
from sentrycircle.config import settings
from sentrycircle.store.kv import KVStore, get_store

router = APIRouter()


@router.get("/health")
async def health_check(store: KVStore = Depends(get_store)):
    """Check server health and store connectivity."""
    checks = {"server": "ok", "version": __version__}

    try:
        await store.ping()
        checks["store"] = "ok"
    except Exception as e:
        checks["store"] = f"error: {e}"
    checks["store_backend"] = settings.store_backend

    status = "healthy" if checks["store"] == "ok" else "degraded"
    return {"status": status, **checks}
