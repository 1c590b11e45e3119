"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. Lifespan opens and closes the key-value store. Middleware,
CORS, exception handlers and routers are all registered here.

Errors raised below the routes are mapped to HTTP in one place:
- NotFound → 404
- AccessDenied → 403
- StoreUnavailable → 503
Token failures are turned into 401s by the auth dependency itself.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from sentrycircle import __version__
from sentrycircle.api import api_router
from sentrycircle.auth.access import AccessDenied
from sentrycircle.config import settings
from sentrycircle.services import NotFound
from sentrycircle.store.kv import StoreUnavailable, close_store, init_store

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    logger.info(
        "sentrycircle.starting",
        version=__version__,
        environment=settings.environment,
        store_backend=settings.store_backend,
        token_codec=settings.token_codec,
        port=settings.port,
    )

    await init_store()
    logger.info("sentrycircle.store_ready", backend=settings.store_backend)

    yield

    logger.info("sentrycircle.shutdown")
    await close_store()


async def _not_found(request: Request, exc: NotFound) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


async def _access_denied(request: Request, exc: AccessDenied) -> JSONResponse:
    return JSONResponse(status_code=403, content={"detail": str(exc)})


async def _store_unavailable(request: Request, exc: StoreUnavailable) -> JSONResponse:
    logger.error("store.unavailable", error=str(exc))
    return JSONResponse(
        status_code=503,
        content={"detail": "Storage temporarily unavailable"},
        headers={"Retry-After": "5"},
    )


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="SentryCircle API",
        description="Family safety backend — accounts, families, devices, locations, commands",
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan,
    )

    app.add_exception_handler(NotFound, _not_found)
    app.add_exception_handler(AccessDenied, _access_denied)
    app.add_exception_handler(StoreUnavailable, _store_unavailable)

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: CORS → RateLimit → Security → RequestId → handler

    from sentrycircle.middleware.rate_limit import RateLimitMiddleware
    from sentrycircle.middleware.request_id import RequestIdMiddleware
    from sentrycircle.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        default_rpm=settings.rate_limit_rpm,
        auth_rpm=settings.rate_limit_auth_rpm,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
    )

    app.include_router(api_router)
    return app


# Default app instance (used by uvicorn: sentrycircle.main:app)
app = create_app()
