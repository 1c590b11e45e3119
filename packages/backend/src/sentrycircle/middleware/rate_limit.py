"""Rate limiting middleware — Redis-based fixed window per minute.

Learn: each IP gets a counter key like "sentrycircle:rl:{ip}:{bucket}:{minute}"
in the same Redis the key-value store uses. Login and registration get a
stricter bucket to slow down password guessing.

Skipped entirely when the store isn't Redis (memory backend, tests) and
fails open on Redis errors — a rate limiter outage shouldn't take the API
down with it.
"""

import time

import structlog
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from sentrycircle.store.kv import RedisKVStore, get_store

logger = structlog.get_logger()

AUTH_PATHS = ("/api/v1/auth/login", "/api/v1/auth/register")


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Redis-based rate limiting per IP per minute."""

    def __init__(self, app, default_rpm: int = 100, auth_rpm: int = 10):
        super().__init__(app)
        self.default_rpm = default_rpm
        self.auth_rpm = auth_rpm

    async def dispatch(self, request: Request, call_next) -> Response:
        try:
            store = get_store()
        except RuntimeError:
            return await call_next(request)
        if not isinstance(store, RedisKVStore):
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        is_auth = request.url.path.startswith(AUTH_PATHS)
        rpm = self.auth_rpm if is_auth else self.default_rpm

        window = int(time.time() // 60)
        bucket = "auth" if is_auth else "api"
        key = f"sentrycircle:rl:{client_ip}:{bucket}:{window}"

        try:
            count = await store.client.incr(key)
            if count == 1:
                await store.client.expire(key, 120)
        except RedisError as e:
            logger.warning("rate_limit.redis_error", error=str(e))
            return await call_next(request)

        if count > rpm:
            logger.info("rate_limit.exceeded", client_ip=client_ip, bucket=bucket)
            return JSONResponse(
                status_code=429,
                content={"detail": "Rate limit exceeded. Try again later."},
                headers={"Retry-After": "60"},
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(rpm)
        response.headers["X-RateLimit-Remaining"] = str(max(0, rpm - count))
        return response
