"""Token issuance and verification.

Learn: tokens are stateless — nothing is stored server-side, so verifying
one never touches the key-value store. A token carries the caller's
userId, email and role plus iat/exp (Unix seconds). Default lifetime is
7 days; there is no separate refresh token, a still-valid token is
exchanged for a fresh one via refresh().

The secret and clock are constructor arguments, not module globals, so
tests can run with their own secret and a frozen clock.
"""

import time
from collections.abc import Callable, Mapping
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from sentrycircle.auth.codec import (
    InvalidSignature,
    InvalidTokenFormat,
    TokenCodec,
    TokenError,
    TokenExpired,
    get_codec,
)
from sentrycircle.config import Settings, settings

__all__ = [
    "InvalidSignature",
    "InvalidTokenFormat",
    "TokenClaims",
    "TokenError",
    "TokenExpired",
    "TokenService",
    "get_token_service",
]

IDENTITY_CLAIMS = ("userId", "email", "role")


class TokenClaims(BaseModel):
    """Verified claims. Extra claims from the issuer are preserved."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    user_id: str = Field(alias="userId")
    email: str
    role: str
    issued_at: int = Field(alias="iat")
    expires_at: int = Field(alias="exp")

    def to_payload(self) -> dict[str, Any]:
        """The claims as they appear inside the token."""
        return self.model_dump(by_alias=True)

    def identity(self) -> dict[str, str]:
        return {"userId": self.user_id, "email": self.email, "role": self.role}


class TokenService:
    """Issues, verifies and refreshes signed bearer tokens."""

    def __init__(
        self,
        codec: TokenCodec,
        ttl_seconds: int = 7 * 24 * 60 * 60,
        clock: Callable[[], float] = time.time,
    ):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.codec = codec
        self.ttl_seconds = ttl_seconds
        self.clock = clock

    @classmethod
    def from_settings(cls, config: Settings = settings) -> "TokenService":
        return cls(
            codec=get_codec(config.token_codec, config.jwt_secret),
            ttl_seconds=config.token_ttl_seconds,
        )

    def now(self) -> int:
        return int(self.clock())

    def issue(self, claims: Mapping[str, Any], ttl_seconds: Optional[int] = None) -> str:
        """Sign claims (must include userId, email, role) with a fresh iat/exp."""
        missing = [k for k in IDENTITY_CLAIMS if not claims.get(k)]
        if missing:
            raise ValueError(f"Claims missing required fields: {', '.join(missing)}")

        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        if ttl <= 0:
            raise ValueError("ttl_seconds must be positive")

        issued_at = self.now()
        payload = {
            **claims,
            "iat": issued_at,
            "exp": issued_at + ttl,
        }
        return self.codec.encode(payload)

    def verify(self, token: str) -> TokenClaims:
        """Verify a token and return its claims.

        Raises InvalidTokenFormat, TokenExpired or InvalidSignature —
        never swallows them.
        """
        payload = self.codec.decode(token, self.now())
        try:
            return TokenClaims.model_validate(payload)
        except ValidationError:
            raise InvalidTokenFormat("Invalid token format")

    def refresh(self, token: str) -> str:
        """Exchange a valid token for a new one with the same identity.

        No grace period — an expired token raises TokenExpired like verify().
        """
        return self.issue(self.verify(token).identity())


_service: Optional[TokenService] = None


def get_token_service() -> TokenService:
    """FastAPI dependency — process-wide TokenService built from settings."""
    global _service
    if _service is None:
        _service = TokenService.from_settings()
    return _service
