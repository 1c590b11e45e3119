"""Application configuration via environment variables.

Uses pydantic-settings to load config from env vars with SENTRYCIRCLE_ prefix.
No YAML files, no file-based config — just env vars (12-factor app style).

Learn: the signing secret lives here and nowhere else. TokenService gets
it passed in at construction, so tests can build services with their own
secrets and a rotated key only needs a restart.
"""

from typing import Literal

from pydantic import model_validator
from pydantic_settings import BaseSettings

DEFAULT_JWT_SECRET = "change-me-in-production"


class Settings(BaseSettings):
    """All app configuration. Set via SENTRYCIRCLE_* env vars."""

    # Key-value store
    store_backend: Literal["memory", "redis"] = "memory"
    redis_url: str = "redis://localhost:6379/0"

    # Auth
    jwt_secret: str = DEFAULT_JWT_SECRET
    token_ttl_seconds: int = 7 * 24 * 60 * 60  # 7 days
    token_codec: str = "hmac"  # "hmac" or "pyjwt"

    # Server
    environment: str = "development"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000

    # CORS
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:19006",  # Expo web
    ]

    # Rate limiting
    rate_limit_rpm: int = 100  # requests per minute per IP
    rate_limit_auth_rpm: int = 10  # stricter limit for auth endpoints

    # Retention
    location_history_limit: int = 100
    command_history_limit: int = 50

    model_config = {"env_prefix": "SENTRYCIRCLE_"}

    @model_validator(mode="after")
    def validate_production_settings(self):
        """Ensure sensitive defaults are changed in non-development environments."""
        if not self.jwt_secret:
            raise ValueError("SENTRYCIRCLE_JWT_SECRET must not be empty")
        if (
            self.environment != "development"
            and self.jwt_secret == DEFAULT_JWT_SECRET
        ):
            raise ValueError(
                "SENTRYCIRCLE_JWT_SECRET must be set to a secure value in "
                "non-development environments. Generate one with: "
                "sentrycircle gen-secret"
            )
        return self


# Singleton — import this everywhere
settings = Settings()
