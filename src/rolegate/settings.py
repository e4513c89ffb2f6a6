"""
rolegate.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for all layers.
- Refuse to start without a signing secret (no baked-in default).
- Hide secrets from repr/logging (JWT secret, bootstrap admin password).
"""

from __future__ import annotations

from datetime import timedelta
from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    One instance is built at process start and handed to `create_app`; services
    receive it (or objects derived from it) by reference via `app.state`.
    """

    model_config = SettingsConfigDict(env_prefix="ROLEGATE_", case_sensitive=False)

    # Environment controls toggle behavior like auto-init DB tables.
    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "rolegate"
    log_level: str = "INFO"

    api_host: str = "0.0.0.0"
    api_port: int = 8080

    # Auth
    jwt_alg: str = "HS256"
    jwt_issuer: str = "rolegate"
    jwt_secret: str = Field(min_length=32, repr=False)
    token_ttl_hours: int = Field(default=24, ge=0)
    hospital_token_ttl_hours: int = Field(default=24 * 7, ge=0)
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)

    # Optional first admin, created at startup when both values are present.
    bootstrap_admin_email: str | None = None
    bootstrap_admin_password: str | None = Field(default=None, repr=False)

    # Persistence
    database_url: str = "sqlite+aiosqlite:///./rolegate.db"

    def token_ttl_for(self, role: str) -> timedelta:
        if role == "hospital":
            return timedelta(hours=self.hospital_token_ttl_hours)
        return timedelta(hours=self.token_ttl_hours)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Only the process entrypoint calls this; request handlers read app.state.settings.
    return Settings()


# --- Module Notes -----------------------------------------------------------
# A missing ROLEGATE_JWT_SECRET raises a pydantic ValidationError here, which
# stops the process before it can issue a single token.
