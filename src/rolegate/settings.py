"""
rolegate.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for all layers.
- Hide Firebase secrets (service account key, private key, web API key) from repr/logging.
- Offer a cached settings instance for dependency injection.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="ROLEGATE_", case_sensitive=False)

    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "rolegate"
    log_level: str = "INFO"
    log_json: bool = True

    api_host: str = "0.0.0.0"
    api_port: int = 8080
    forwarded_allow_ips: str = "127.0.0.1"
    # Used as the requestUri for federated sign-in.
    public_base_url: str = "http://localhost:8080"

    # Firebase Admin credentials: either the full JSON key or the individual fields.
    firebase_service_account_key: str | None = Field(default=None, repr=False)
    firebase_project_id: str | None = None
    firebase_client_email: str | None = None
    firebase_private_key: str | None = Field(default=None, repr=False)
    firebase_private_key_id: str | None = None
    firebase_client_id: str | None = None
    firebase_storage_bucket: str | None = None
    firebase_app_name: str = "rolegate"

    # Identity Toolkit REST (email/password + federated sign-in).
    firebase_web_api_key: str = Field(default="", repr=False)
    identity_toolkit_url: str = "https://identitytoolkit.googleapis.com/v1"
    identity_toolkit_timeout_seconds: float = 10.0

    # Session cookie
    session_cookie_name: str = "session"
    # Firebase accepts session durations between 5 minutes and 2 weeks.
    session_ttl_seconds: int = Field(default=60 * 60 * 24 * 5, ge=300, le=60 * 60 * 24 * 14)
    require_email_verified: bool = True

    # Firestore
    users_collection: str = "users"
    audit_collection: str = "audit_events"

    @property
    def cookie_secure(self) -> bool:
        return self.env == "prod"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Cache avoids re-parsing env vars for each request dependency.
    return Settings()


# --- Module Notes -----------------------------------------------------------
# Credential assembly from these fields lives in `identity.credentials`; this
# module only declares and parses them.
