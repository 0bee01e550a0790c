"""
rolegate.api.deps

FastAPI dependency wiring for the API layer.

Responsibilities:
- Provide dependency functions for settings and provider clients.
- Encapsulate app.state access patterns (identity backends).
- Build per-request repositories and session manager.
"""

from __future__ import annotations

from fastapi import Depends, Request

from rolegate.auth.session import SessionConfig, SessionManager
from rolegate.identity.backends import IdentityBackends
from rolegate.profiles.audit import AuditRepo
from rolegate.profiles.repository import ProfileRepo
from rolegate.settings import Settings, get_settings


def settings_dep(request: Request) -> Settings:
    # Prefer the settings the app was built with (tests build apps with explicit settings).
    return getattr(request.app.state, "settings", None) or get_settings()


def backends_from_app(request: Request) -> IdentityBackends:
    # Created on app startup (or injected) in `rolegate.api.app.create_app`.
    return request.app.state.backends  # type: ignore[attr-defined]


def session_config(settings: Settings = Depends(settings_dep)) -> SessionConfig:
    return SessionConfig.from_settings(settings)


def session_manager(
    backends: IdentityBackends = Depends(backends_from_app),
    config: SessionConfig = Depends(session_config),
) -> SessionManager:
    return SessionManager(admin=backends.require_admin(), config=config)


def profile_repo(
    backends: IdentityBackends = Depends(backends_from_app),
    settings: Settings = Depends(settings_dep),
) -> ProfileRepo:
    return ProfileRepo(backends.require_firestore(), collection=settings.users_collection)


def audit_repo(
    backends: IdentityBackends = Depends(backends_from_app),
    settings: Settings = Depends(settings_dep),
) -> AuditRepo:
    return AuditRepo(backends.require_firestore(), collection=settings.audit_collection)
