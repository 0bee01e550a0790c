"""
rolegate.auth.deps

FastAPI dependency functions for authentication and authorization.

Responsibilities:
- Convert the session cookie into a typed `Principal`.
- Enforce RBAC via reusable dependency factories.
"""

from __future__ import annotations

from fastapi import Depends, Request

from rolegate.api.deps import session_config, session_manager
from rolegate.auth.models import Principal
from rolegate.auth.session import SessionConfig, SessionManager
from rolegate.identity.errors import IdentityError
from rolegate.profiles.models import UserRole


async def get_principal(
    request: Request,
    config: SessionConfig = Depends(session_config),
    sessions: SessionManager = Depends(session_manager),
) -> Principal:
    cookie = request.cookies.get(config.cookie_name)
    if not cookie:
        raise IdentityError("auth/no-session", "No session cookie found", 401)
    return await sessions.verify(cookie)


def require_roles(*allowed: UserRole | str):
    allowed_set = frozenset(UserRole(r) for r in allowed)

    def _dep(principal: Principal = Depends(get_principal)) -> Principal:
        # super_admin passes every role check.
        if principal.is_super_admin or principal.role in allowed_set:
            return principal
        raise IdentityError("auth/insufficient-role", "Insufficient role", 403)

    return _dep


require_admin = require_roles(UserRole.admin, UserRole.super_admin)


# --- Module Notes -----------------------------------------------------------
# API endpoints trust the cookie's role claim. Client routes use
# `auth.guards.page_guard`, which reads the profile document instead.
