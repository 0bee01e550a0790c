"""
rolegate.auth.session

Server-side session credentials.

Responsibilities:
- Exchange a provider-issued ID token for a time-bounded session cookie.
- Verify a session cookie (with revocation checks) and read back the role claim.
- Set and clear the cookie on responses.

Note:
- Signature validation, expiry and revocation are all performed by Firebase;
  nothing here inspects token contents beyond the returned claims.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from starlette.responses import Response

from rolegate.auth.models import Principal
from rolegate.identity.admin import AdminAuthClient
from rolegate.identity.errors import IdentityError
from rolegate.observability.logging import get_logger
from rolegate.profiles.models import UserRole
from rolegate.settings import Settings

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class SessionConfig:
    cookie_name: str
    ttl: timedelta
    secure: bool
    require_email_verified: bool

    @classmethod
    def from_settings(cls, settings: Settings) -> SessionConfig:
        return cls(
            cookie_name=settings.session_cookie_name,
            ttl=timedelta(seconds=settings.session_ttl_seconds),
            secure=settings.cookie_secure,
            require_email_verified=settings.require_email_verified,
        )


@dataclass(frozen=True, slots=True)
class IssuedSession:
    cookie: str
    principal: Principal


def principal_from_claims(claims: dict[str, Any]) -> Principal:
    uid = str(claims.get("uid") or claims.get("sub") or "")
    if not uid:
        raise IdentityError("auth/invalid-session-cookie", "Invalid session subject", 401)

    # No claim means the account never had a role assigned: least privileged.
    raw_role = claims.get("role") or UserRole.default().value
    try:
        role = UserRole(raw_role)
    except ValueError as e:
        raise IdentityError("auth/invalid-role-claim", "Invalid session role", 401) from e

    return Principal(
        uid=uid,
        role=role,
        email=claims.get("email"),
        email_verified=bool(claims.get("email_verified", False)),
    )


class SessionManager:
    def __init__(self, *, admin: AdminAuthClient, config: SessionConfig) -> None:
        self._admin = admin
        self._config = config

    async def issue(self, id_token: str) -> IssuedSession:
        if not id_token:
            raise IdentityError("auth/argument-error", "ID token is required", 400)

        claims = await self._admin.verify_id_token(id_token)
        if (
            self._config.require_email_verified
            and claims.get("email")
            and not claims.get("email_verified")
        ):
            raise IdentityError("auth/email-not-verified", "Email not verified", 401)

        cookie = await self._admin.create_session_cookie(id_token, expires_in=self._config.ttl)
        principal = principal_from_claims(claims)
        log.info("session_issued", uid=principal.uid, role=principal.role.value)
        return IssuedSession(cookie=cookie, principal=principal)

    async def verify(self, session_cookie: str) -> Principal:
        try:
            claims = await self._admin.verify_session_cookie(session_cookie, check_revoked=True)
        except IdentityError as e:
            # Any rejected cookie (including a disabled account) is an authentication failure.
            if 400 <= e.status_code < 500 and e.status_code != 401:
                raise IdentityError(e.code, e.message, 401) from e
            raise
        return principal_from_claims(claims)


def set_session_cookie(response: Response, value: str, config: SessionConfig) -> None:
    response.set_cookie(
        config.cookie_name,
        value,
        max_age=int(config.ttl.total_seconds()),
        httponly=True,
        secure=config.secure,
        samesite="lax",
        path="/",
    )


def clear_session_cookie(response: Response, config: SessionConfig) -> None:
    response.set_cookie(
        config.cookie_name,
        "",
        max_age=0,
        expires=0,
        httponly=True,
        secure=config.secure,
        samesite="lax",
        path="/",
    )


# --- Module Notes -----------------------------------------------------------
# The role claim is written by `services.user_admin_service` whenever a role
# changes; until a new session is issued the cookie carries the old role.
