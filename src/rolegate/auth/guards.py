"""
rolegate.auth.guards

Client-route guards.

Responsibilities:
- Redirect unauthenticated visitors to `/login?redirect=<path>`; only same-origin
  paths are accepted back as redirect targets.
- Redirect authenticated users without an allowed role to `/unauthorized`.
- Resolve the profile document (creating it if missing) for the guarded page.
"""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlencode

from fastapi import Depends, Request

from rolegate.api.deps import profile_repo, session_config, session_manager
from rolegate.auth.models import Principal
from rolegate.auth.session import SessionConfig, SessionManager
from rolegate.identity.errors import IdentityError
from rolegate.observability.logging import get_logger
from rolegate.profiles.models import UserProfile, UserRole
from rolegate.profiles.repository import ProfileRepo

log = get_logger(__name__)

LOGIN_PATH = "/login"
UNAUTHORIZED_PATH = "/unauthorized"
DEFAULT_REDIRECT = "/dashboard"


class RedirectRequired(Exception):
    def __init__(self, location: str) -> None:
        super().__init__(location)
        self.location = location


@dataclass(frozen=True, slots=True)
class PageContext:
    principal: Principal
    profile: UserProfile


def login_redirect(path: str) -> str:
    return f"{LOGIN_PATH}?{urlencode({'redirect': path})}"


def safe_redirect_path(target: str | None) -> str:
    """
    Only same-origin absolute paths are followed after login. `//host` and
    `/\\host` are scheme-relative URLs to browsers, so they fall back too.
    """

    if not target or not target.startswith("/") or target.startswith("//") or "\\" in target:
        return DEFAULT_REDIRECT
    return target


def page_guard(*allowed: UserRole | str):
    allowed_set = frozenset(UserRole(r) for r in allowed) or frozenset(UserRole)

    async def _dep(
        request: Request,
        config: SessionConfig = Depends(session_config),
        sessions: SessionManager = Depends(session_manager),
        profiles: ProfileRepo = Depends(profile_repo),
    ) -> PageContext:
        cookie = request.cookies.get(config.cookie_name)
        if not cookie:
            raise RedirectRequired(login_redirect(request.url.path))
        try:
            principal = await sessions.verify(cookie)
        except IdentityError as e:
            if e.status_code >= 500:
                raise
            log.info("page_guard_session_rejected", code=e.code)
            raise RedirectRequired(login_redirect(request.url.path)) from e

        profile, _ = await profiles.get_or_create(
            uid=principal.uid, email=principal.email, display_name=None
        )
        if profile.role not in allowed_set:
            raise RedirectRequired(UNAUTHORIZED_PATH)
        return PageContext(principal=principal, profile=profile)

    return _dep
