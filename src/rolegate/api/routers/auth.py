"""
rolegate.api.routers.auth

Session endpoints.

Responsibilities:
- Exchange an ID token for a session cookie, and clear it on logout.
- Report the verified session (uid, email, role) back to the client.
- Probe the admin SDK and explain authentication error reasons.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from starlette.status import HTTP_500_INTERNAL_SERVER_ERROR

from rolegate.api.deps import backends_from_app, session_config, session_manager
from rolegate.auth.deps import get_principal
from rolegate.auth.models import Principal
from rolegate.auth.session import (
    SessionConfig,
    SessionManager,
    clear_session_cookie,
    set_session_cookie,
)
from rolegate.identity.backends import IdentityBackends
from rolegate.identity.errors import ADMIN_SDK_NOT_INITIALIZED, IdentityError
from rolegate.observability.logging import get_logger

log = get_logger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])

_ERROR_REASONS = {
    "admin-sdk-not-initialized": ADMIN_SDK_NOT_INITIALIZED,
    "session-expired": "Your session has expired. Please log in again.",
}


class IdTokenRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id_token: str | None = Field(default=None, alias="idToken")


@router.post("/session")
async def create_session(
    body: IdTokenRequest,
    response: Response,
    sessions: SessionManager = Depends(session_manager),
    config: SessionConfig = Depends(session_config),
) -> dict[str, Any]:
    if not body.id_token:
        raise IdentityError("auth/argument-error", "ID token is required", 400)
    issued = await sessions.issue(body.id_token)
    set_session_cookie(response, issued.cookie, config)
    return {"success": True}


@router.post("/logout")
async def logout(
    response: Response,
    config: SessionConfig = Depends(session_config),
) -> dict[str, Any]:
    clear_session_cookie(response, config)
    return {"success": True}


@router.get("/verify-session")
async def verify_session(principal: Principal = Depends(get_principal)) -> dict[str, Any]:
    return principal.to_dict()


@router.post("/verify-token")
async def verify_token(
    body: IdTokenRequest,
    backends: IdentityBackends = Depends(backends_from_app),
) -> dict[str, Any]:
    if not body.id_token:
        raise IdentityError("auth/argument-error", "ID token is required", 400)
    claims = await backends.require_admin().verify_id_token(body.id_token)
    return {"success": True, "user": claims}


@router.get("/admin-status", response_model=None)
async def admin_status(
    backends: IdentityBackends = Depends(backends_from_app),
) -> dict[str, str] | JSONResponse:
    try:
        await backends.require_admin().ping()
    except IdentityError as e:
        log.warning("admin_status_failed", code=e.code)
        return JSONResponse(
            {"status": "error", "error": e.message},
            status_code=HTTP_500_INTERNAL_SERVER_ERROR,
        )
    return {"status": "success"}


@router.get("/error")
async def auth_error(reason: str = "unknown") -> JSONResponse:
    message = _ERROR_REASONS.get(reason, "An unknown authentication error occurred.")
    return JSONResponse({"error": message}, status_code=HTTP_500_INTERNAL_SERVER_ERROR)
