"""
rolegate.api.routers.accounts

Public account endpoints.

Responsibilities:
- Sign-up, email sign-in and federated (Google/Facebook) sign-in, each ending in a session cookie.
- Password reset emails and address verification resends.
- The signed-in user's own profile.
"""

from __future__ import annotations

from typing import Any, Literal

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, ConfigDict, Field
from starlette.status import HTTP_201_CREATED

from rolegate.api.deps import backends_from_app, profile_repo, session_config, session_manager
from rolegate.auth.deps import get_principal
from rolegate.auth.models import Principal
from rolegate.auth.session import SessionConfig, SessionManager, set_session_cookie
from rolegate.identity.backends import IdentityBackends
from rolegate.profiles.repository import ProfileRepo
from rolegate.services.account_service import AccountService, SignInOutcome

router = APIRouter(prefix="/v1/accounts", tags=["accounts"])


class SignUpRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: str = Field(default="", max_length=320)
    password: str = Field(default="", max_length=4096)
    display_name: str = Field(default="", alias="displayName", max_length=256)


class SignInRequest(BaseModel):
    email: str = Field(default="", max_length=320)
    password: str = Field(default="", max_length=4096)


class FederatedSignInRequest(BaseModel):
    # Google: OAuth ID token. Facebook: access token.
    token: str = Field(default="", max_length=8192)


class PasswordResetRequest(BaseModel):
    email: str = Field(default="", max_length=320)


def account_service(
    backends: IdentityBackends = Depends(backends_from_app),
    sessions: SessionManager = Depends(session_manager),
    profiles: ProfileRepo = Depends(profile_repo),
) -> AccountService:
    return AccountService(
        toolkit=backends.toolkit,
        admin=backends.require_admin(),
        sessions=sessions,
        profiles=profiles,
    )


def _respond(outcome: SignInOutcome, response: Response, config: SessionConfig) -> dict[str, Any]:
    if outcome.session is not None:
        set_session_cookie(response, outcome.session.cookie, config)
    return {
        "user": outcome.profile.to_document(),
        "sessionIssued": outcome.session is not None,
        "isNewUser": outcome.is_new_user,
        "verificationSent": outcome.verification_sent,
    }


@router.post("/signup", status_code=HTTP_201_CREATED)
async def sign_up(
    body: SignUpRequest,
    response: Response,
    svc: AccountService = Depends(account_service),
    config: SessionConfig = Depends(session_config),
) -> dict[str, Any]:
    outcome = await svc.sign_up(
        email=body.email, password=body.password, display_name=body.display_name
    )
    return _respond(outcome, response, config)


@router.post("/signin")
async def sign_in(
    body: SignInRequest,
    response: Response,
    svc: AccountService = Depends(account_service),
    config: SessionConfig = Depends(session_config),
) -> dict[str, Any]:
    outcome = await svc.sign_in_with_email(email=body.email, password=body.password)
    return _respond(outcome, response, config)


@router.post("/signin/{provider}")
async def sign_in_federated(
    provider: Literal["google", "facebook"],
    body: FederatedSignInRequest,
    response: Response,
    svc: AccountService = Depends(account_service),
    config: SessionConfig = Depends(session_config),
) -> dict[str, Any]:
    outcome = await svc.sign_in_with_provider(provider=provider, token=body.token)
    return _respond(outcome, response, config)


@router.post("/password-reset")
async def password_reset(
    body: PasswordResetRequest,
    svc: AccountService = Depends(account_service),
) -> dict[str, Any]:
    await svc.reset_password(email=body.email)
    return {"success": True}


@router.post("/verify-email")
async def resend_verification(
    body: SignInRequest,
    svc: AccountService = Depends(account_service),
) -> dict[str, Any]:
    await svc.resend_verification(email=body.email, password=body.password)
    return {"success": True}


@router.get("/me")
async def me(
    principal: Principal = Depends(get_principal),
    svc: AccountService = Depends(account_service),
) -> dict[str, Any]:
    profile = await svc.current_profile(principal)
    return {"user": profile.to_document(), "session": principal.to_dict()}
