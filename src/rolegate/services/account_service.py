"""
rolegate.services.account_service

Sign-up and sign-in flows.

Responsibilities:
- Create provider accounts with a `user` role claim and a matching profile document.
- Sign users in (email/password, Google, Facebook), creating a missing profile lazily.
- Exchange the resulting ID token for a session cookie.
- Send password reset and address verification emails.
"""

from __future__ import annotations

from dataclasses import dataclass

from rolegate.auth.models import Principal
from rolegate.auth.session import IssuedSession, SessionManager
from rolegate.identity.admin import AdminAuthClient
from rolegate.identity.errors import IdentityError
from rolegate.identity.toolkit import FederatedProvider, IdentityToolkitClient, SignInResult
from rolegate.observability.logging import get_logger
from rolegate.profiles.models import UserProfile, UserRole
from rolegate.profiles.repository import ProfileRepo

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class SignInOutcome:
    profile: UserProfile
    session: IssuedSession | None
    profile_created: bool = False
    is_new_user: bool = False
    verification_sent: bool = False


def _require(value: str | None, field: str) -> str:
    if not value or not value.strip():
        raise IdentityError(f"auth/missing-{field}", f"{field.capitalize()} is required", 400)
    return value


class AccountService:
    def __init__(
        self,
        *,
        toolkit: IdentityToolkitClient,
        admin: AdminAuthClient,
        sessions: SessionManager,
        profiles: ProfileRepo,
    ) -> None:
        self._toolkit = toolkit
        self._admin = admin
        self._sessions = sessions
        self._profiles = profiles

    async def sign_up(self, *, email: str, password: str, display_name: str = "") -> SignInOutcome:
        _require(email, "email")
        _require(password, "password")

        result = await self._toolkit.sign_up(email=email, password=password)
        if display_name:
            result = await self._toolkit.update_display_name(
                id_token=result.id_token, display_name=display_name
            )

        await self._admin.set_role_claim(result.uid, UserRole.user.value)
        profile = await self._profiles.create(
            uid=result.uid,
            email=result.email or email,
            display_name=result.display_name,
        )
        log.info("account_signed_up", uid=result.uid)

        try:
            session = await self._sessions.issue(result.id_token)
        except IdentityError as e:
            if e.code != "auth/email-not-verified":
                raise
            session = None

        verification_sent = False
        if session is None:
            # The account exists; a session follows once the address is verified.
            await self._toolkit.send_email_verification(id_token=result.id_token)
            verification_sent = True
            log.info("verification_email_sent", uid=result.uid)
        return SignInOutcome(
            profile=profile,
            session=session,
            profile_created=True,
            is_new_user=True,
            verification_sent=verification_sent,
        )

    async def sign_in_with_email(self, *, email: str, password: str) -> SignInOutcome:
        _require(email, "email")
        _require(password, "password")
        result = await self._toolkit.sign_in_with_password(email=email, password=password)
        return await self._complete_sign_in(result)

    async def sign_in_with_provider(
        self, *, provider: FederatedProvider, token: str
    ) -> SignInOutcome:
        _require(token, "token")
        result = await self._toolkit.sign_in_with_idp(provider=provider, token=token)
        return await self._complete_sign_in(result)

    async def _complete_sign_in(self, result: SignInResult) -> SignInOutcome:
        profile, created = await self._profiles.get_or_create(
            uid=result.uid, email=result.email, display_name=result.display_name
        )
        if created:
            log.info("profile_created_on_sign_in", uid=result.uid, provider=result.provider_id)
        if profile.disabled:
            # Profile disabled while the provider account is still enabled.
            raise IdentityError("auth/user-disabled", "This account has been disabled", 403)

        session = await self._sessions.issue(result.id_token)
        return SignInOutcome(
            profile=profile,
            session=session,
            profile_created=created,
            is_new_user=result.is_new_user,
        )

    async def reset_password(self, *, email: str) -> None:
        _require(email, "email")
        await self._toolkit.send_password_reset(email=email)

    async def resend_verification(self, *, email: str, password: str) -> None:
        """
        Password sign-in succeeds for unverified addresses at the provider; only
        session issuance is gated, so the fresh ID token can request the email.
        """

        _require(email, "email")
        _require(password, "password")
        result = await self._toolkit.sign_in_with_password(email=email, password=password)
        claims = await self._admin.verify_id_token(result.id_token)
        if claims.get("email_verified"):
            raise IdentityError("auth/email-already-verified", "Email is already verified", 400)
        await self._toolkit.send_email_verification(id_token=result.id_token)
        log.info("verification_email_sent", uid=result.uid)

    async def current_profile(self, principal: Principal) -> UserProfile:
        profile, _ = await self._profiles.get_or_create(
            uid=principal.uid, email=principal.email, display_name=None
        )
        return profile
