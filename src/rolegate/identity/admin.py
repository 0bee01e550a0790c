"""
rolegate.identity.admin

Firebase Admin SDK boundary.

Responsibilities:
- Initialize (or reuse) the named Firebase Admin app from settings.
- Expose the account, custom-claim and session-cookie operations the service
  needs as an async client; blocking SDK calls run in the threadpool.
- Convert SDK user records into `AccountRecord`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any

import firebase_admin
from firebase_admin import auth as fb_auth
from firebase_admin import credentials as fb_credentials
from firebase_admin import exceptions as fb_exceptions
from starlette.concurrency import run_in_threadpool

from rolegate.identity.credentials import format_private_key, load_service_account
from rolegate.identity.errors import from_admin_error
from rolegate.observability.logging import get_logger
from rolegate.settings import Settings

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class AccountRecord:
    """
    Identity-provider view of a user (the other half of the profile document).
    """

    uid: str
    email: str | None = None
    display_name: str | None = None
    disabled: bool = False
    email_verified: bool = False
    custom_claims: dict[str, Any] = field(default_factory=dict)
    provider_ids: tuple[str, ...] = ()
    created_at: int | None = None
    last_sign_in_at: int | None = None

    @property
    def role_claim(self) -> str | None:
        role = self.custom_claims.get("role")
        return str(role) if role is not None else None

    @classmethod
    def from_user_record(cls, record: Any) -> AccountRecord:
        metadata = getattr(record, "user_metadata", None)
        return cls(
            uid=record.uid,
            email=record.email,
            display_name=record.display_name,
            disabled=bool(record.disabled),
            email_verified=bool(record.email_verified),
            custom_claims=dict(record.custom_claims or {}),
            provider_ids=tuple(p.provider_id for p in (record.provider_data or [])),
            created_at=getattr(metadata, "creation_timestamp", None),
            last_sign_in_at=getattr(metadata, "last_sign_in_timestamp", None),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "uid": self.uid,
            "email": self.email,
            "displayName": self.display_name,
            "disabled": self.disabled,
            "emailVerified": self.email_verified,
            "customClaims": dict(self.custom_claims),
            "providerIds": list(self.provider_ids),
            "createdAt": self.created_at,
            "lastSignInAt": self.last_sign_in_at,
        }


def initialize_admin_app(settings: Settings) -> firebase_admin.App | None:
    """
    Returns the initialized app, or None when no usable credentials exist.
    Failure is logged, not raised: endpoints report the missing SDK per request.
    """

    try:
        return firebase_admin.get_app(settings.firebase_app_name)
    except ValueError:
        pass

    service_account = load_service_account(settings)
    if service_account is None:
        log.error("firebase_admin_init_failed", reason="no valid service account credentials")
        return None

    options = {"projectId": settings.firebase_project_id or service_account.get("project_id")}
    if settings.firebase_storage_bucket:
        options["storageBucket"] = settings.firebase_storage_bucket

    try:
        return _initialize(service_account, options, settings.firebase_app_name)
    except ValueError as e:
        private_key = service_account.get("private_key")
        if not isinstance(private_key, str) or "\\n" not in private_key:
            log.error("firebase_admin_init_failed", reason=str(e))
            return None
        # Keys pasted into env files often keep literal "\n" sequences.
        service_account = {**service_account, "private_key": format_private_key(private_key)}
        try:
            return _initialize(service_account, options, settings.firebase_app_name)
        except ValueError as retry_error:
            log.error("firebase_admin_init_failed", reason=str(retry_error))
            return None


def _initialize(
    service_account: dict[str, Any], options: dict[str, Any], name: str
) -> firebase_admin.App:
    cred = fb_credentials.Certificate(service_account)
    return firebase_admin.initialize_app(cred, options=options, name=name)


class AdminAuthClient:
    def __init__(self, app: firebase_admin.App) -> None:
        self._app = app

    async def _call(self, fn, /, *args: Any, **kwargs: Any) -> Any:
        try:
            return await run_in_threadpool(fn, *args, app=self._app, **kwargs)
        except (fb_exceptions.FirebaseError, ValueError) as e:
            err = from_admin_error(e)
            log.warning("admin_sdk_call_failed", op=fn.__name__, code=err.code)
            raise err from e

    async def verify_id_token(self, id_token: str, *, check_revoked: bool = False) -> dict[str, Any]:
        return await self._call(fb_auth.verify_id_token, id_token, check_revoked=check_revoked)

    async def create_session_cookie(self, id_token: str, *, expires_in: timedelta) -> str:
        cookie = await self._call(fb_auth.create_session_cookie, id_token, expires_in=expires_in)
        return cookie.decode() if isinstance(cookie, bytes) else cookie

    async def verify_session_cookie(
        self, session_cookie: str, *, check_revoked: bool = True
    ) -> dict[str, Any]:
        return await self._call(
            fb_auth.verify_session_cookie, session_cookie, check_revoked=check_revoked
        )

    async def get_user(self, uid: str) -> AccountRecord:
        return AccountRecord.from_user_record(await self._call(fb_auth.get_user, uid))

    async def create_user(
        self, *, email: str, password: str, display_name: str | None = None
    ) -> AccountRecord:
        record = await self._call(
            fb_auth.create_user, email=email, password=password, display_name=display_name or None
        )
        return AccountRecord.from_user_record(record)

    async def set_role_claim(self, uid: str, role: str) -> None:
        # Merge so unrelated custom claims survive a role change.
        current = await self.get_user(uid)
        claims = {**current.custom_claims, "role": role}
        await self._call(fb_auth.set_custom_user_claims, uid, claims)

    async def set_disabled(self, uid: str, disabled: bool) -> AccountRecord:
        record = await self._call(fb_auth.update_user, uid, disabled=disabled)
        return AccountRecord.from_user_record(record)

    async def delete_user(self, uid: str) -> None:
        await self._call(fb_auth.delete_user, uid)

    async def list_users(
        self, *, max_results: int = 50, page_token: str | None = None
    ) -> tuple[list[AccountRecord], str | None]:
        page = await self._call(fb_auth.list_users, page_token=page_token, max_results=max_results)
        users = [AccountRecord.from_user_record(u) for u in page.users]
        return users, page.next_page_token or None

    async def ping(self) -> None:
        await self.list_users(max_results=1)

