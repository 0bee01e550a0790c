"""
rolegate.services.user_admin_service

Admin console operations.

Responsibilities:
- Create users, change roles, disable/enable and delete accounts.
- Write every mutation to both the provider account and the profile document.
- Reconcile the two records when they have drifted apart.
- Produce dashboard statistics and expose the audit trail.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from rolegate.auth.models import Principal
from rolegate.identity.admin import AccountRecord, AdminAuthClient
from rolegate.identity.errors import IdentityError
from rolegate.observability.logging import get_logger
from rolegate.profiles.audit import AuditRepo
from rolegate.profiles.models import ADMIN_ROLES, AuditEvent, UserProfile, UserRole
from rolegate.profiles.repository import ProfileNotFound, ProfileRepo

log = get_logger(__name__)

MAX_PAGE_SIZE = 1000


@dataclass(frozen=True, slots=True)
class ManagedUser:
    account: AccountRecord
    profile: UserProfile | None

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.account.to_dict(),
            "userData": self.profile.to_document() if self.profile is not None else None,
        }


@dataclass(frozen=True, slots=True)
class UserPage:
    users: list[ManagedUser]
    next_page_token: str | None


@dataclass(frozen=True, slots=True)
class DashboardStats:
    total_users: int
    total_customers: int
    total_admins: int
    new_users_today: int
    recent_users: list[UserProfile]


@dataclass(slots=True)
class ReconcileReport:
    uid: str
    profile_created: bool = False
    changes: dict[str, dict[str, Any]] = field(default_factory=dict)

    @property
    def changed(self) -> bool:
        return self.profile_created or bool(self.changes)


def _matches(user: ManagedUser, needle: str) -> bool:
    names = [user.account.display_name, user.account.email]
    if user.profile is not None:
        names += [user.profile.display_name, user.profile.email]
    return any(needle in n.lower() for n in names if n)


class UserAdminService:
    def __init__(
        self,
        *,
        admin: AdminAuthClient,
        profiles: ProfileRepo,
        audit: AuditRepo,
        actor: Principal,
    ) -> None:
        self._admin = admin
        self._profiles = profiles
        self._audit = audit
        self._actor = actor

    async def _record(self, event_type: str, target: str, **details: Any) -> None:
        await self._audit.add(
            actor=self._actor.uid, target=target, event_type=event_type, details=details
        )
        log.info("admin_action", event_type=event_type, actor=self._actor.uid, target=target)

    async def _profile_for(self, account: AccountRecord) -> tuple[UserProfile, bool]:
        return await self._profiles.get_or_create(
            uid=account.uid, email=account.email, display_name=account.display_name
        )

    async def create_user(self, *, email: str, password: str, display_name: str = "") -> ManagedUser:
        if not email or not password:
            raise IdentityError("auth/argument-error", "Email and password are required", 400)
        account = await self._admin.create_user(
            email=email, password=password, display_name=display_name
        )
        await self._admin.set_role_claim(account.uid, UserRole.user.value)
        profile = await self._profiles.create(
            uid=account.uid, email=account.email, display_name=account.display_name
        )
        await self._record("USER_CREATED", account.uid, email=account.email)
        return ManagedUser(account=account, profile=profile)

    def _require_super_admin_for(
        self, uid: str, account: AccountRecord | None, profile: UserProfile | None
    ) -> None:
        # Either record marking the target as super_admin is enough; drift must not hide one.
        if self._actor.is_super_admin:
            return
        claim_is_super = account is not None and account.role_claim == UserRole.super_admin
        profile_is_super = profile is not None and profile.role is UserRole.super_admin
        if claim_is_super or profile_is_super:
            log.warning("super_admin_target_denied", actor=self._actor.uid, target=uid)
            raise IdentityError(
                "auth/insufficient-role", "Only a super admin can manage a super admin", 403
            )

    async def update_user_role(self, uid: str, role: UserRole) -> UserProfile:
        account = await self._admin.get_user(uid)
        profile, _ = await self._profile_for(account)

        self._require_super_admin_for(uid, account, profile)
        if role is UserRole.super_admin and not self._actor.is_super_admin:
            raise IdentityError(
                "auth/insufficient-role",
                "Only a super admin can grant or revoke the super_admin role",
                403,
            )

        await self._admin.set_role_claim(uid, role.value)
        await self._profiles.update_role(uid, role)
        await self._record("ROLE_UPDATED", uid, previous=profile.role.value, role=role.value)
        return await self._reload(uid)

    async def set_user_disabled(self, uid: str, disabled: bool) -> UserProfile:
        account = await self._admin.get_user(uid)
        profile, _ = await self._profile_for(account)
        self._require_super_admin_for(uid, account, profile)

        await self._admin.set_disabled(uid, disabled)
        await self._profiles.set_disabled(uid, disabled)
        await self._record("USER_DISABLED" if disabled else "USER_ENABLED", uid)
        return await self._reload(uid)

    async def delete_user(self, uid: str) -> None:
        account = await self._admin.get_user(uid)
        self._require_super_admin_for(uid, account, await self._profiles.get(uid))

        await self._admin.delete_user(uid)
        await self._profiles.delete(uid)
        await self._record("USER_DELETED", uid)

    async def delete_profile(self, uid: str) -> None:
        profile = await self._profiles.get(uid)
        if profile is None:
            raise ProfileNotFound(uid)
        self._require_super_admin_for(uid, await self._account_or_none(uid), profile)

        await self._profiles.delete(uid)
        # The provider account is intentionally left in place; sign-in recreates the profile.
        log.warning("profile_deleted_account_retained", uid=uid)
        await self._record("PROFILE_DELETED", uid, account_retained=True)

    async def _account_or_none(self, uid: str) -> AccountRecord | None:
        try:
            return await self._admin.get_user(uid)
        except IdentityError as e:
            if e.code != "auth/user-not-found":
                raise
            return None

    async def list_users(
        self, *, limit: int = 50, page_token: str | None = None, query: str | None = None
    ) -> UserPage:
        limit = max(1, min(limit, MAX_PAGE_SIZE))
        accounts, next_token = await self._admin.list_users(
            max_results=limit, page_token=page_token
        )
        profiles = await asyncio.gather(*(self._profiles.get(a.uid) for a in accounts))
        users = [ManagedUser(account=a, profile=p) for a, p in zip(accounts, profiles)]

        needle = (query or "").strip().lower()
        if needle:
            users = [u for u in users if _matches(u, needle)]
        return UserPage(users=users, next_page_token=next_token)

    async def reconcile(self, uid: str) -> ReconcileReport:
        """
        Push the profile document's role and disabled flag onto the provider
        account. The profile is created from the account if it is missing.
        """

        account = await self._admin.get_user(uid)
        profile, created = await self._profile_for(account)
        self._require_super_admin_for(uid, account, profile)
        report = ReconcileReport(uid=uid, profile_created=created)

        if account.role_claim != profile.role.value:
            await self._admin.set_role_claim(uid, profile.role.value)
            report.changes["role"] = {"from": account.role_claim, "to": profile.role.value}

        profile_disabled = bool(profile.disabled)
        if account.disabled != profile_disabled:
            await self._admin.set_disabled(uid, profile_disabled)
            report.changes["disabled"] = {"from": account.disabled, "to": profile_disabled}

        if report.changed:
            await self._record(
                "RECORDS_RECONCILED", uid, profile_created=created, changes=report.changes
            )
        return report

    async def dashboard(self, *, now: datetime | None = None) -> DashboardStats:
        now = now or datetime.now(tz=UTC)
        midnight = now.astimezone(UTC).replace(hour=0, minute=0, second=0, microsecond=0)
        midnight_ms = int(midnight.timestamp() * 1000)

        profiles = await self._profiles.all()
        recent = sorted(profiles, key=lambda p: p.created_at, reverse=True)[:5]
        return DashboardStats(
            total_users=len(profiles),
            total_customers=sum(1 for p in profiles if p.role is UserRole.customer),
            total_admins=sum(1 for p in profiles if p.role in ADMIN_ROLES),
            new_users_today=sum(1 for p in profiles if p.created_at >= midnight_ms),
            recent_users=recent,
        )

    async def audit_log(self, *, limit: int = 100) -> list[AuditEvent]:
        return await self._audit.list_recent(limit=max(1, min(limit, 500)))

    async def _reload(self, uid: str) -> UserProfile:
        profile = await self._profiles.get(uid)
        if profile is None:
            raise ProfileNotFound(uid)
        return profile


# --- Module Notes -----------------------------------------------------------
# Mutations write the provider account first, then the document. `reconcile`
# treats the document as the source of truth when the two disagree.
