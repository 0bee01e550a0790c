"""
rolegate.api.routers.admin

Admin console endpoints (role `admin` or `super_admin`).

Responsibilities:
- List (paged by the provider, filtered per page), create, re-role, disable/enable
  and delete users.
- Profile-only deletion and provider/profile reconciliation.
- Dashboard statistics and the audit trail.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
from starlette.status import HTTP_201_CREATED

from rolegate.api.deps import audit_repo, backends_from_app, profile_repo
from rolegate.auth.deps import require_admin
from rolegate.auth.models import Principal
from rolegate.identity.backends import IdentityBackends
from rolegate.profiles.audit import AuditRepo
from rolegate.profiles.models import UserRole
from rolegate.profiles.repository import ProfileRepo
from rolegate.services.user_admin_service import UserAdminService

router = APIRouter(prefix="/v1/admin", tags=["admin"])


class CreateUserRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: str = Field(default="", max_length=320)
    password: str = Field(default="", max_length=4096)
    display_name: str = Field(default="", alias="displayName", max_length=256)


class RoleUpdateRequest(BaseModel):
    role: UserRole


class DisabledUpdateRequest(BaseModel):
    disabled: bool


def user_admin_service(
    principal: Principal = Depends(require_admin),
    backends: IdentityBackends = Depends(backends_from_app),
    profiles: ProfileRepo = Depends(profile_repo),
    audit: AuditRepo = Depends(audit_repo),
) -> UserAdminService:
    return UserAdminService(
        admin=backends.require_admin(), profiles=profiles, audit=audit, actor=principal
    )


@router.get("/users")
async def list_users(
    limit: int = Query(default=50, ge=1, le=1000),
    page_token: str | None = Query(default=None, alias="pageToken"),
    q: str | None = Query(default=None, max_length=256),
    svc: UserAdminService = Depends(user_admin_service),
) -> dict[str, Any]:
    """
    `q` filters the fetched provider page; it does not search across pages. A
    filtered page may be short or empty while `pageToken` is still set, so
    clients keep paging until `pageToken` is null.
    """

    page = await svc.list_users(limit=limit, page_token=page_token, query=q)
    return {"users": [u.to_dict() for u in page.users], "pageToken": page.next_page_token}


@router.post("/users", status_code=HTTP_201_CREATED)
async def create_user(
    body: CreateUserRequest,
    svc: UserAdminService = Depends(user_admin_service),
) -> dict[str, Any]:
    user = await svc.create_user(
        email=body.email, password=body.password, display_name=body.display_name
    )
    return {"success": True, "user": user.to_dict()}


@router.patch("/users/{uid}/role")
async def update_role(
    uid: str,
    body: RoleUpdateRequest,
    svc: UserAdminService = Depends(user_admin_service),
) -> dict[str, Any]:
    profile = await svc.update_user_role(uid, body.role)
    return {"success": True, "user": profile.to_document()}


@router.patch("/users/{uid}/disabled")
async def update_disabled(
    uid: str,
    body: DisabledUpdateRequest,
    svc: UserAdminService = Depends(user_admin_service),
) -> dict[str, Any]:
    profile = await svc.set_user_disabled(uid, body.disabled)
    return {"success": True, "user": profile.to_document()}


@router.delete("/users/{uid}")
async def delete_user(
    uid: str,
    svc: UserAdminService = Depends(user_admin_service),
) -> dict[str, Any]:
    await svc.delete_user(uid)
    return {"success": True}


@router.delete("/users/{uid}/profile")
async def delete_profile(
    uid: str,
    svc: UserAdminService = Depends(user_admin_service),
) -> dict[str, Any]:
    await svc.delete_profile(uid)
    return {"success": True, "accountRetained": True}


@router.post("/users/{uid}/reconcile")
async def reconcile_user(
    uid: str,
    svc: UserAdminService = Depends(user_admin_service),
) -> dict[str, Any]:
    report = await svc.reconcile(uid)
    return {
        "uid": report.uid,
        "changed": report.changed,
        "profileCreated": report.profile_created,
        "changes": report.changes,
    }


@router.get("/dashboard")
async def dashboard(svc: UserAdminService = Depends(user_admin_service)) -> dict[str, Any]:
    stats = await svc.dashboard()
    return {
        "totalUsers": stats.total_users,
        "totalCustomers": stats.total_customers,
        "totalAdmins": stats.total_admins,
        "newUsersToday": stats.new_users_today,
        "recentUsers": [p.to_document() for p in stats.recent_users],
    }


@router.get("/audit")
async def audit_log(
    limit: int = Query(default=100, ge=1, le=500),
    svc: UserAdminService = Depends(user_admin_service),
) -> list[dict[str, Any]]:
    events = await svc.audit_log(limit=limit)
    return [{"id": e.id, **e.to_document()} for e in events]
