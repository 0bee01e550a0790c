"""
rolegate.api.routers.pages

Client routes guarded server-side.

Page rendering is out of scope: each route returns the JSON view the page
would render, after the guard has allowed or redirected the request.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from rolegate.api.deps import audit_repo, backends_from_app, profile_repo
from rolegate.auth.guards import DEFAULT_REDIRECT, PageContext, page_guard, safe_redirect_path
from rolegate.identity.backends import IdentityBackends
from rolegate.profiles.audit import AuditRepo
from rolegate.profiles.models import UserRole
from rolegate.profiles.repository import ProfileRepo
from rolegate.services.user_admin_service import UserAdminService

router = APIRouter(tags=["pages"])

admin_page = page_guard(UserRole.admin, UserRole.super_admin)
member_page = page_guard()


@router.get("/login")
async def login(redirect: str = DEFAULT_REDIRECT) -> dict[str, Any]:
    return {
        "page": "login",
        "redirect": safe_redirect_path(redirect),
        "methods": ["password", "google", "facebook"],
    }


@router.get("/unauthorized")
async def unauthorized() -> dict[str, Any]:
    return {"page": "unauthorized", "message": "You do not have access to this page."}


@router.get("/dashboard")
async def dashboard_page(ctx: PageContext = Depends(member_page)) -> dict[str, Any]:
    return {"page": "dashboard", "user": ctx.profile.to_document()}


@router.get("/profile")
async def profile_page(ctx: PageContext = Depends(member_page)) -> dict[str, Any]:
    return {
        "page": "profile",
        "user": ctx.profile.to_document(),
        "session": ctx.principal.to_dict(),
    }


@router.get("/admin")
async def admin_page_view(
    ctx: PageContext = Depends(admin_page),
    backends: IdentityBackends = Depends(backends_from_app),
    profiles: ProfileRepo = Depends(profile_repo),
    audit: AuditRepo = Depends(audit_repo),
) -> dict[str, Any]:
    svc = UserAdminService(
        admin=backends.require_admin(), profiles=profiles, audit=audit, actor=ctx.principal
    )
    stats = await svc.dashboard()
    return {
        "page": "admin",
        "user": ctx.profile.to_document(),
        "stats": {
            "totalUsers": stats.total_users,
            "totalCustomers": stats.total_customers,
            "totalAdmins": stats.total_admins,
            "newUsersToday": stats.new_users_today,
        },
    }
