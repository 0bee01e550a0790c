"""
tests.test_pages

Server-side guards on client routes.
"""

from __future__ import annotations

import pytest
from conftest import sign_in_as


@pytest.mark.asyncio
@pytest.mark.parametrize("path", ["/dashboard", "/profile", "/admin"])
async def test_anonymous_visitor_is_sent_to_login(client, path) -> None:
    r = await client.get(path)
    assert r.status_code == 303
    assert r.headers["location"] == f"/login?redirect=%2F{path[1:]}"


@pytest.mark.asyncio
async def test_login_page_echoes_redirect(client) -> None:
    r = await client.get("/login", params={"redirect": "/admin"})
    assert r.status_code == 200
    assert r.json()["redirect"] == "/admin"
    assert r.json()["methods"] == ["password", "google", "facebook"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "target", ["https://evil.test/", "//evil.test/path", "/\\evil.test", "javascript:alert(1)", ""]
)
async def test_login_redirect_stays_on_site(client, target) -> None:
    r = await client.get("/login", params={"redirect": target})
    assert r.json()["redirect"] == "/dashboard"


@pytest.mark.asyncio
async def test_invalid_cookie_is_sent_to_login(client) -> None:
    r = await client.get("/dashboard", headers={"cookie": "session=forged"})
    assert r.status_code == 303
    assert r.headers["location"].startswith("/login?")


@pytest.mark.asyncio
@pytest.mark.parametrize("role", ["user", "customer"])
async def test_non_admin_is_sent_to_unauthorized(client, firebase, role) -> None:
    await sign_in_as(client, firebase, "pat", role=role)

    r = await client.get("/admin")
    assert r.status_code == 303
    assert r.headers["location"] == "/unauthorized"

    r = await client.get("/unauthorized")
    assert r.json()["page"] == "unauthorized"


@pytest.mark.asyncio
@pytest.mark.parametrize("role", ["admin", "super_admin"])
async def test_admin_page_allowed(client, firebase, role) -> None:
    await sign_in_as(client, firebase, "ada", role=role)

    r = await client.get("/admin")

    assert r.status_code == 200
    body = r.json()
    assert body["user"]["role"] == role
    assert body["stats"]["totalAdmins"] == 1


@pytest.mark.asyncio
async def test_page_guard_reads_role_from_profile_document(client, firebase) -> None:
    await sign_in_as(client, firebase, "ada", role="admin")
    # Demoted in the document only; the cookie still carries the admin claim.
    firebase.profiles["ada"]["role"] = "user"

    r = await client.get("/admin")
    assert r.headers["location"] == "/unauthorized"

    r = await client.get("/v1/admin/dashboard")
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_profile_page_creates_missing_document(client, firebase) -> None:
    await sign_in_as(client, firebase, "newbie", with_profile=False)
    assert "newbie" not in firebase.profiles

    r = await client.get("/profile")

    assert r.status_code == 200
    assert r.json()["user"]["role"] == "user"
    assert r.json()["session"]["uid"] == "newbie"
    assert firebase.profiles["newbie"]["email"] == "newbie@example.com"


@pytest.mark.asyncio
async def test_dashboard_page(client, firebase) -> None:
    await sign_in_as(client, firebase, "cara", role="customer")
    r = await client.get("/dashboard")
    assert r.status_code == 200
    assert r.json() == {"page": "dashboard", "user": firebase.profiles["cara"]}
