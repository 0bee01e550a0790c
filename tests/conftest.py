"""
tests.conftest

In-memory stand-ins for the Firebase boundaries plus app/client fixtures.

Responsibilities:
- `FakeAdminAuth`: same async surface as `identity.admin.AdminAuthClient`.
- `FakeFirestore`: the subset of the async Firestore client used by the repositories.
- `FakeToolkit`: an `httpx.MockTransport` handler speaking the Identity Toolkit REST shapes.
"""

from __future__ import annotations

import dataclasses
import itertools
import json
import uuid
from datetime import timedelta
from typing import Any
from urllib.parse import parse_qs

import httpx
import pytest
import pytest_asyncio
from google.api_core.exceptions import NotFound

from rolegate.api.app import create_app
from rolegate.identity.admin import AccountRecord
from rolegate.identity.backends import IdentityBackends
from rolegate.identity.errors import IdentityError
from rolegate.identity.toolkit import IdentityToolkitClient
from rolegate.settings import Settings

# --- Firestore ---------------------------------------------------------------


class FakeSnapshot:
    def __init__(self, doc_id: str, data: dict[str, Any] | None) -> None:
        self.id = doc_id
        self._data = data

    @property
    def exists(self) -> bool:
        return self._data is not None

    def to_dict(self) -> dict[str, Any] | None:
        return dict(self._data) if self._data is not None else None


class FakeDocRef:
    def __init__(self, store: dict[str, dict[str, Any]], doc_id: str) -> None:
        self._store = store
        self.id = doc_id

    async def get(self) -> FakeSnapshot:
        return FakeSnapshot(self.id, self._store.get(self.id))

    async def set(self, data: dict[str, Any]) -> None:
        self._store[self.id] = dict(data)

    async def update(self, fields: dict[str, Any]) -> None:
        if self.id not in self._store:
            raise NotFound(f"No document to update: {self.id}")
        self._store[self.id].update(fields)

    async def delete(self) -> None:
        self._store.pop(self.id, None)


class FakeQuery:
    def __init__(
        self,
        store: dict[str, dict[str, Any]],
        order: tuple[str, bool] | None = None,
        max_results: int | None = None,
    ) -> None:
        self._store = store
        self._order = order
        self._limit = max_results

    def order_by(self, field: str, direction: str = "ASCENDING") -> FakeQuery:
        return FakeQuery(self._store, (field, direction == "DESCENDING"), self._limit)

    def limit(self, count: int) -> FakeQuery:
        return FakeQuery(self._store, self._order, count)

    async def stream(self):
        items = list(self._store.items())
        if self._order is not None:
            field, descending = self._order
            items.sort(key=lambda kv: kv[1].get(field, 0), reverse=descending)
        if self._limit is not None:
            items = items[: self._limit]
        for doc_id, data in items:
            yield FakeSnapshot(doc_id, dict(data))


class FakeCollection(FakeQuery):
    def __init__(self) -> None:
        super().__init__({})

    def document(self, doc_id: str | None = None) -> FakeDocRef:
        return FakeDocRef(self._store, doc_id or uuid.uuid4().hex)

    @property
    def docs(self) -> dict[str, dict[str, Any]]:
        return self._store


class FakeFirestore:
    def __init__(self) -> None:
        self._collections: dict[str, FakeCollection] = {}

    def collection(self, name: str) -> FakeCollection:
        return self._collections.setdefault(name, FakeCollection())


# --- Admin auth --------------------------------------------------------------


class FakeAdminAuth:
    def __init__(self) -> None:
        self.users: dict[str, AccountRecord] = {}
        self.passwords: dict[str, str] = {}
        self.id_tokens: dict[str, dict[str, Any]] = {}
        self.sessions: dict[str, dict[str, Any]] = {}
        self.revoked: set[str] = set()
        self.session_ttls: list[timedelta] = []
        self._seq = itertools.count(1)

    # helpers used by tests and by FakeToolkit

    def add_user(
        self,
        uid: str,
        *,
        email: str | None = None,
        display_name: str | None = None,
        role: str | None = None,
        email_verified: bool = True,
        disabled: bool = False,
    ) -> AccountRecord:
        record = AccountRecord(
            uid=uid,
            email=email,
            display_name=display_name,
            disabled=disabled,
            email_verified=email_verified,
            custom_claims={"role": role} if role else {},
        )
        self.users[uid] = record
        return record

    def mint_id_token(self, uid: str) -> str:
        user = self.users[uid]
        token = f"idtoken-{uid}-{next(self._seq)}"
        claims: dict[str, Any] = {
            "uid": uid,
            "sub": uid,
            "email_verified": user.email_verified,
            **user.custom_claims,
        }
        if user.email:
            claims["email"] = user.email
        self.id_tokens[token] = claims
        return token

    def confirm_email(self, email: str) -> None:
        """Simulate the user following the verification link."""
        user = next(u for u in self.users.values() if u.email == email)
        self.users[user.uid] = dataclasses.replace(user, email_verified=True)

    def _user(self, uid: str) -> AccountRecord:
        if uid not in self.users:
            raise IdentityError("auth/user-not-found", "User not found", 404)
        return self.users[uid]

    # AdminAuthClient surface

    async def verify_id_token(self, id_token: str, *, check_revoked: bool = False) -> dict[str, Any]:
        if id_token not in self.id_tokens:
            raise IdentityError("auth/invalid-id-token", "Token invalid", 401)
        return dict(self.id_tokens[id_token])

    async def create_session_cookie(self, id_token: str, *, expires_in: timedelta) -> str:
        claims = await self.verify_id_token(id_token)
        cookie = f"session-{claims['uid']}-{next(self._seq)}"
        self.sessions[cookie] = claims
        self.session_ttls.append(expires_in)
        return cookie

    async def verify_session_cookie(
        self, session_cookie: str, *, check_revoked: bool = True
    ) -> dict[str, Any]:
        if session_cookie not in self.sessions:
            raise IdentityError("auth/invalid-session-cookie", "Invalid session", 401)
        if check_revoked and session_cookie in self.revoked:
            raise IdentityError("auth/session-cookie-revoked", "Session revoked", 401)
        claims = self.sessions[session_cookie]
        if check_revoked and self._user(claims["uid"]).disabled:
            raise IdentityError("auth/user-disabled", "This account has been disabled", 403)
        return dict(claims)

    async def get_user(self, uid: str) -> AccountRecord:
        return self._user(uid)

    async def create_user(
        self, *, email: str, password: str, display_name: str | None = None
    ) -> AccountRecord:
        if any(u.email == email for u in self.users.values()):
            raise IdentityError(
                "auth/email-already-in-use", "An account with this email already exists", 409
            )
        uid = f"uid-{next(self._seq)}"
        self.passwords[email] = password
        return self.add_user(
            uid, email=email, display_name=display_name or None, email_verified=False
        )

    async def set_role_claim(self, uid: str, role: str) -> None:
        user = self._user(uid)
        self.users[uid] = dataclasses.replace(
            user, custom_claims={**user.custom_claims, "role": role}
        )

    async def set_disabled(self, uid: str, disabled: bool) -> AccountRecord:
        self.users[uid] = dataclasses.replace(self._user(uid), disabled=disabled)
        return self.users[uid]

    async def delete_user(self, uid: str) -> None:
        self._user(uid)
        del self.users[uid]

    async def list_users(
        self, *, max_results: int = 50, page_token: str | None = None
    ) -> tuple[list[AccountRecord], str | None]:
        ordered = sorted(self.users.values(), key=lambda u: u.uid)
        start = int(page_token) if page_token else 0
        page = ordered[start : start + max_results]
        nxt = start + max_results
        return page, (str(nxt) if nxt < len(ordered) else None)

    async def ping(self) -> None:
        return None


# --- Identity Toolkit REST ----------------------------------------------------


def _rest_error(message: str, status: int = 400) -> httpx.Response:
    return httpx.Response(status, json={"error": {"code": status, "message": message}})


class FakeToolkit:
    """
    Handler for `httpx.MockTransport`; accounts live in the shared FakeAdminAuth.
    """

    def __init__(self, admin: FakeAdminAuth) -> None:
        self.admin = admin
        # provider token -> (providerId, email, display name)
        self.idp_tokens: dict[str, tuple[str, str, str]] = {}
        self.requests: list[tuple[str, dict[str, Any]]] = []
        self.reset_emails: list[str] = []
        self.verification_emails: list[str] = []

    def _by_email(self, email: str) -> AccountRecord | None:
        return next((u for u in self.admin.users.values() if u.email == email), None)

    def _signed_in(self, user: AccountRecord, **extra: Any) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "localId": user.uid,
                "email": user.email,
                "displayName": user.display_name or "",
                "idToken": self.admin.mint_id_token(user.uid),
                "refreshToken": "refresh",
                "expiresIn": "3600",
                **extra,
            },
        )

    def __call__(self, request: httpx.Request) -> httpx.Response:
        method = request.url.path.rsplit(":", 1)[-1]
        body = json.loads(request.content or b"{}")
        self.requests.append((method, body))
        if request.url.params.get("key") != "test-api-key":
            return _rest_error("API_KEY_INVALID")

        if method == "signUp":
            if self._by_email(body["email"]) is not None:
                return _rest_error("EMAIL_EXISTS")
            if len(body["password"]) < 6:
                return _rest_error("WEAK_PASSWORD : Password should be at least 6 characters")
            uid = f"uid-{uuid.uuid4().hex[:8]}"
            self.admin.passwords[body["email"]] = body["password"]
            user = self.admin.add_user(uid, email=body["email"], email_verified=False)
            return self._signed_in(user)

        if method == "update":
            claims = self.admin.id_tokens.get(body["idToken"])
            if claims is None:
                return _rest_error("INVALID_ID_TOKEN")
            user = dataclasses.replace(
                self.admin.users[claims["uid"]], display_name=body["displayName"]
            )
            self.admin.users[user.uid] = user
            return httpx.Response(
                200,
                json={"localId": user.uid, "email": user.email, "displayName": user.display_name},
            )

        if method == "signInWithPassword":
            user = self._by_email(body["email"])
            if user is None or self.admin.passwords.get(body["email"]) != body["password"]:
                return _rest_error("INVALID_LOGIN_CREDENTIALS")
            if user.disabled:
                return _rest_error("USER_DISABLED")
            return self._signed_in(user, registered=True)

        if method == "signInWithIdp":
            params = parse_qs(body["postBody"])
            token = (params.get("id_token") or params.get("access_token"))[0]
            if token not in self.idp_tokens:
                return _rest_error("INVALID_IDP_RESPONSE : bad token")
            provider_id, email, name = self.idp_tokens[token]
            if params["providerId"][0] != provider_id:
                return _rest_error("INVALID_IDP_RESPONSE : provider mismatch")
            user = self._by_email(email)
            is_new = user is None
            if user is None:
                user = self.admin.add_user(
                    f"uid-{uuid.uuid4().hex[:8]}", email=email, display_name=name
                )
            return self._signed_in(
                user, providerId=provider_id, emailVerified=True, isNewUser=is_new
            )

        if method == "sendOobCode" and body["requestType"] == "VERIFY_EMAIL":
            claims = self.admin.id_tokens.get(body["idToken"])
            if claims is None:
                return _rest_error("INVALID_ID_TOKEN")
            self.verification_emails.append(claims["email"])
            return httpx.Response(200, json={"email": claims["email"]})

        if method == "sendOobCode":
            if self._by_email(body["email"]) is None:
                return _rest_error("EMAIL_NOT_FOUND")
            self.reset_emails.append(body["email"])
            return httpx.Response(200, json={"email": body["email"]})

        return httpx.Response(404, text="unknown method")


class FakeFirebase:
    def __init__(self) -> None:
        self.admin = FakeAdminAuth()
        self.firestore = FakeFirestore()
        self.toolkit = FakeToolkit(self.admin)

    @property
    def profiles(self) -> dict[str, dict[str, Any]]:
        return self.firestore.collection("users").docs

    @property
    def audit(self) -> dict[str, dict[str, Any]]:
        return self.firestore.collection("audit_events").docs

    def backends(self, settings: Settings, *, with_admin: bool = True) -> IdentityBackends:
        http = httpx.AsyncClient(transport=httpx.MockTransport(self.toolkit))
        return IdentityBackends(
            toolkit=IdentityToolkitClient(settings=settings, http=http),
            admin=self.admin if with_admin else None,
            firestore=self.firestore if with_admin else None,
            http=http,
        )


# --- Fixtures ----------------------------------------------------------------


@pytest.fixture
def settings() -> Settings:
    return Settings(env="test", firebase_web_api_key="test-api-key", log_level="WARNING")


@pytest.fixture
def firebase() -> FakeFirebase:
    return FakeFirebase()


@pytest.fixture
def app(settings: Settings, firebase: FakeFirebase):
    return create_app(settings=settings, backends=firebase.backends(settings))


@pytest_asyncio.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


async def sign_in_as(
    client: httpx.AsyncClient,
    firebase: FakeFirebase,
    uid: str,
    *,
    role: str | None = None,
    email: str | None = None,
    with_profile: bool = True,
) -> None:
    """
    Create a provider account (and profile document), then exchange an ID token
    for a session cookie stored in the client's cookie jar.
    """

    email = email or f"{uid}@example.com"
    firebase.admin.add_user(uid, email=email, display_name=uid.title(), role=role)
    if with_profile:
        firebase.profiles[uid] = {
            "uid": uid,
            "email": email,
            "displayName": uid.title(),
            "role": role or "user",
            "createdAt": 1_700_000_000_000,
        }
    r = await client.post("/api/auth/session", json={"idToken": firebase.admin.mint_id_token(uid)})
    assert r.status_code == 200, r.text
