"""
rolegate.identity.backends

Provider client bundle created once at startup and stored on `app.state`.

Responsibilities:
- Build the admin auth client, async Firestore client and Identity Toolkit client.
- Report missing admin SDK initialization per request instead of failing startup.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx
from firebase_admin import firestore_async

from rolegate.identity.admin import AdminAuthClient, initialize_admin_app
from rolegate.identity.errors import admin_sdk_unavailable
from rolegate.identity.toolkit import IdentityToolkitClient
from rolegate.settings import Settings


@dataclass(slots=True)
class IdentityBackends:
    toolkit: IdentityToolkitClient
    admin: AdminAuthClient | None = None
    firestore: Any | None = None
    http: httpx.AsyncClient | None = None

    @property
    def ready(self) -> bool:
        return self.admin is not None and self.firestore is not None

    def require_admin(self) -> AdminAuthClient:
        if self.admin is None:
            raise admin_sdk_unavailable()
        return self.admin

    def require_firestore(self) -> Any:
        if self.firestore is None:
            raise admin_sdk_unavailable()
        return self.firestore

    async def aclose(self) -> None:
        if self.http is not None:
            await self.http.aclose()


def build_backends(settings: Settings) -> IdentityBackends:
    http = httpx.AsyncClient(timeout=settings.identity_toolkit_timeout_seconds)
    backends = IdentityBackends(
        toolkit=IdentityToolkitClient(settings=settings, http=http),
        http=http,
    )
    app = initialize_admin_app(settings)
    if app is not None:
        backends.admin = AdminAuthClient(app)
        backends.firestore = firestore_async.client(app)
    return backends
