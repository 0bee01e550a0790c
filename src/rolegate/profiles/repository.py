"""
rolegate.profiles.repository

Repository for `users/{uid}` profile documents.

Responsibilities:
- Read, create and lazily create profile documents keyed by provider uid.
- Apply administrative mutations (role, disabled) with `updatedAt` stamps.
- Stream profiles for the admin dashboard.
"""

from __future__ import annotations

from typing import Any

from google.api_core.exceptions import NotFound

from rolegate.profiles.models import UserProfile, UserRole, now_ms


class ProfileNotFound(LookupError):
    def __init__(self, uid: str) -> None:
        super().__init__(f"profile not found: {uid}")
        self.uid = uid


class ProfileRepo:
    def __init__(self, db: Any, *, collection: str = "users") -> None:
        self._collection = db.collection(collection)

    async def get(self, uid: str) -> UserProfile | None:
        snap = await self._collection.document(uid).get()
        if not snap.exists:
            return None
        return UserProfile.from_document({**(snap.to_dict() or {}), "uid": uid})

    async def create(
        self,
        *,
        uid: str,
        email: str | None,
        display_name: str | None,
        role: UserRole = UserRole.user,
    ) -> UserProfile:
        profile = UserProfile(uid=uid, email=email, display_name=display_name, role=role)
        await self._collection.document(uid).set(profile.to_document())
        return profile

    async def get_or_create(
        self, *, uid: str, email: str | None, display_name: str | None
    ) -> tuple[UserProfile, bool]:
        existing = await self.get(uid)
        if existing is not None:
            return existing, False
        return await self.create(uid=uid, email=email, display_name=display_name), True

    async def _update(self, uid: str, fields: dict[str, Any]) -> None:
        try:
            await self._collection.document(uid).update({**fields, "updatedAt": now_ms()})
        except NotFound as e:
            raise ProfileNotFound(uid) from e

    async def update_role(self, uid: str, role: UserRole) -> None:
        await self._update(uid, {"role": role.value})

    async def set_disabled(self, uid: str, disabled: bool) -> None:
        await self._update(uid, {"disabled": disabled})

    async def delete(self, uid: str) -> None:
        # Firestore deletes are idempotent; a missing document is not an error.
        await self._collection.document(uid).delete()

    async def all(self) -> list[UserProfile]:
        return [
            UserProfile.from_document({**s.to_dict(), "uid": s.id})
            async for s in self._collection.stream()
        ]


# --- Module Notes -----------------------------------------------------------
# The document id is authoritative for `uid`; a stale stored `uid` field is ignored.
