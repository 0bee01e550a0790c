"""
rolegate.profiles.models

Profile document schema.

Responsibilities:
- `UserRole`: the four fixed roles, least privileged first.
- `UserProfile`: the `users/{uid}` document, stored with camelCase field names.
- `AuditEvent`: the `audit_events/{id}` document written by admin actions.
"""

from __future__ import annotations

import enum
import time
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def now_ms() -> int:
    return int(time.time() * 1000)


class UserRole(enum.StrEnum):
    user = "user"
    customer = "customer"
    admin = "admin"
    super_admin = "super_admin"

    @classmethod
    def default(cls) -> UserRole:
        return cls.user

    @property
    def is_admin(self) -> bool:
        return self in ADMIN_ROLES


ADMIN_ROLES = frozenset({UserRole.admin, UserRole.super_admin})


class UserProfile(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    uid: str
    email: str | None = None
    display_name: str | None = Field(default=None, alias="displayName")
    role: UserRole = UserRole.user
    created_at: int = Field(default_factory=now_ms, alias="createdAt")
    disabled: bool | None = None
    updated_at: int | None = Field(default=None, alias="updatedAt")

    @field_validator("role", mode="before")
    @classmethod
    def _unknown_role_is_user(cls, value: Any) -> Any:
        # Documents edited by hand may carry stale role strings.
        if value is None or value not in UserRole._value2member_map_:
            return UserRole.default()
        return value

    @classmethod
    def from_document(cls, data: dict[str, Any]) -> UserProfile:
        return cls.model_validate(data)

    def to_document(self) -> dict[str, Any]:
        doc = self.model_dump(by_alias=True, mode="json")
        # Optional fields are omitted rather than stored as null.
        for key in ("disabled", "updatedAt"):
            if doc[key] is None:
                del doc[key]
        return doc


class AuditEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str | None = None
    actor: str
    target: str
    event_type: str = Field(alias="eventType")
    details: dict[str, Any] = Field(default_factory=dict)
    created_at: int = Field(default_factory=now_ms, alias="createdAt")

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json", exclude={"id"})


# --- Module Notes -----------------------------------------------------------
# Timestamps are epoch milliseconds, matching documents written by the web client.
