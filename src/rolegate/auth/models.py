"""
rolegate.auth.models

Auth domain models.

Responsibilities:
- Define the authenticated identity type (`Principal`) injected into endpoints.
"""

from __future__ import annotations

from dataclasses import dataclass

from rolegate.profiles.models import UserRole


@dataclass(frozen=True, slots=True)
class Principal:
    """
    Authenticated caller identity, as carried by a verified session cookie.
    """

    uid: str
    role: UserRole
    email: str | None = None
    email_verified: bool = False

    @property
    def is_admin(self) -> bool:
        return self.role.is_admin

    @property
    def is_super_admin(self) -> bool:
        return self.role is UserRole.super_admin

    def to_dict(self) -> dict[str, object]:
        return {
            "uid": self.uid,
            "email": self.email,
            "role": self.role.value,
            "emailVerified": self.email_verified,
        }
