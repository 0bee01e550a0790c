"""
rolegate.identity.credentials

Service account credential assembly.

Responsibilities:
- Validate a full service account JSON key.
- Rebuild a service account mapping from individual settings fields.
- Restore escaped newlines in private keys supplied through env vars.
"""

from __future__ import annotations

import json
from typing import Any
from urllib.parse import quote

from rolegate.settings import Settings

_REQUIRED_KEY_FIELDS = ("project_id", "private_key_id", "private_key", "client_email", "client_id")


def validate_service_account_key(raw: str) -> bool:
    try:
        parsed = json.loads(raw)
    except ValueError:
        return False
    if not isinstance(parsed, dict) or parsed.get("type") != "service_account":
        return False
    return all(parsed.get(field) for field in _REQUIRED_KEY_FIELDS)


def format_private_key(private_key: str) -> str:
    return private_key.replace("\\n", "\n")


def service_account_from_fields(settings: Settings) -> dict[str, str] | None:
    project_id = settings.firebase_project_id
    client_email = settings.firebase_client_email
    private_key = settings.firebase_private_key
    if not project_id or not client_email or not private_key:
        return None

    return {
        "type": "service_account",
        "project_id": project_id,
        "private_key_id": settings.firebase_private_key_id or "private-key-id",
        "private_key": format_private_key(private_key),
        "client_email": client_email,
        "client_id": settings.firebase_client_id or "client-id",
        "auth_uri": "https://accounts.google.com/o/oauth2/auth",
        "token_uri": "https://oauth2.googleapis.com/token",
        "auth_provider_x509_cert_url": "https://www.googleapis.com/oauth2/v1/certs",
        "client_x509_cert_url": (
            "https://www.googleapis.com/robot/v1/metadata/x509/" + quote(client_email, safe="")
        ),
    }


def load_service_account(settings: Settings) -> dict[str, Any] | None:
    """
    Prefer the full JSON key; fall back to individual fields.
    Returns None when neither source is usable.
    """

    raw = settings.firebase_service_account_key
    if raw and validate_service_account_key(raw):
        return json.loads(raw)
    return service_account_from_fields(settings)
