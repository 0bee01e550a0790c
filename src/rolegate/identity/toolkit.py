"""
rolegate.identity.toolkit

Identity Toolkit REST client (the browser-side Firebase Auth calls, made server-side).

Responsibilities:
- Email/password sign-up and sign-in, display-name update, password reset and
  address verification emails.
- Federated sign-in with a Google ID token or a Facebook access token.
- Translate REST error payloads into `IdentityError`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal
from urllib.parse import urlencode

import httpx

from rolegate.identity.errors import IdentityError, from_rest_error
from rolegate.observability.logging import get_logger
from rolegate.settings import Settings

log = get_logger(__name__)

FederatedProvider = Literal["google", "facebook"]

# provider -> (Firebase providerId, credential parameter name in postBody)
_PROVIDERS: dict[str, tuple[str, str]] = {
    "google": ("google.com", "id_token"),
    "facebook": ("facebook.com", "access_token"),
}


@dataclass(frozen=True, slots=True)
class SignInResult:
    uid: str
    id_token: str
    refresh_token: str | None
    email: str | None
    display_name: str | None
    email_verified: bool = False
    is_new_user: bool = False
    provider_id: str = "password"

    @classmethod
    def from_payload(cls, payload: dict[str, Any], *, provider_id: str = "password") -> SignInResult:
        return cls(
            uid=payload["localId"],
            id_token=payload["idToken"],
            refresh_token=payload.get("refreshToken"),
            email=payload.get("email"),
            display_name=payload.get("displayName") or None,
            email_verified=bool(payload.get("emailVerified", False)),
            is_new_user=bool(payload.get("isNewUser", False)),
            provider_id=payload.get("providerId") or provider_id,
        )


class IdentityToolkitClient:
    def __init__(self, *, settings: Settings, http: httpx.AsyncClient) -> None:
        self._settings = settings
        self._http = http

    async def _post(self, method: str, body: dict[str, Any]) -> dict[str, Any]:
        try:
            r = await self._http.post(
                f"{self._settings.identity_toolkit_url}/accounts:{method}",
                params={"key": self._settings.firebase_web_api_key},
                json=body,
            )
        except httpx.HTTPError as e:
            log.warning("identity_toolkit_unreachable", op=method, error=type(e).__name__)
            raise IdentityError(
                "auth/network-request-failed", "Could not reach the identity provider", 503
            ) from e
        if r.is_success:
            return r.json()

        try:
            message = r.json()["error"]["message"]
        except (ValueError, KeyError, TypeError):
            message = r.text
        err = from_rest_error(message)
        log.warning("identity_toolkit_call_failed", op=method, code=err.code, status=r.status_code)
        raise err

    async def sign_up(self, *, email: str, password: str) -> SignInResult:
        payload = await self._post(
            "signUp", {"email": email, "password": password, "returnSecureToken": True}
        )
        return SignInResult.from_payload(payload)

    async def update_display_name(self, *, id_token: str, display_name: str) -> SignInResult:
        payload = await self._post(
            "update",
            {"idToken": id_token, "displayName": display_name, "returnSecureToken": True},
        )
        # accounts:update only returns a fresh idToken when the old one was rotated.
        payload.setdefault("idToken", id_token)
        return SignInResult.from_payload(payload)

    async def sign_in_with_password(self, *, email: str, password: str) -> SignInResult:
        payload = await self._post(
            "signInWithPassword",
            {"email": email, "password": password, "returnSecureToken": True},
        )
        return SignInResult.from_payload(payload)

    async def sign_in_with_idp(self, *, provider: FederatedProvider, token: str) -> SignInResult:
        if provider not in _PROVIDERS:
            raise IdentityError("auth/invalid-provider", f"Unsupported provider: {provider}", 400)
        provider_id, param = _PROVIDERS[provider]
        payload = await self._post(
            "signInWithIdp",
            {
                "postBody": urlencode({param: token, "providerId": provider_id}),
                "requestUri": self._settings.public_base_url,
                "returnIdpCredential": True,
                "returnSecureToken": True,
            },
        )
        return SignInResult.from_payload(payload, provider_id=provider_id)

    async def send_password_reset(self, *, email: str) -> None:
        await self._post("sendOobCode", {"requestType": "PASSWORD_RESET", "email": email})

    async def send_email_verification(self, *, id_token: str) -> None:
        await self._post("sendOobCode", {"requestType": "VERIFY_EMAIL", "idToken": id_token})


# --- Module Notes -----------------------------------------------------------
# The web API key is not a secret in the browser, but it is kept out of logs
# here anyway; only the method name and translated code are logged.
