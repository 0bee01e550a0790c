"""
rolegate.identity.errors

Provider error translation.

Responsibilities:
- Define `IdentityError`, the single error type raised across the provider boundary.
- Map Identity Toolkit REST error messages and Firebase Admin exceptions to
  Firebase-style codes (`auth/...`), short user-facing messages and HTTP statuses.
"""

from __future__ import annotations

from firebase_admin import auth as fb_auth
from firebase_admin import exceptions as fb_exceptions

ADMIN_SDK_NOT_INITIALIZED = (
    "Firebase Admin SDK is not initialized. Check server logs and environment variables."
)


class IdentityError(Exception):
    def __init__(self, code: str, message: str, status_code: int = 400) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code

    def __repr__(self) -> str:
        return f"IdentityError(code={self.code!r}, status_code={self.status_code})"


def admin_sdk_unavailable() -> IdentityError:
    return IdentityError("auth/admin-sdk-not-initialized", ADMIN_SDK_NOT_INITIALIZED, 500)


# REST error message prefix -> (code, message, status)
_REST_ERRORS: dict[str, tuple[str, str, int]] = {
    "EMAIL_EXISTS": (
        "auth/email-already-in-use",
        "An account with this email already exists",
        409,
    ),
    "EMAIL_NOT_FOUND": ("auth/invalid-credential", "Invalid email or password", 401),
    "INVALID_PASSWORD": ("auth/invalid-credential", "Invalid email or password", 401),
    "INVALID_LOGIN_CREDENTIALS": ("auth/invalid-credential", "Invalid email or password", 401),
    "INVALID_EMAIL": ("auth/invalid-email", "Email address is badly formatted", 400),
    "MISSING_PASSWORD": ("auth/missing-password", "Password is required", 400),
    "WEAK_PASSWORD": ("auth/weak-password", "Password should be at least 6 characters", 400),
    "USER_DISABLED": ("auth/user-disabled", "This account has been disabled", 403),
    "TOO_MANY_ATTEMPTS_TRY_LATER": (
        "auth/too-many-requests",
        "Too many attempts. Try again later",
        429,
    ),
    "OPERATION_NOT_ALLOWED": (
        "auth/operation-not-allowed",
        "This sign-in method is not enabled",
        403,
    ),
    "INVALID_IDP_RESPONSE": ("auth/invalid-credential", "Provider credential is invalid", 401),
    "INVALID_ID_TOKEN": ("auth/invalid-id-token", "Token invalid", 401),
    "FEDERATED_USER_ID_ALREADY_LINKED": (
        "auth/credential-already-in-use",
        "This provider account is already linked to another user",
        409,
    ),
    "API_KEY_INVALID": ("auth/invalid-api-key", "Identity API key is invalid", 500),
}


def from_rest_error(message: str) -> IdentityError:
    """
    Identity Toolkit returns messages like ``WEAK_PASSWORD : Password should be ...``;
    only the token before the first space/colon is stable.
    """

    key = message.split(":", 1)[0].strip().split(" ", 1)[0]
    known = _REST_ERRORS.get(key)
    if known is None:
        return IdentityError("auth/internal-error", message or "Identity provider error", 500)
    code, text, status = known
    return IdentityError(code, text, status)


# Ordered most-specific first: several of these subclass each other.
_ADMIN_ERRORS: tuple[tuple[type[Exception], str, str, int], ...] = (
    (fb_auth.ExpiredSessionCookieError, "auth/session-cookie-expired", "Session expired", 401),
    (fb_auth.RevokedSessionCookieError, "auth/session-cookie-revoked", "Session revoked", 401),
    (fb_auth.InvalidSessionCookieError, "auth/invalid-session-cookie", "Invalid session", 401),
    (fb_auth.ExpiredIdTokenError, "auth/id-token-expired", "Token expired", 401),
    (fb_auth.RevokedIdTokenError, "auth/id-token-revoked", "Token revoked", 401),
    (fb_auth.InvalidIdTokenError, "auth/invalid-id-token", "Token invalid", 401),
    (fb_auth.UserDisabledError, "auth/user-disabled", "This account has been disabled", 403),
    (fb_auth.UserNotFoundError, "auth/user-not-found", "User not found", 404),
    (
        fb_auth.EmailAlreadyExistsError,
        "auth/email-already-in-use",
        "An account with this email already exists",
        409,
    ),
    (fb_auth.UidAlreadyExistsError, "auth/uid-already-exists", "User id already exists", 409),
    (fb_auth.CertificateFetchError, "auth/certificate-fetch-failed", "Could not fetch keys", 503),
)


def from_admin_error(exc: Exception) -> IdentityError:
    for exc_type, code, message, status in _ADMIN_ERRORS:
        if isinstance(exc, exc_type):
            return IdentityError(code, message, status)
    if isinstance(exc, fb_exceptions.InvalidArgumentError):
        return IdentityError("auth/argument-error", str(exc) or "Invalid argument", 400)
    if isinstance(exc, ValueError):
        # The admin SDK raises ValueError for malformed input (empty token, bad email...).
        return IdentityError("auth/argument-error", str(exc) or "Invalid argument", 400)
    return IdentityError("auth/internal-error", str(exc) or "Identity provider error", 500)


# --- Module Notes -----------------------------------------------------------
# The API layer renders IdentityError as {"error": message, "code": code}.
