"""
rolegate.auth

Authentication/authorization package.

Responsibilities:
- Session cookie issuance and verification (delegated to the identity provider).
- FastAPI auth dependencies (Principal + RBAC) and client-route guards.
"""

# Package marker.
