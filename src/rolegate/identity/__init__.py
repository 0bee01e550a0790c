"""
rolegate.identity

Identity provider boundary (Firebase).

Responsibilities:
- Assemble service account credentials and initialize the Firebase Admin app.
- Wrap the admin SDK (accounts, claims, session cookies) behind an async client.
- Call the Identity Toolkit REST API for email/password and federated sign-in.
- Translate provider error codes into `IdentityError`.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Nothing outside this package imports `firebase_admin` auth directly; swap the
# provider here without touching services or routers.
