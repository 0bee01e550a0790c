"""
rolegate.services

Service layer.

Responsibilities:
- Account flows: sign-up, sign-in (email and federated), password reset.
- User administration: roles, disable/enable, deletion, reconciliation, dashboard.
- Keep the provider account and the profile document in step on every mutation.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Services receive provider clients and repositories explicitly; routers build them per request.
