"""
rolegate.observability

Observability package.

Responsibilities:
- Structured logging configuration.
- Request context propagation so provider failures and admin actions carry request ids.
"""

# Package marker.
