"""
rolegate.api

HTTP API package (FastAPI).

Responsibilities:
- App factory, dependency wiring and routers.
"""

# Package marker.
