"""
rolegate.api.routers

HTTP routers: health, session endpoints, account flows, admin console, client routes.
"""

# Package marker.
