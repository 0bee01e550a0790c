"""
rolegate.api.app

FastAPI app factory for the rolegate service.

Responsibilities:
- Build the FastAPI application and register routers/middleware.
- Initialize and dispose provider clients (Firebase Admin, Firestore, Identity Toolkit).
- Map provider and guard exceptions to HTTP responses.
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, RedirectResponse
from google.api_core.exceptions import GoogleAPIError
from starlette.status import (
    HTTP_303_SEE_OTHER,
    HTTP_404_NOT_FOUND,
    HTTP_503_SERVICE_UNAVAILABLE,
)

from rolegate import __version__
from rolegate.api.routers.accounts import router as accounts_router
from rolegate.api.routers.admin import router as admin_router
from rolegate.api.routers.auth import router as auth_router
from rolegate.api.routers.health import router as health_router
from rolegate.api.routers.pages import router as pages_router
from rolegate.auth.guards import RedirectRequired
from rolegate.identity.backends import IdentityBackends, build_backends
from rolegate.identity.errors import IdentityError
from rolegate.observability.logging import configure_logging, get_logger
from rolegate.observability.middleware import RequestContextMiddleware
from rolegate.profiles.repository import ProfileNotFound
from rolegate.settings import Settings

log = get_logger(__name__)


def create_app(*, settings: Settings, backends: IdentityBackends | None = None) -> FastAPI:
    """
    `backends` is normally built on startup; passing it in skips Firebase
    initialization entirely (tests, alternative providers).
    """

    configure_logging(
        service_name=settings.service_name,
        level=settings.log_level,
        json_logs=settings.log_json,
    )

    app = FastAPI(
        title="rolegate",
        version=__version__,
        docs_url="/docs",
        openapi_url="/openapi.json",
    )
    app.state.settings = settings
    if backends is not None:
        app.state.backends = backends

    app.add_middleware(RequestContextMiddleware)
    app.include_router(health_router, tags=["health"])
    app.include_router(auth_router)
    app.include_router(accounts_router)
    app.include_router(admin_router)
    app.include_router(pages_router)

    @app.exception_handler(IdentityError)
    async def _identity_error(_: Request, exc: IdentityError) -> JSONResponse:
        return JSONResponse({"error": exc.message, "code": exc.code}, status_code=exc.status_code)

    @app.exception_handler(ProfileNotFound)
    async def _profile_not_found(_: Request, exc: ProfileNotFound) -> JSONResponse:
        return JSONResponse(
            {"error": "User not found", "code": "profile/not-found"},
            status_code=HTTP_404_NOT_FOUND,
        )

    @app.exception_handler(GoogleAPIError)
    async def _store_error(_: Request, exc: GoogleAPIError) -> JSONResponse:
        # Firestore transport/quota failures (call errors and exhausted retries).
        log.warning("profile_store_call_failed", error=type(exc).__name__)
        return JSONResponse(
            {"error": "Profile store is unavailable", "code": "profile/unavailable"},
            status_code=HTTP_503_SERVICE_UNAVAILABLE,
        )

    @app.exception_handler(RedirectRequired)
    async def _redirect(_: Request, exc: RedirectRequired) -> RedirectResponse:
        return RedirectResponse(exc.location, status_code=HTTP_303_SEE_OTHER)

    @app.on_event("startup")
    async def _startup() -> None:
        log.info("startup", env=settings.env)
        if getattr(app.state, "backends", None) is None:
            app.state.backends = build_backends(settings)
        if not app.state.backends.ready:
            log.error("startup_without_admin_sdk")

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        backends_ = getattr(app.state, "backends", None)
        if backends_ is not None:
            await backends_.aclose()
        log.info("shutdown")

    return app


# --- Module Notes -----------------------------------------------------------
# App composition stays here; provider calls live in `identity`, flows in `services`.
