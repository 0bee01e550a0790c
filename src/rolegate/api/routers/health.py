"""
rolegate.api.routers.health

Health and readiness endpoints.

Responsibilities:
- Provide liveness probe (`/healthz`).
- Provide readiness probe (`/readyz`): provider clients initialized.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from starlette.status import HTTP_503_SERVICE_UNAVAILABLE

from rolegate.api.deps import backends_from_app
from rolegate.identity.backends import IdentityBackends

router = APIRouter()


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/readyz", response_model=None)
async def readyz(
    backends: IdentityBackends = Depends(backends_from_app),
) -> dict[str, str] | JSONResponse:
    # Readiness does not call Firebase; `/api/auth/admin-status` performs a live probe.
    if not backends.ready:
        return JSONResponse(
            {"status": "not-ready", "reason": "admin-sdk-not-initialized"},
            status_code=HTTP_503_SERVICE_UNAVAILABLE,
        )
    return {"status": "ready"}
