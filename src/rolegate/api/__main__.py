"""
rolegate.api.__main__

Entrypoint: `python -m rolegate.api`.

Responsibilities:
- Load settings and build the app (Firebase clients initialize on startup).
- Start uvicorn with structlog owning log output.
"""

from __future__ import annotations

import uvicorn

from rolegate.api.app import create_app
from rolegate.settings import get_settings


def main() -> None:
    settings = get_settings()

    uvicorn.run(
        create_app(settings=settings),
        host=settings.api_host,
        port=settings.api_port,
        log_config=None,
        access_log=False,  # RequestContextMiddleware logs requests
        # Secure cookies and redirect URLs depend on the scheme seen by the client.
        proxy_headers=True,
        forwarded_allow_ips=settings.forwarded_allow_ips,
    )


if __name__ == "__main__":
    main()
