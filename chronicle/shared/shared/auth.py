"""Bearer-token guard for the archive module endpoints.

The bots and the orchestrator share a single ``SERVICE_AUTH_TOKEN`` with
the archive service.  Calls to ``/manifest`` and ``/execute`` must carry
``Authorization: Bearer <token>`` once a token is configured.

Usage::

    from shared.auth import require_service_auth

    @app.post("/execute")
    async def execute(call: ToolCall, _=Depends(require_service_auth)):
        ...
"""

from __future__ import annotations

import hmac

import structlog
from fastapi import HTTPException, Request

from shared.config import get_settings

logger = structlog.get_logger()


async def require_service_auth(request: Request) -> None:
    """FastAPI dependency validating the shared service token.

    Raises 401 on a missing or wrong token.  No-op when
    ``service_auth_token`` is empty.
    """
    expected = get_settings().service_auth_token
    if not expected:
        logger.debug("service_auth_disabled", path=request.url.path)
        return

    auth_header = request.headers.get("authorization", "")
    if not auth_header.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Missing service auth token")

    token = auth_header[7:]
    if not hmac.compare_digest(token, expected):
        logger.warning(
            "service_auth_failed",
            path=request.url.path,
            remote=request.client.host if request.client else "unknown",
        )
        raise HTTPException(status_code=401, detail="Invalid service auth token")
