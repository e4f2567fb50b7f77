"""Common schemas shared by the archive service endpoints."""

from __future__ import annotations

from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Liveness probe response."""

    status: str = "ok"
