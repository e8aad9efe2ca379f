"""Liveness endpoint."""

import time
from datetime import datetime, timezone

from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(request: Request):
    """Liveness check."""
    return {
        "success": True,
        "status": "healthy",
        "uptime": round(time.monotonic() - request.app.state.started_at, 3),
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": request.app.state.settings.environment,
    }
