"""Health & Stats - liveness and monitoring endpoints.

Invariants:
    - GET /api/health always returns 200 if the process is up
    - aiAvailable reflects whether a chat responder is configured
"""

import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request

from calmish.api.dependencies import ai_available
from calmish.schemas.chat import HealthResponse, StatsResponse

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health", response_model=HealthResponse, response_model_by_alias=True)
async def health_check(available: bool = Depends(ai_available)):
    return HealthResponse(
        status="ok", timestamp=datetime.now(timezone.utc), ai_available=available,
    )


@router.get("/stats", response_model=StatsResponse, response_model_by_alias=True)
async def stats(request: Request, available: bool = Depends(ai_available)):
    return StatsResponse(
        timestamp=datetime.now(timezone.utc),
        uptime_seconds=round(time.monotonic() - request.app.state.started_at, 3),
        ai_available=available,
    )
