"""
PokéCompanion Backend: Health Check Route
==========================================

What:  GET /health for container health checks and load balancer probes.
How:   Runs `SELECT 1` through the app's session factory.
       healthy   → 200
       unhealthy → 503 (database unreachable)
"""

import logging
import time

from fastapi import APIRouter, Request, Response, status
from sqlalchemy import text

from pokecompanion import __version__
from pokecompanion.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(request: Request, response: Response) -> HealthResponse:
    db_status = "connected"
    overall = "healthy"

    try:
        async with request.app.state.session_factory() as session:
            await session.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        logger.warning("Health check: database unreachable: %s", str(e))

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
