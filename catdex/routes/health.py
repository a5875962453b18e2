"""
Catdex — Health Check Route
=============================

What:  GET /health for monitoring and load balancer probes.
How:   Pings the database through the same pool and worker threads the API
       uses, so a saturated pool shows up here too.
"""

import logging
import time

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from catdex import __version__
from catdex.exceptions import CatdexError
from catdex.schemas.cat import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
    summary="Service health check",
)
async def health_check(request: Request) -> JSONResponse:
    """
    Returns 200 with status=healthy when SELECT 1 succeeds, otherwise 503.
    """
    state = request.app.state
    db_status = "connected"
    try:
        await state.executor.run(state.pool.ping, queue_timeout=state.pool.timeout)
    except CatdexError as e:
        db_status = "disconnected"
        logger.warning("Health check: database unreachable: %s", e.context)

    healthy = db_status == "connected"
    body = HealthResponse(
        status="healthy" if healthy else "unhealthy",
        version=__version__,
        database=db_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    return JSONResponse(status_code=200 if healthy else 503, content=body.model_dump())
