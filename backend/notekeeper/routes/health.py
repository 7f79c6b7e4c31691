"""
Notekeeper Backend: Health Check Route
=======================================

What:  Health check endpoint for monitoring and load balancer probes.
How:   Pings the configured note store and reports aggregate status.
Who:   Called by Docker health checks, load balancers, and monitoring systems.

Status levels:
    - healthy:   the store answered the ping
    - unhealthy: the store is unreachable or shut down
"""

import logging
import time

from fastapi import APIRouter, Depends

from notekeeper import __version__
from notekeeper.routes.dependencies import get_note_store
from notekeeper.schemas.note import HealthResponse
from notekeeper.services.store_base import NoteStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

# Initialized once when the module loads; used for uptime reporting
_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(store: NoteStore = Depends(get_note_store)) -> HealthResponse:
    """
    Check the health of the service and its note store.

    Database: SELECT 1 against the pool (sql store)
    Memory:   always reachable until shut down (memory store)
    """
    store_status = "connected"
    overall = "healthy"

    if not await store.ping():
        store_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: %s note store unreachable", store.name)

    return HealthResponse(
        status=overall,
        version=__version__,
        store=store.name,
        store_status=store_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
