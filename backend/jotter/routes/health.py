"""
Jotter Backend — Health Check Route
=====================================

What:  Health check endpoint for monitoring and load balancer probes.
How:   Runs SELECT 1 against the pool and reports whether the identity
       provider has an API key. The provider itself is not called: a probe
       every few seconds would spend quota and prove little.

Status levels:
    - healthy:   database reachable and identity provider configured (HTTP 200)
    - degraded:  database reachable, no identity API key, logins fail (HTTP 200)
    - unhealthy: database unreachable (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from jotter import __version__
from jotter.database import Database, get_database
from jotter.dependencies import IdentityVerifierDep
from jotter.schemas.note import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
    summary="Service health check",
)
async def health_check(
    verifier: IdentityVerifierDep,
    database: Database = Depends(get_database),
):
    db_status = "connected"
    identity_status = "configured" if verifier.is_configured else "not_configured"
    overall = "healthy" if verifier.is_configured else "degraded"

    try:
        await database.ping()
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    body = HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        identity_provider=identity_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    if overall == "unhealthy":
        return JSONResponse(status_code=503, content=body.model_dump())
    return body
