"""
ProjectRepo Backend - Health Check Route
=========================================

What:  Liveness/readiness probe for Docker and load balancers.
How:   Runs SELECT 1 against the database and reports the mail transport.

Status levels:
    healthy    database reachable, SMTP configured
    degraded   database reachable, email disabled (notices are only logged)
    unhealthy  database unreachable
"""

import logging
import time

from fastapi import APIRouter, Depends
from sqlalchemy import text

from projectrepo import __version__
from projectrepo.database import engine
from projectrepo.dependencies import get_mailer
from projectrepo.schemas.common import HealthResponse
from projectrepo.services.mailer import Mailer

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get("/health", response_model=HealthResponse, summary="Service health check")
async def health_check(mailer: Mailer = Depends(get_mailer)) -> HealthResponse:
    db_status = "connected"
    overall = "healthy"

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    if mailer.transport_name == "disabled" and overall == "healthy":
        overall = "degraded"

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        mailer=mailer.transport_name,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
