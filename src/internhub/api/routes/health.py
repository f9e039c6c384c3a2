"""Health check endpoint.

Verifies connectivity to the database and reports whether the notification
dispatcher is running. Used by Docker healthchecks and load balancers.
"""

from __future__ import annotations

from fastapi import APIRouter, Request

from internhub.logging_config import get_logger
from internhub.schemas.common import HealthResponse

router = APIRouter(tags=["Health"])
logger = get_logger(__name__)


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Returns the health of the database and the notification dispatcher.",
)
async def health_check(request: Request) -> HealthResponse:
    try:
        await request.app.state.database.ping()
        db_status = "healthy"
    except Exception as exc:
        db_status = "unhealthy"
        logger.error("health.db_check_failed", error=str(exc))

    notifier_status = "running" if request.app.state.notifier.is_running else "stopped"

    healthy = db_status == "healthy" and notifier_status == "running"
    return HealthResponse(
        status="ok" if healthy else "degraded",
        version=request.app.version,
        database=db_status,
        notifications=notifier_status,
    )
