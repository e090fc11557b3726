"""
Health check endpoint for the ServiceLane backend.

Reports whether the primary database answers `SELECT 1` and whether a read
replica is configured. Mounted both at /health and under the API prefix.
"""

from datetime import datetime, timezone

from fastapi import APIRouter

from app.api.v1.schemas.platform import HealthResponse
from app.core.config import settings
from app.core.logging import get_logger
from app.db.postgres import session as db_session

logger = get_logger(__name__)

router = APIRouter()


@router.get("", response_model=HealthResponse, summary="Service health")
async def health_check() -> HealthResponse:
    """
    Liveness and database status.

    Always answers 200; `status` is "error" when the database is unreachable
    so load balancers can still read the body.
    """
    connected = await db_session.check_database_connection()
    if not connected:
        logger.warning("Health check: database disconnected")

    return HealthResponse(
        status="ok" if connected else "error",
        timestamp=datetime.now(timezone.utc),
        database="connected" if connected else "disconnected",
        replica="configured" if db_session.db_router.has_replica else "not_configured",
        version=settings.VERSION,
    )
