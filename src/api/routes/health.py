"""Health check endpoint."""

import logging
from datetime import datetime, timezone
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from api.dependencies import get_session_store
from adapter.mongodb.connection import get_mongodb_client
from port.session_store import SessionStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


def _service_status(healthy: bool) -> dict:
    if healthy:
        return {"status": "healthy", "message": "Connection successful"}
    return {"status": "unhealthy", "message": "Connection failed or not configured"}


@router.get("")
async def health(
    sessions: SessionStore = Depends(get_session_store),
):
    """Health check endpoint with dependency status."""
    services = {
        "mongodb": _service_status(get_mongodb_client() is not None),
        "redis": _service_status(sessions.ping()),
    }
    overall_healthy = all(s["status"] == "healthy" for s in services.values())

    health_status = {
        "status": "healthy" if overall_healthy else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
        "services": services,
    }
    if not overall_healthy:
        logger.warning("Health check degraded", extra={"services": services})

    return JSONResponse(
        content=health_status,
        status_code=status.HTTP_200_OK if overall_healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
    )
