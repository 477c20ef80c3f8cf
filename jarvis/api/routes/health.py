"""
Health Check Routes - Liveness endpoint.

Used by load balancers and uptime checks. Does not call the model or
the search backend.
"""
from datetime import datetime

from fastapi import APIRouter

from jarvis import __version__
from jarvis.core.logging_config import get_logger
from jarvis.models.chat import HealthResponse

logger = get_logger(__name__)

router = APIRouter(
    prefix="/health",
    tags=["Health"],
)


@router.get(
    "",
    response_model=HealthResponse,
    summary="Health check endpoint",
)
async def health_check() -> HealthResponse:
    """Report that the API is running and responsive."""
    logger.debug("Health check requested")

    return HealthResponse(
        status="healthy",
        version=__version__,
        timestamp=datetime.utcnow()
    )
