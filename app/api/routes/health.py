"""
Health check endpoints
Provides health and readiness status for the application

Industry standard pattern:
- /health (liveness): App is running (doesn't check dependencies)
- /health/ready (readiness): App is ready to serve (checks database connectivity)

Reference:
- https://kubernetes.io/docs/tasks/configure-pod-container/configure-liveness-readiness-startup-probes/
- https://fastapi.tiangolo.com/tutorial/bigger-applications/
"""
import logging
from fastapi import APIRouter, status
from pydantic import BaseModel
from sqlalchemy import text

from app.core import database
from app.core.exceptions import StoreError

logger = logging.getLogger(__name__)

# Create router for health-related endpoints
# Reference: https://fastapi.tiangolo.com/tutorial/bigger-applications/#include-an-apirouter
router = APIRouter(
    prefix="/health",
    tags=["health"],  # Groups endpoints in API documentation
)


class LivenessResponse(BaseModel):
    """Response model for the liveness endpoint"""
    message: str


class ReadinessResponse(BaseModel):
    """
    Response model for the readiness endpoint
    Reference: https://fastapi.tiangolo.com/tutorial/response-model/
    """
    status: str
    message: str


class ServiceUnavailableError(StoreError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Service is not ready - database unavailable"


@router.get(
    "",
    response_model=LivenessResponse,
    summary="Health check (liveness)",
    description="Returns the liveness status of the application. Does not check dependencies.",
    status_code=status.HTTP_200_OK,
)
async def health_check() -> LivenessResponse:
    """
    Liveness probe endpoint

    Confirms the application process is alive; the database is not touched.
    """
    return LivenessResponse(message="Server running!")


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    summary="Readiness check",
    description="Returns the readiness status including database connectivity check.",
    status_code=status.HTTP_200_OK,
    responses={
        200: {"description": "Service is ready"},
        503: {"description": "Service is not ready (database unavailable)"}
    }
)
async def readiness_check() -> ReadinessResponse:
    """
    Readiness probe endpoint

    Checks if the application is ready to serve traffic by validating
    database connectivity.

    **Raises:**
        ServiceUnavailableError: 503 if database is unavailable
    """
    try:
        async with database.engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning(f"Readiness check failed: {e}")
        raise ServiceUnavailableError(error=str(e)) from e
    return ReadinessResponse(
        status="ready",
        message="Service is ready to serve traffic"
    )
