from fastapi import APIRouter, status
from pydantic import BaseModel

from loris_gateway.core.logging import get_logger

# Initialize router and logger
health_router = APIRouter()
logger = get_logger(__name__)


class HealthStatus(BaseModel):
    """Basic health status response model."""
    status: str
    message: str = "Server is running"


@health_router.get(
    "",
    response_model=HealthStatus,
    status_code=status.HTTP_200_OK,
    summary="Liveness probe",
    description="Always reports ok while the process is serving requests."
)
async def get_health() -> HealthStatus:
    """
    Liveness probe.

    Deliberately independent of adapter or session state.
    """
    logger.debug("Health check requested")
    return HealthStatus(status="ok")
