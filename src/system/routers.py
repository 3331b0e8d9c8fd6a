from fastapi import APIRouter, Depends

from src.core.utils.datetime_utils import get_utc_now
from src.system.dependencies import get_health_service
from src.system.schemas import HealthCheckResponse, ServerTimeResponse
from src.system.services import HealthService

router = APIRouter()


@router.get("/health/", response_model=HealthCheckResponse)
@router.head("/health/", response_model=HealthCheckResponse, include_in_schema=False)
async def check_health(
    health_service: HealthService = Depends(get_health_service),
) -> HealthCheckResponse:
    """Health check endpoint that verifies the service and its registry backend."""
    return await health_service.get_status()


@router.get("/time/", response_model=ServerTimeResponse)
def get_utc_time() -> ServerTimeResponse:
    """Current server UTC time; clients use it to correct countdown skew."""
    return ServerTimeResponse(time=get_utc_now().replace(microsecond=0))
