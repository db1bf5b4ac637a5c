from fastapi import APIRouter, Response, status

from querygate_api.dependencies import HealthSvc
from querygate_api.models.response import SuccessResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=SuccessResponse)
async def liveness(service: HealthSvc):
    return service.liveness()


@router.get("/ready", response_model=SuccessResponse)
async def readiness(service: HealthSvc, response: Response):
    """Answers 503 until at least one connection is active."""
    report = service.readiness()
    if not report.success:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return report
