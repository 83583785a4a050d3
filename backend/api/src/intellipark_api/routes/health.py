"""Health check endpoints.

Served at ``/`` for container probes and at ``/api/ping`` to match the
``/api/*`` routing used in front of the service.
"""

from fastapi import APIRouter

from intellipark.utils.clock import now_millis
from intellipark_api.models.common import HealthResponse

SERVICE_NAME = "intellipark-backend"

router = APIRouter(tags=["health"])


@router.get("/", response_model=HealthResponse, summary="Service health")
@router.get("/api/ping", response_model=HealthResponse, summary="Service health")
async def ping() -> HealthResponse:
    return HealthResponse(ok=True, service=SERVICE_NAME, time=now_millis())
