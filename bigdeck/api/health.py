"""
Health check endpoints.

Provides liveness and readiness checks.
"""

from fastapi import APIRouter, Request, Response, status
from pydantic import BaseModel

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    pricing: str | None = None


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """
    Liveness check.

    Returns healthy if the service is running.
    Does not check dependencies.
    """
    return HealthResponse(status="healthy")


@router.get(
    "/ready",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse}},
)
async def ready(request: Request, response: Response) -> HealthResponse:
    """
    Readiness check.

    Returns ready once the pricing service has been created by the
    application lifespan, 503 before that. External price sources are not
    contacted.
    """
    if getattr(request.app.state, "pricing_service", None) is None:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthResponse(status="not ready", pricing="uninitialized")
    return HealthResponse(status="ready", pricing="initialized")
