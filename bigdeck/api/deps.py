"""
Shared API dependencies.
"""

from fastapi import HTTPException, Request, status

from bigdeck.services.pricing_service import PricingService


def get_pricing_service(request: Request) -> PricingService:
    """
    Dependency that provides the process-wide PricingService.

    The service is created by the application lifespan. Tests override this
    dependency with a service built over fake sources.
    """
    service: PricingService | None = getattr(request.app.state, "pricing_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Pricing service is not initialized",
        )
    return service
