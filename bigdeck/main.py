from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import version as pkg_version

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from bigdeck.api import health_router, prices_router
from bigdeck.config import settings
from bigdeck.services.pricing_service import PricingService


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    service = PricingService.from_settings()
    app.state.pricing_service = service
    try:
        yield
    finally:
        app.state.pricing_service = None
        await service.aclose()


app = FastAPI(
    title=settings.app_name,
    version=pkg_version("bigdeck"),
    lifespan=lifespan,
)

app.include_router(health_router)
app.include_router(prices_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Tighten in production
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)
