from contextlib import asynccontextmanager
from typing import Callable

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import structlog
import time
import uvicorn

from campaign_catalog.core.config import get_settings
from campaign_catalog.core.logging import configure_logging
from campaign_catalog.api.catalog import router as catalog_router
from campaign_catalog.api.admin import router as admin_router
from campaign_catalog.middleware.tracing import init_tracing
from campaign_catalog.middleware.metrics import MetricsMiddleware, metrics_endpoint
from campaign_catalog.middleware.logging import logging_middleware
from campaign_catalog.services.gateway import CampaignGateway
from campaign_catalog.services.store import CampaignStore

settings = get_settings()
configure_logging(settings.log_level, settings.debug)
logger = structlog.get_logger(__name__)

StoreFactory = Callable[[], CampaignStore]


def default_store_factory() -> CampaignStore:
    return CampaignStore(CampaignGateway())


def create_app(store_factory: StoreFactory = default_store_factory) -> FastAPI:
    """Build the catalog application; one store lives for the whole lifespan"""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting Campaign Catalog", service_name=settings.service_name, backend=settings.api_base_url)
        app.state.store = store_factory()
        try:
            yield
        finally:
            logger.info("Shutting down Campaign Catalog")
            await app.state.store.close()

    app = FastAPI(
        title=settings.app_name,
        description="Campaign catalog and admin views over the charity campaign backend",
        version="1.0.0",
        debug=settings.debug,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    init_tracing(app)

    app.add_middleware(MetricsMiddleware)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Logging middleware with trace correlation"""
        return await logging_middleware(request, call_next)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Global exception handler"""
        logger.error(
            "Unhandled exception",
            error=str(exc),
            method=request.method,
            url=str(request.url)
        )
        return JSONResponse(
            status_code=500,
            content={
                "message": "Internal server error",
                "detail": "An unexpected error occurred"
            }
        )

    @app.get("/health")
    async def health_check(request: Request):
        """Basic health check with store state"""
        store: CampaignStore = request.app.state.store
        return {
            "status": "healthy",
            "service": settings.service_name,
            "timestamp": time.time(),
            "cached_campaigns": len(store.campaigns),
            "loading": store.loading,
            "last_error": store.error,
        }

    @app.get("/metrics")
    async def metrics(request: Request):
        """Prometheus metrics endpoint"""
        return await metrics_endpoint(request)

    app.include_router(catalog_router)
    app.include_router(admin_router)
    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "campaign_catalog.main:app",
        host="0.0.0.0",
        port=8010,
        reload=settings.debug,
        log_level="info" if not settings.debug else "debug"
    )
