from contextlib import asynccontextmanager

from fastapi import FastAPI
from loguru import logger

from berkomunitas_api.core.settings import settings
from berkomunitas_api.db.session import engine
from berkomunitas_api.domain.rewards import get_privilege_hierarchy
from .api.routes import api_router
from .core.logging import configure_logging
from .observability.tracing import configure_tracing


APP_VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    hierarchy = get_privilege_hierarchy()
    app.state.privilege_hierarchy = hierarchy
    logger.info(
        "Rewards engine started",
        privilege_hierarchy=list(hierarchy.labels),
        max_quantity=settings.redemption_max_quantity,
        notifications_enabled=settings.notifications_enabled,
    )
    try:
        yield
    finally:
        await engine.dispose()
        logger.info("Rewards engine stopped")


def create_app() -> FastAPI:
    """Application factory for the Berkomunitas rewards API."""
    configure_logging(
        service_name="berkomunitas-api",
        environment=settings.environment,
        version=APP_VERSION,
        level=settings.log_level,
        json_output=settings.log_json,
    )

    app = FastAPI(
        title="Berkomunitas Rewards API",
        version=APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    configure_tracing(
        app,
        service_name="berkomunitas-api",
        service_version=APP_VERSION,
        environment=settings.environment,
    )

    app.include_router(api_router)

    @app.get("/healthz", tags=["Health"])
    async def health_check() -> dict[str, str]:
        return {
            "status": "ok",
            "environment": settings.environment,
            "version": APP_VERSION,
        }

    return app
