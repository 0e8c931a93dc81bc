"""
FastAPI application factory.

Creates and configures the main application instance.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.middleware import ErrorHandlerMiddleware, LoggingMiddleware
from src.api.middleware.error_handler import setup_exception_handlers
from src.api.routes import (
    checkin_router,
    checkout_router,
    dashboard_router,
    health_router,
    lots_router,
    transactions_router,
    units_router,
)
from src.config import configure_logging, get_logger, get_settings

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Application lifespan handler.

    Initializes resources on startup and cleans up on shutdown.
    """
    settings = get_settings()

    logger.info(
        "application_starting",
        host=settings.api.host,
        port=settings.api.port,
        debug=settings.api.debug,
    )

    from src.infrastructure.storage.sqlite import (
        close_connection_pool,
        get_connection_pool,
    )
    from src.infrastructure.storage.sqlite.migrations.migrator import run_migrations

    # Run migrations
    results = await run_migrations()
    if any(not r.success for r in results):
        failed = [r.version for r in results if not r.success]
        logger.error("database_init_failed", failed_migrations=failed)
        raise RuntimeError(f"Database migrations failed: {failed}")
    logger.info("database_initialized", applied=len(results))

    # Initialize connection pool
    await get_connection_pool()
    logger.info("connection_pool_ready")

    logger.info("application_started")

    yield

    # Shutdown
    logger.info("application_stopping")
    await close_connection_pool()
    logger.info("application_stopped")


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application.

    Returns:
        Configured FastAPI instance
    """
    settings = get_settings()
    configure_logging()

    app = FastAPI(
        title="MedTrack Inventory API",
        description="Medication check-in, FEFO check-out and audit log",
        version=settings.app_version,
        docs_url="/docs" if settings.api.debug else None,
        redoc_url="/redoc" if settings.api.debug else None,
        lifespan=lifespan,
    )

    # Add middleware
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(ErrorHandlerMiddleware)

    # CORS
    if settings.api.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.api.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    # Setup exception handlers
    setup_exception_handlers(app)

    # Register routers
    app.include_router(health_router)
    app.include_router(checkout_router)
    app.include_router(checkin_router)
    app.include_router(lots_router)
    app.include_router(units_router)
    app.include_router(transactions_router)
    app.include_router(dashboard_router)

    # Root health endpoint (for k8s/docker health checks)
    @app.get("/health")
    async def root_health() -> dict[str, str]:
        """Simple health check at root level."""
        return {
            "status": "healthy",
            "version": settings.app_version,
        }

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "src.api.main:app",
        host=settings.api.host,
        port=settings.api.port,
        reload=settings.api.debug,
    )
