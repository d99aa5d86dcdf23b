"""Konnect Backend - FastAPI Application Factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from app.api.health import router as health_router
from app.api.router import api_router
from app.core import PersistenceError, async_session_maker, engine, settings, setup_logging
from app.core.logging import get_logger
from app.middleware import RequestContextMiddleware, SecurityHeadersMiddleware
from app.services.token_reaper import TokenReaper

logger = get_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    setup_logging(
        level=settings.log_level,
        format_type="structured" if not settings.debug else "dev",
    )
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")

    for warning in settings.check_security_configuration():
        logger.warning(f"Security configuration: {warning}")

    reaper = TokenReaper(
        async_session_maker,
        interval_minutes=settings.token_cleanup_interval_minutes,
    )
    await reaper.start()
    app.state.token_reaper = reaper

    yield

    # Shutdown
    logger.info("Shutting down...")
    await reaper.stop()
    await engine.dispose()


async def persistence_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Map unhandled datastore failures to a generic 500."""
    logger.error(f"Datastore error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        description="Service catalog for organizations with JWT authentication",
        version=settings.app_version,
        lifespan=lifespan,
        # API schema is only published in debug mode
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
    )

    app.add_exception_handler(PersistenceError, persistence_error_handler)

    # Security headers middleware
    app.add_middleware(SecurityHeadersMiddleware)

    app.add_middleware(GZipMiddleware, minimum_size=1000)

    # Request ID + access log, outside the others so every response is tagged
    app.add_middleware(RequestContextMiddleware)

    # CORS middleware - MUST be outermost (added last in Starlette LIFO order)
    # so that CORS headers are present on ALL responses, including 401s.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=[
            "Authorization",
            "Content-Type",
            "Accept",
            "X-Request-ID",
        ],
        expose_headers=["X-Request-ID"],
    )

    # Prometheus metrics (before routers so /metrics endpoint is registered first)
    if settings.enable_metrics:
        from prometheus_fastapi_instrumentator import Instrumentator

        Instrumentator(
            excluded_handlers=["/", "/health", "/metrics"],
        ).instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)

    # Include routers
    app.include_router(health_router)  # Health at root level
    app.include_router(api_router)  # API at /v1

    # Root endpoint
    @app.get("/")
    async def root() -> dict[str, str]:
        """Liveness probe; does not touch the database."""
        return {"status": "UP"}

    return app


# Application instance
app = create_app()
