"""FastAPI application factory and configuration."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import socketio
import structlog
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from supportdesk import __version__
from supportdesk.api.routes import (
    agent_router,
    auth_router,
    chat_router,
    email_router,
    health_router,
    tenants_router,
)
from supportdesk.core.config import settings
from supportdesk.core.container import ServiceContainer, build_container
from supportdesk.core.exceptions import AppException
from supportdesk.core.logging import configure_logging
from supportdesk.services.seed import seed_demo_data
from supportdesk.storage.memory import InMemoryStorage

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    container: ServiceContainer = app.state.container
    config = container.settings

    # Startup
    logger.info(
        "Starting SupportDesk API",
        environment=config.app_env,
        debug=config.app_debug,
        storage=config.storage_backend,
    )

    await container.startup()

    # Seed demo data in development
    if config.is_development and isinstance(container.storage, InMemoryStorage):
        if await seed_demo_data(container):
            logger.info("Seeded demo data for development")

    yield

    # Shutdown
    logger.info("Shutting down SupportDesk API")
    await container.shutdown()


def create_app(container: ServiceContainer | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    container = container or build_container(settings)
    config = container.settings
    configure_logging(config)

    app = FastAPI(
        title="SupportDesk API",
        description="Multi-tenant customer support with real-time chat and AI replies",
        version=__version__,
        docs_url="/docs" if config.is_development else None,
        redoc_url="/redoc" if config.is_development else None,
        lifespan=lifespan,
    )
    app.state.container = container

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if config.is_development else config.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
        """Handle application-specific exceptions."""
        logger.warning(
            "Application exception",
            code=exc.code,
            message=exc.message,
            details=exc.details,
            path=request.url.path,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": exc.code,
                "message": exc.message,
                "details": exc.details,
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.error("Unhandled exception", error=str(exc), exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
            },
        )

    # Include routers
    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(tenants_router)
    app.include_router(chat_router)
    app.include_router(agent_router)
    app.include_router(email_router)

    # Root endpoint
    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint."""
        return {
            "service": "SupportDesk API",
            "version": __version__,
            "status": "running",
        }

    return app


def create_asgi_app(app: FastAPI) -> socketio.ASGIApp:
    """Mount the Socket.IO gateway in front of the HTTP application."""
    return socketio.ASGIApp(app.state.container.gateway.sio, other_asgi_app=app)


# Create default app instances
app = create_app()
asgi_app = create_asgi_app(app)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "supportdesk.api.main:asgi_app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.is_development,
    )
