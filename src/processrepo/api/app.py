"""FastAPI application factory for the process repository."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from processrepo import __version__
from processrepo.api.deps import init_repository_service, reset_repository_service
from processrepo.api.middleware import RequestBodyLimitMiddleware, RequestTimingMiddleware
from processrepo.api.routers import definitions, deployments
from processrepo.api.schemas import HealthResponse
from processrepo.service.repository import create_repository_service
from processrepo.settings import Settings


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Create the RepositoryService alongside the application."""
    settings: Settings = app.state.settings
    init_repository_service(create_repository_service(settings))
    try:
        yield
    finally:
        reset_repository_service()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    if settings is None:
        settings = Settings()

    app = FastAPI(
        title="Process Repository",
        description="Admits process deployments with duplicate filtering and versioning.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings

    # Middleware
    app.add_middleware(RequestTimingMiddleware)
    app.add_middleware(
        RequestBodyLimitMiddleware,
        deployment_limit_mb=settings.max_deployment_upload_mb,
        default_limit_mb=settings.max_request_body_mb,
    )

    app.include_router(deployments.router, prefix="/deployments", tags=["deployments"])
    app.include_router(
        definitions.definitions_router,
        prefix="/process-definitions",
        tags=["process-definitions"],
    )
    app.include_router(definitions.jobs_router, prefix="/jobs", tags=["jobs"])

    @app.get("/health", response_model=HealthResponse, tags=["health"])
    async def health() -> HealthResponse:
        return HealthResponse(status="ok", version=__version__)

    return app


def main() -> None:
    """Run the REST API server using settings from environment / .env file."""
    settings = Settings()

    logging.basicConfig(level=settings.log_level.upper())
    logger = logging.getLogger("processrepo.api")
    logger.info(
        "Process Repository API v%s starting (host=%s, port=%d)",
        __version__, settings.api_server_host, settings.api_server_port,
    )

    uvicorn.run(
        "processrepo.api.app:create_app",
        factory=True,
        host=settings.api_server_host,
        port=settings.api_server_port,
        log_level=settings.log_level.lower(),
    )
