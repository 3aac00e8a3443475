"""
LocalGSM Application Factory.

Builds the FastAPI application: one secret store per application, the
Secret Manager router, health probes, middleware and exception handlers.

Author: LocalGSM Team
Date: 2026-10-19
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request, Response, status
from starlette.middleware.cors import CORSMiddleware

from localgsm import __version__
from localgsm.core.config_manager import LocalGSMConfig, StorageConfig
from localgsm.gateway.middleware import MockAuthMiddleware, RequestLoggingMiddleware
from localgsm.services.secretmanager.backend import SecretManagerBackend
from localgsm.services.secretmanager.error_handlers import register_exception_handlers
from localgsm.services.secretmanager.exceptions import PersistenceError
from localgsm.services.secretmanager.models import HealthResponse
from localgsm.services.secretmanager.persistence import PersistentSecretManagerBackend
from localgsm.services.secretmanager.routes import create_router

logger = logging.getLogger(__name__)


def create_backend(storage: StorageConfig) -> SecretManagerBackend:
    """
    Create the secret store described by the storage configuration.

    Args:
        storage: Storage configuration

    Returns:
        Persistent backend when a file path is configured, in-memory otherwise
    """
    if storage.file_path:
        return PersistentSecretManagerBackend(storage.file_path, pretty_json=storage.pretty_json)
    return SecretManagerBackend()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Restore the snapshot on startup and write a final one on shutdown."""
    backend: SecretManagerBackend = app.state.backend

    if isinstance(backend, PersistentSecretManagerBackend):
        logger.info(f"Loading storage file: {backend.file_path}")
        try:
            backend.load()
            logger.info(f"Storage loaded: {backend.health()['secrets']} secrets")
        except PersistenceError as e:
            # Start with an empty store
            logger.warning(f"Failed to load existing storage, starting empty: {e}")

    yield

    try:
        backend.close()
        logger.info("Secret store closed")
    except PersistenceError as e:
        logger.error(f"Failed to close storage: {e}")


def create_app(
    config: Optional[LocalGSMConfig] = None,
    backend: Optional[SecretManagerBackend] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        config: Configuration (defaults when omitted)
        backend: Store to serve (built from config.storage when omitted)

    Returns:
        Configured FastAPI application
    """
    config = config or LocalGSMConfig()
    backend = backend or create_backend(config.storage)

    app = FastAPI(
        title="LocalGSM",
        description="Local Google Secret Manager Emulator",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.backend = backend
    app.state.config = config

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health() -> HealthResponse:
        """Liveness probe."""
        return HealthResponse(status="OK", timestamp=datetime.now(timezone.utc), version=__version__)

    @app.get("/ready", response_model=HealthResponse, tags=["Health"])
    async def ready() -> HealthResponse:
        """Readiness probe."""
        return HealthResponse(status="READY", timestamp=datetime.now(timezone.utc), version=__version__)

    @app.get("/_health", tags=["Health"])
    def store_health(request: Request) -> dict:
        """Store statistics."""
        return request.app.state.backend.health()

    @app.post("/_reset", status_code=status.HTTP_204_NO_CONTENT, tags=["Testing"])
    def reset(request: Request) -> Response:
        """Reset all data (testing only)."""
        request.app.state.backend.reset()
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    app.include_router(
        create_router(
            backend,
            default_page_size=config.pagination.default_page_size,
            max_page_size=config.pagination.max_page_size,
        )
    )

    # Last added runs first: logging wraps CORS, which wraps auth
    app.add_middleware(MockAuthMiddleware, enabled=config.auth.enabled)
    if config.cors.enabled:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            allow_headers=["*"],
            expose_headers=["x-correlation-id"],
        )
    app.add_middleware(RequestLoggingMiddleware)

    register_exception_handlers(app)

    return app
