"""
Bitmap OCI Server Application Entry Point

This module defines the FastAPI application instance, registers all routers,
configures global exception handling, and provides a test-friendly application
factory.

Design Goals
------------
- One shared HTTP connection pool per process, closed on shutdown
- Service graph built once per lifespan and injected through dependencies
- Centralized router registration
- Global exception safety net
- Test-friendly via create_app()
"""

from __future__ import annotations

import contextlib
import logging
from typing import AsyncIterator

import httpx
from fastapi import FastAPI

from .config import settings
from .core.errors import (
    BitmapRangeError,
    IndexDecodeError,
    RemoteLookupError,
    bitmap_range_error_handler,
    remote_lookup_error_handler,
    unhandled_exception_handler,
)
from .api.dependencies import build_services

from .api import (
    health_routes,
    bitmap_routes,
    validation_routes,
    inscription_routes,
)


logger = logging.getLogger("bitmap.app")


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Build the service graph on startup and release the connection pool on
    shutdown.
    """
    logger.info(
        "Starting bitmap-oci-server against %s", settings.ordinals_base_url
    )
    http_client = httpx.AsyncClient(timeout=settings.request_timeout)
    app.state.services = build_services(http_client)
    try:
        yield
    finally:
        logger.info("Shutting down bitmap-oci-server")
        await http_client.aclose()


# ---------------------------------------------------------------------
# Application Factory (Test-Friendly)
# ---------------------------------------------------------------------

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    This factory pattern allows:
    - Clean test instantiation
    - Isolated app instances for integration tests
    - Controlled dependency overrides in pytest

    Returns
    -------
    FastAPI
        Fully configured FastAPI application.
    """
    app = FastAPI(
        title="bitmap-oci-server",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # --------------------------------------------------------------
    # Global Exception Handling
    # --------------------------------------------------------------

    app.add_exception_handler(BitmapRangeError, bitmap_range_error_handler)
    app.add_exception_handler(RemoteLookupError, remote_lookup_error_handler)
    app.add_exception_handler(IndexDecodeError, remote_lookup_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # --------------------------------------------------------------
    # Router Registration
    # --------------------------------------------------------------

    app.include_router(health_routes.router)
    app.include_router(bitmap_routes.router)
    app.include_router(validation_routes.router)
    app.include_router(inscription_routes.router)

    return app


# ---------------------------------------------------------------------
# Default Application Instance (for Uvicorn/Gunicorn)
# ---------------------------------------------------------------------

app = create_app()
