"""Shortcode Registry - FastAPI application.

Serves batch shortening, redirects that record a click ledger, and the
active/expired listing over one in-process registry store.
"""

import logging
import sqlite3
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from .core.config import Settings, settings
from .services.registry import close_registry_service
from .api.routes import health_router, urls_router

logger = logging.getLogger(__name__)


def configure_logging(config: Settings) -> None:
    """Configure root logging from settings."""
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


async def storage_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Map backend I/O failures to 503."""
    logger.error(f"Registry storage error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=503,
        content={"detail": "Registry storage unavailable"},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={"detail": "Registry request failed"},
    )


def create_app(config: Settings = settings) -> FastAPI:
    """Create and configure the registry application.

    Args:
        config: Settings used for titles, logging and the startup banner.

    Returns:
        Configured FastAPI app.
    """
    configure_logging(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            f"Starting {config.app_title} with {config.storage_backend} storage "
            f"at {config.storage_path}"
        )
        yield
        logger.info(f"Shutting down {config.app_title}, flushing registry store")
        close_registry_service()

    app = FastAPI(
        title=config.app_title,
        description=config.app_description,
        version=config.app_version,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(OSError, storage_error_handler)
    app.add_exception_handler(sqlite3.Error, storage_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # Fixed routes first; /{shortcode} would shadow them otherwise
    app.include_router(health_router)
    app.include_router(urls_router)
    return app


app = create_app()
