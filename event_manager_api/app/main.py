"""
Main entrypoint for the Event Manager API.

This module assembles the FastAPI application, sets up logging,
registers the error handler for service exceptions and includes the
versioned routers.  ``create_app`` builds and configures the app,
which is then instantiated at module import time as ``app``::

    uvicorn event_manager_api.app.main:app --reload
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .api.v1.router import router as v1_router
from .core.config import settings
from .core.db import init_db
from .core.exceptions import ServiceError
from .core.logging_config import setup_logging


logger = logging.getLogger(__name__)


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Render a ``ServiceError`` as ``{"message": ...}`` with its status code."""
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def create_app() -> FastAPI:
    """Create and configure a FastAPI application.

    Returns
    -------
    FastAPI
        A configured FastAPI application instance.
    """
    # Logging first so that everything below can log.
    setup_logging(settings.log_level, settings.log_file or None)

    app = FastAPI(title=settings.project_name, version=settings.api_version, debug=settings.debug)
    app.add_exception_handler(ServiceError, service_error_handler)
    app.include_router(v1_router, prefix="/api")

    @app.on_event("startup")
    async def startup_event() -> None:
        # Creates the database file if needed and applies migrations.
        init_db()

    return app


app = create_app()
