"""
Main entrypoint for the Dial a Service API.

This module assembles the FastAPI application, sets up logging and
includes the versioned routers.  ``create_app`` builds and configures
the app, which is then instantiated at import time as ``app``, so it
can be served with uvicorn::

    uvicorn dial_a_service.app.main:app --reload

Uploaded files are served from ``/storage/{bucket}/{path}`` outside the
versioned API so their URLs stay stable across API versions.
"""

from fastapi import FastAPI

from .api.v1.endpoints import storage
from .api.v1.router import router as v1_router
from .core.config import settings
from .core.db import init_db
from .core.logging_config import setup_logging


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

    app.include_router(v1_router, prefix="/api/v1")
    app.include_router(storage.router, tags=["storage"])

    @app.on_event("startup")
    async def startup_event() -> None:
        # Creates the database file if needed and applies pending migrations.
        init_db()

    return app


app = create_app()
