"""Entry point for the Dial a Service API.

Starts the FastAPI application with Uvicorn.  Host and port are read
from the environment variables ``HOST`` and ``PORT`` (defaults
``0.0.0.0`` and ``8000``); all other configuration comes from the
variables documented in ``dial_a_service.app.core.config``.

Usage:
    python run.py
"""
import asyncio
import logging
import os

from uvicorn import Config, Server

from dial_a_service.app.main import app


async def run_api() -> None:
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))
    config = Config(app=app, host=host, port=port, reload=False, log_level=os.getenv("LOG_LEVEL", "info").lower())
    server = Server(config)
    await server.serve()


if __name__ == "__main__":
    try:
        asyncio.run(run_api())
    except KeyboardInterrupt:
        logging.getLogger(__name__).info("Shutting down")
