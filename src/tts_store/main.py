"""
FastAPI Application Entry Point.

Usage:
    uvicorn tts_store.main:app --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError

from tts_store import __version__
from tts_store.api.routes import invalid_body_handler, misconfigured_handler, router
from tts_store.core.config import ConfigValidationError
from tts_store.core.logging import configure_logging


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    The conversion service itself is built lazily on the first request,
    so the app can start without AWS credentials (e.g. for /docs).
    """
    configure_logging()

    app = FastAPI(title="tts-store", version=__version__)
    app.include_router(router)
    app.add_exception_handler(RequestValidationError, invalid_body_handler)
    app.add_exception_handler(ConfigValidationError, misconfigured_handler)

    return app


# Global application instance for ASGI servers (uvicorn, gunicorn, etc.)
app = create_app()
