"""
FastAPI Application Entry Point.

Routers:
    - Lessons: /v1/catalog, /v1/lessons, /v1/lessons/view, /v1/lessons/grade,
      /health, /metrics
    - Speech: /v1/speech/voices, /v1/speech/plan, /v1/speech/stream

Usage:
    uvicorn eigo_ms.main:app --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

from fastapi import FastAPI

from eigo_ms import __version__
from eigo_ms.api.routes import router
from eigo_ms.api.speech_routes import router as speech_router
from eigo_ms.core.logging import configure_logging


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Logging is configured first (EIGO_MS_LOG_LEVEL, settings.yaml). The
    content provider and speech backend are created lazily on first use,
    so startup never needs network access or an API key.
    """
    configure_logging()

    app = FastAPI(title="eigo-ms", version=__version__)

    app.include_router(router)
    app.include_router(speech_router)

    return app


# Global application instance for ASGI servers (uvicorn, gunicorn, etc.)
app = create_app()
