"""
FastAPI application factory for the text detector status server.

Routes:
- /api/status -> run progress
- /api/detections/* -> retained detections and their annotated frames
"""

from __future__ import annotations

from fastapi import FastAPI

from .routes import api


def create_app() -> FastAPI:
    """Create the FastAPI app and wire routes."""
    app = FastAPI(
        title="Video Text Detector",
        version="0.1.0",
        description="Read-only status of a video text detection run",
    )
    app.include_router(api.router, prefix="/api")
    return app
