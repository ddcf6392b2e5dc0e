"""
FastAPI application factory for the live detector.

Routes:
- /api/* -> REST API (models, selection, thresholds, stats, detections, health)
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pipeline.session import SessionController
from storage.repository import ModelRepository
from .routes import api


def create_app(session: SessionController, repository: ModelRepository) -> FastAPI:
    """Create the FastAPI app bound to a running session and its repository."""
    app = FastAPI(
        title="Live Detector",
        version="0.1.0",
        description="Live object detection with swappable Darknet models",
    )

    # CORS for local dashboards
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://127.0.0.1:5173"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.session = session
    app.state.repository = repository

    app.include_router(api.router, prefix="/api")

    return app
