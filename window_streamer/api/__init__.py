"""API module for the FastAPI app and routes."""

from window_streamer.api.app import create_app
from window_streamer.api.routes import api_router


__all__ = [
    "api_router",
    "create_app",
]
