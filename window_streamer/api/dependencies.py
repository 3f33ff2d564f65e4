"""FastAPI dependency injection for the window streamer.

Configuration and services live in an AppState container attached to the
app during lifespan, instead of module-level globals.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from fastapi import Depends, Request

if TYPE_CHECKING:
    from window_streamer.config import StreamerConfig
    from window_streamer.services.stream_service import StreamService


@dataclass
class AppState:
    """Application state container for dependency injection."""

    config: StreamerConfig
    viewer_html: str
    stream_service: StreamService | None = None


# State key for FastAPI app.state
STATE_KEY = "window_streamer_state"


def get_app_state(request: Request) -> AppState:
    """Get application state from request."""
    state = getattr(request.app.state, STATE_KEY, None)
    if state is None:
        raise RuntimeError("Application state not initialized")
    return state


def get_config(state: AppState = Depends(get_app_state)) -> "StreamerConfig":
    """Get streamer configuration."""
    return state.config


def get_stream_service(state: AppState = Depends(get_app_state)) -> "StreamService":
    """Get stream service from application state."""
    if state.stream_service is None:
        raise RuntimeError("Stream service not initialized")
    return state.stream_service
