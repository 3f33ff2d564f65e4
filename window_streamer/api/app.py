"""FastAPI application factory for the window streamer."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.concurrency import run_in_threadpool

from window_streamer import __version__
from window_streamer.api.dependencies import STATE_KEY, AppState
from window_streamer.api.routes import api_router
from window_streamer.api.viewer import render_viewer_page
from window_streamer.config import StreamerConfig
from window_streamer.services.capture_manager import CaptureProcessManager
from window_streamer.services.stream_service import StreamService
from window_streamer.services.window_query import WindowQueryProvider


logger = logging.getLogger(__name__)


def create_app(
    config: StreamerConfig,
    provider: WindowQueryProvider | None = None,
    capture_manager: CaptureProcessManager | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Parameters
    ----------
    config : StreamerConfig
        Streamer configuration, fixed for the app's lifetime.
    provider : WindowQueryProvider | None
        Window query backend override (X11 by default).
    capture_manager : CaptureProcessManager | None
        Encoder launcher override.

    Raises
    ------
    TemplateError
        If the viewer page cannot be rendered. There is nothing useful to
        serve without it, so this is fatal at startup.
    """
    viewer_html = render_viewer_page(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan events."""
        state = AppState(config=config, viewer_html=viewer_html)
        state.stream_service = StreamService(
            config, provider=provider, capture_manager=capture_manager
        )
        setattr(app.state, STATE_KEY, state)

        windows = await run_in_threadpool(state.stream_service.list_windows)
        if windows:
            logger.info("Available windows on %s:", config.display)
            for handle in windows:
                logger.info("   - %s", handle)
        else:
            logger.warning("No windows found on %s", config.display)

        logger.info("Streamer started on http://%s:%d", config.host, config.port)
        yield
        logger.info(
            "Streamer shutting down (%d active streams)", state.stream_service.active_count
        )

    app = FastAPI(
        title="Window Streamer",
        description="Stream a single X11 window to the browser as MJPEG",
        version=__version__,
        lifespan=lifespan,
    )
    app.include_router(api_router)

    return app
