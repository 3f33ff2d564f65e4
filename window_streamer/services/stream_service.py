"""Stream service - runs the locate, resolve, launch pipeline per request."""

from __future__ import annotations

import logging

from fastapi.concurrency import run_in_threadpool

from window_streamer.config import StreamerConfig
from window_streamer.exceptions import StreamLimitError
from window_streamer.models import WindowHandle
from window_streamer.services.capture_manager import CaptureProcessManager, CaptureSession
from window_streamer.services.geometry_resolver import GeometryResolver
from window_streamer.services.window_locator import WindowLocator
from window_streamer.services.window_query import WindowQueryProvider, X11WindowQuery

logger = logging.getLogger(__name__)


class StreamService:
    """Opens capture sessions for the configured window.

    Holds no per-stream state beyond an active-stream counter; every call to
    open_session locates, measures and launches from scratch.

    Parameters
    ----------
    config : StreamerConfig
        Streamer configuration.
    provider : WindowQueryProvider | None
        Window query backend (defaults to X11 on ``config.display``).
    capture_manager : CaptureProcessManager | None
        Encoder launcher (defaults to one built from ``config``).
    """

    def __init__(
        self,
        config: StreamerConfig,
        provider: WindowQueryProvider | None = None,
        capture_manager: CaptureProcessManager | None = None,
    ) -> None:
        self.config = config
        self.provider = provider or X11WindowQuery(config.display, timeout=config.query_timeout)
        self.locator = WindowLocator(self.provider)
        self.resolver = GeometryResolver(self.provider)
        self.capture_manager = capture_manager or CaptureProcessManager.from_config(config)
        self._active = 0

    @property
    def active_count(self) -> int:
        """Number of sessions opened and not yet stopped."""
        return self._active

    def _reserve_slot(self) -> None:
        limit = self.config.max_streams
        if limit and self._active >= limit:
            raise StreamLimitError(limit)
        self._active += 1

    def _release_slot(self) -> None:
        self._active = max(0, self._active - 1)

    async def open_session(self) -> CaptureSession:
        """Locate the window, measure it and start an encoder for it.

        Window queries block on external commands, so they run in the
        threadpool.

        Returns
        -------
        CaptureSession
            Running session owned by the caller.

        Raises
        ------
        StreamLimitError
            If ``max_streams`` sessions are already active.
        WindowNotFoundError
            If no window matches.
        GeometryError
            If the window can't be measured.
        LaunchError
            If the encoder can't be started.
        """
        self._reserve_slot()
        try:
            handle = await run_in_threadpool(self.locator.locate, self.config.window_name)
            geometry = await run_in_threadpool(self.resolver.resolve, handle)
            session = await self.capture_manager.start(geometry, self.config.display)
        except BaseException:
            self._release_slot()
            raise

        session.add_stop_callback(self._release_slot)
        logger.info("Streaming window %s at %s (PID %d)", handle, geometry, session.pid)
        return session

    def list_windows(self) -> list[WindowHandle]:
        """List visible windows for diagnostics."""
        return self.locator.list_all()
