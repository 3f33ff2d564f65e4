"""Multipart streaming response backed by a capture session."""

from __future__ import annotations

import asyncio
import logging

from starlette.requests import ClientDisconnect
from starlette.responses import Response
from starlette.types import Receive, Scope, Send

from window_streamer.exceptions import ClientDisconnectedError
from window_streamer.models import RelayOutcome
from window_streamer.services.capture_manager import CaptureSession
from window_streamer.services.stream_relay import DEFAULT_CHUNK_SIZE, relay


logger = logging.getLogger(__name__)

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Connection": "close",
}


class ASGIStreamSink:
    """StreamSink over an ASGI ``send`` channel.

    ASGI servers hand each body message straight to the transport, so
    ``flush`` only yields to the event loop to let that write go out before
    the next read.
    """

    def __init__(self, send: Send) -> None:
        self._send = send
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Mark the peer as gone; later writes fail."""
        self._closed = True

    async def write(self, data: bytes) -> None:
        if self._closed:
            raise ClientDisconnectedError()
        try:
            await self._send({"type": "http.response.body", "body": data, "more_body": True})
        except (OSError, ClientDisconnect) as e:
            self._closed = True
            raise ClientDisconnectedError(f"Client disconnected: {e}") from e

    async def flush(self) -> None:
        if self._closed:
            raise ClientDisconnectedError()
        await asyncio.sleep(0)


async def _wait_for_disconnect(receive: Receive) -> None:
    while True:
        message = await receive()
        if message["type"] == "http.disconnect":
            return


class MJPEGStreamResponse(Response):
    """Streams a capture session's output as ``multipart/x-mixed-replace``.

    The session is stopped when the response finishes, however it finishes:
    encoder exit, client disconnect, or cancellation on server shutdown.

    Parameters
    ----------
    session : CaptureSession
        Running encoder; ownership passes to the response.
    media_type : str
        Full content type including the boundary parameter.
    chunk_size : int
        Maximum bytes per relay read.
    """

    def __init__(
        self,
        session: CaptureSession,
        media_type: str,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        self.session = session
        self.chunk_size = chunk_size
        self.status_code = 200
        self.media_type = media_type
        self.background = None
        self.outcome: RelayOutcome | None = None
        # No body attribute, so no Content-Length header
        self.init_headers(NO_CACHE_HEADERS)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        sink = ASGIStreamSink(send)

        async with self.session:
            try:
                await send(
                    {
                        "type": "http.response.start",
                        "status": self.status_code,
                        "headers": self.raw_headers,
                    }
                )
            except (OSError, ClientDisconnect) as e:
                logger.info("Client went away before the stream started: %s", e)
                self.outcome = RelayOutcome.CLIENT_DISCONNECTED
                return

            relay_task = asyncio.create_task(relay(self.session, sink, self.chunk_size))
            disconnect_task = asyncio.create_task(_wait_for_disconnect(receive))
            try:
                done, _ = await asyncio.wait(
                    {relay_task, disconnect_task},
                    return_when=asyncio.FIRST_COMPLETED,
                )
            finally:
                relay_task.cancel()
                disconnect_task.cancel()
                await asyncio.gather(relay_task, disconnect_task, return_exceptions=True)

            if relay_task in done and not relay_task.cancelled():
                self.outcome = relay_task.result()
            else:
                sink.close()
                self.outcome = RelayOutcome.CLIENT_DISCONNECTED

        logger.info("Stream from PID %d stopped: %s", self.session.pid, self.outcome.value)

        if not sink.closed:
            try:
                await send({"type": "http.response.body", "body": b"", "more_body": False})
            except (OSError, ClientDisconnect):
                pass
