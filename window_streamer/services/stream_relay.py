"""Byte relay from a capture session to an HTTP response.

The relay never parses the stream. ffmpeg's mpjpeg muxer already emits the
``--<boundary>`` delimited parts, so chunks are forwarded verbatim.
"""

from __future__ import annotations

import logging
from typing import Protocol

from window_streamer.exceptions import StreamError
from window_streamer.models import RelayOutcome
from window_streamer.services.capture_manager import CaptureSession

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024


class StreamSink(Protocol):
    """Where relayed bytes go.

    ``write`` and ``flush`` raise StreamError (or OSError) once the peer has
    disconnected.
    """

    @property
    def closed(self) -> bool: ...

    async def write(self, data: bytes) -> None: ...

    async def flush(self) -> None: ...


async def relay(
    session: CaptureSession,
    sink: StreamSink,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> RelayOutcome:
    """Copy encoder output to ``sink`` until either side goes away.

    Each chunk is flushed as soon as it is written so the browser sees every
    part when it is produced rather than in batches.

    Does not stop the session; callers run this inside ``async with session``.

    Parameters
    ----------
    session : CaptureSession
        Running encoder.
    sink : StreamSink
        Response body writer.
    chunk_size : int
        Maximum bytes per read.

    Returns
    -------
    RelayOutcome
        Why the loop ended.
    """
    total = 0
    while True:
        try:
            chunk = await session.read(chunk_size)
        except Exception as e:
            logger.error("Stream read error from PID %d: %s", session.pid, e)
            return RelayOutcome.UPSTREAM_ERROR

        if not chunk:
            logger.warning(
                "Capture process %d closed its output after %d bytes", session.pid, total
            )
            return RelayOutcome.UPSTREAM_CLOSED

        try:
            await sink.write(chunk)
            await sink.flush()
        except (StreamError, OSError) as e:
            logger.info("Stream write ended after %d bytes: %s", total, e)
            return RelayOutcome.CLIENT_DISCONNECTED

        total += len(chunk)
