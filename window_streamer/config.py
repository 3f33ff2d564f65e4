"""Configuration dataclasses for the window streamer."""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StreamerConfig:
    """Main streamer configuration.

    Built once at startup and passed to the app factory; read-only afterwards.

    Parameters
    ----------
    window_name : str
        Substring of the window title to stream ("" = first visible window).
    display : str
        X display the target window lives on.
    host : str
        Host to bind the HTTP server.
    port : int
        Port for the HTTP server.
    framerate : int
        Capture frame rate passed to the encoder.
    ffmpeg_path : str
        Encoder executable (name on PATH or absolute path).
    boundary : str
        Multipart boundary token. Must match what the mpjpeg muxer emits.
    chunk_size : int
        Maximum bytes read from the encoder per relay iteration.
    query_timeout : float
        Timeout in seconds for each xdotool/xwininfo call.
    stop_timeout : float
        Timeout in seconds to wait for a killed encoder to be reaped.
    shutdown_timeout : float
        Seconds the server waits for open streams on shutdown before
        cancelling them.
    max_streams : int
        Maximum number of concurrent streams (0 = unlimited).
    template_path : Path | None
        Viewer page template override (None = packaged template).
    """

    window_name: str = ""
    display: str = ":99"
    host: str = "0.0.0.0"  # Bind to all interfaces
    port: int = 8181
    framerate: int = 60
    ffmpeg_path: str = "ffmpeg"
    boundary: str = "ffmpeg"  # ffmpeg's mpjpeg muxer default
    chunk_size: int = 64 * 1024
    query_timeout: float = 5.0
    stop_timeout: float = 5.0
    shutdown_timeout: float = 5.0
    max_streams: int = 0
    template_path: Path | None = None

    @property
    def media_type(self) -> str:
        """Content type of the stream endpoint."""
        return f"multipart/x-mixed-replace; boundary={self.boundary}"

    def validate(self) -> None:
        """Validate configuration values.

        Raises
        ------
        ValueError
            If configuration is invalid.
        """
        if self.port < 1 or self.port > 65535:
            msg = f"Invalid port: {self.port}"
            raise ValueError(msg)

        if self.framerate <= 0:
            msg = f"framerate must be positive, got {self.framerate}"
            raise ValueError(msg)

        if self.chunk_size <= 0:
            msg = f"chunk_size must be positive, got {self.chunk_size}"
            raise ValueError(msg)

        if self.shutdown_timeout < 0:
            msg = f"shutdown_timeout must be >= 0, got {self.shutdown_timeout}"
            raise ValueError(msg)

        if self.max_streams < 0:
            msg = f"max_streams must be >= 0, got {self.max_streams}"
            raise ValueError(msg)

        if not self.boundary or any(c.isspace() for c in self.boundary):
            msg = f"Invalid multipart boundary: {self.boundary!r}"
            raise ValueError(msg)

        if not self.display.startswith(":"):
            msg = f"Display must look like ':99', got {self.display!r}"
            raise ValueError(msg)

        if shutil.which(self.ffmpeg_path) is None:
            logger.warning(
                "Encoder not found at %s - streams will fail to start",
                self.ffmpeg_path,
            )
