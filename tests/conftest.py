"""Pytest configuration and shared fixtures."""

import shutil
import sys
import tempfile
import textwrap
from pathlib import Path

import pytest

from window_streamer.config import StreamerConfig
from window_streamer.exceptions import ClientDisconnectedError
from window_streamer.models import WindowGeometry, WindowHandle
from window_streamer.services.capture_manager import CaptureProcessManager
from window_streamer.services.window_query import StaticWindowQuery


BOUNDARY_PART = b"--ffmpeg\r\nContent-Type: image/jpeg\r\nContent-Length: 4\r\n\r\nJPEG\r\n"

# Stand-ins for ffmpeg: emit mpjpeg-shaped parts on stdout and progress on stderr
ENDLESS_ENCODER = textwrap.dedent(
    """
    import sys, time
    sys.stderr.write("frame=1 fps=60\\rframe=2 fps=60\\n")
    sys.stderr.flush()
    part = %r
    while True:
        sys.stdout.buffer.write(part)
        sys.stdout.buffer.flush()
        time.sleep(0.01)
    """
) % BOUNDARY_PART

FINITE_ENCODER = textwrap.dedent(
    """
    import sys
    sys.stderr.write("Input #0, x11grab\\n")
    sys.stderr.flush()
    part = %r
    for _ in range(3):
        sys.stdout.buffer.write(part)
    sys.stdout.buffer.flush()
    """
) % BOUNDARY_PART


class FakeCaptureManager(CaptureProcessManager):
    """Capture manager that runs a Python script instead of ffmpeg.

    Records every launch so tests can assert on geometry, display and the
    ffmpeg command that would have been used.
    """

    def __init__(self, script: str, stop_timeout: float = 5.0) -> None:
        super().__init__(stop_timeout=stop_timeout)
        self.script = script
        self.launches: list[dict] = []

    def build_command(self, geometry, display):
        self.launches.append(
            {
                "geometry": geometry,
                "display": display,
                "ffmpeg_command": super().build_command(geometry, display),
            }
        )
        return [sys.executable, "-c", self.script]


class RecordingSink:
    """In-memory StreamSink.

    Parameters
    ----------
    fail_after : int | None
        Raise ClientDisconnectedError once this many chunks were written.
    """

    def __init__(self, fail_after: int | None = None) -> None:
        self.chunks: list[bytes] = []
        self.flushes = 0
        self.fail_after = fail_after
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def data(self) -> bytes:
        return b"".join(self.chunks)

    async def write(self, data: bytes) -> None:
        if self.fail_after is not None and len(self.chunks) >= self.fail_after:
            self._closed = True
            raise ClientDisconnectedError()
        self.chunks.append(data)

    async def flush(self) -> None:
        self.flushes += 1


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def firefox_geometry():
    """Geometry of a typical browser window."""
    return WindowGeometry(x=100, y=50, width=1280, height=720)


@pytest.fixture
def firefox_provider(firefox_geometry):
    """Provider exposing one visible Firefox window."""
    return StaticWindowQuery(
        [
            (WindowHandle("0x1a00003", "Mozilla Firefox"), firefox_geometry),
        ]
    )


@pytest.fixture
def config():
    """Default configuration streaming Firefox."""
    return StreamerConfig(window_name="Firefox")


@pytest.fixture
def make_sink():
    """Factory for in-memory sinks: ``make_sink(fail_after=3)``."""
    return RecordingSink


@pytest.fixture
def boundary_part():
    """One multipart part as emitted by the fake encoders."""
    return BOUNDARY_PART


@pytest.fixture
def finite_capture():
    """Capture manager whose encoder emits three parts and exits."""
    return FakeCaptureManager(FINITE_ENCODER)


@pytest.fixture
def endless_capture():
    """Capture manager whose encoder streams until killed."""
    return FakeCaptureManager(ENDLESS_ENCODER)


@pytest.fixture
def endless_encoder_script():
    """Source of the endless fake encoder, for servers run in a subprocess."""
    return ENDLESS_ENCODER
