"""Window Streamer - stream one X11 window to the browser as MJPEG."""

__version__ = "0.1.0"

from window_streamer.api.app import create_app  # noqa: E402
from window_streamer.config import StreamerConfig  # noqa: E402
from window_streamer.models import RelayOutcome, WindowGeometry, WindowHandle  # noqa: E402


__all__ = [
    "RelayOutcome",
    "StreamerConfig",
    "WindowGeometry",
    "WindowHandle",
    "__version__",
    "create_app",
]
