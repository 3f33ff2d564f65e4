"""Services module for capture and relay logic."""

from window_streamer.services.capture_manager import CaptureProcessManager, CaptureSession
from window_streamer.services.geometry_resolver import GeometryResolver
from window_streamer.services.stream_relay import StreamSink, relay
from window_streamer.services.stream_service import StreamService
from window_streamer.services.window_locator import WindowLocator
from window_streamer.services.window_query import (
    StaticWindowQuery,
    WindowQueryProvider,
    X11WindowQuery,
)


__all__ = [
    "CaptureProcessManager",
    "CaptureSession",
    "GeometryResolver",
    "StaticWindowQuery",
    "StreamService",
    "StreamSink",
    "WindowLocator",
    "WindowQueryProvider",
    "X11WindowQuery",
    "relay",
]
