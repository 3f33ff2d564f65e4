"""
Custom exceptions for the window streamer.

Every per-request failure derives from StreamerError so the HTTP layer can
map the whole family to a server-error response in one place.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from window_streamer.models import WindowGeometry


class StreamerError(Exception):
    """Base exception for all streamer errors."""

    pass


class WindowQueryError(StreamerError):
    """Raised when a windowing-system query command fails."""

    def __init__(
        self,
        message: str,
        command: Sequence[str] | None = None,
        returncode: int | None = None,
        output: str = "",
    ):
        """
        Initialize WindowQueryError.

        Parameters
        ----------
        message : str
            Error message
        command : Sequence[str] | None
            Command line that was run
        returncode : int | None
            Exit status of the command, if it ran at all
        output : str
            Captured stdout/stderr text
        """
        self.command = list(command) if command else []
        self.returncode = returncode
        self.output = output

        full_message = message
        if self.command:
            full_message = f"{full_message} (command: {' '.join(self.command)})"
        if returncode is not None:
            full_message = f"{full_message} (exit status: {returncode})"

        super().__init__(full_message)


class WindowNotFoundError(StreamerError):
    """Raised when no visible window matches the configured filter."""

    def __init__(self, name_filter: str, reason: str | None = None):
        """
        Initialize WindowNotFoundError.

        Parameters
        ----------
        name_filter : str
            The window-name substring that was searched for
        reason : str | None
            Underlying cause when the query itself failed
        """
        self.name_filter = name_filter
        self.reason = reason

        full_message = f"No window matching '{name_filter}' found"
        if reason:
            full_message = f"{full_message} ({reason})"

        super().__init__(full_message)


class GeometryError(StreamerError):
    """Raised when a window exists but its geometry cannot be measured."""

    def __init__(
        self,
        message: str,
        window_id: str,
        geometry: WindowGeometry | None = None,
        output: str = "",
    ):
        """
        Initialize GeometryError.

        Parameters
        ----------
        message : str
            Error message
        window_id : str
            Identifier of the window that was queried
        geometry : WindowGeometry | None
            Geometry as parsed, when parsing got that far
        output : str
            Raw query output, kept for diagnostics
        """
        self.window_id = window_id
        self.geometry = geometry
        self.output = output

        full_message = f"{message} (window: {window_id})"
        if geometry is not None:
            full_message = f"{full_message} (parsed: {geometry})"

        super().__init__(full_message)


class LaunchError(StreamerError):
    """Raised when the capture process cannot be started."""

    def __init__(self, message: str, command: Sequence[str] | None = None):
        self.command = list(command) if command else []

        full_message = message
        if self.command:
            full_message = f"{full_message} (command: {' '.join(self.command)})"

        super().__init__(full_message)


class StreamError(StreamerError):
    """Raised on a read or write failure while a session is running."""

    pass


class ClientDisconnectedError(StreamError):
    """Raised when writing to a stream whose peer has gone away."""

    def __init__(self, message: str = "Client disconnected"):
        super().__init__(message)


class StreamLimitError(StreamerError):
    """Raised when the concurrent stream cap has been reached."""

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"Too many concurrent streams (limit: {limit})")


class TemplateError(StreamerError):
    """Raised when the viewer page template is missing or unparsable."""

    def __init__(self, message: str, path: str | None = None):
        self.path = path

        full_message = message
        if path:
            full_message = f"{full_message} (path: {path})"

        super().__init__(full_message)
