"""Domain models for window streaming."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


@dataclass(frozen=True)
class WindowHandle:
    """An identified on-screen window.

    Parameters
    ----------
    window_id : str
        Opaque identifier used by the windowing system (e.g. ``"41943043"``).
    name : str
        Window title as reported at lookup time.
    """

    window_id: str
    name: str = ""

    def __str__(self) -> str:
        if self.name:
            return f"[{self.window_id}] {self.name}"
        return f"[{self.window_id}]"


@dataclass(frozen=True)
class WindowGeometry:
    """Absolute screen rectangle of a window, in pixels.

    ``output`` keeps the query text the rectangle was parsed from, for
    diagnostics. It takes no part in equality.
    """

    x: int = 0
    y: int = 0
    width: int = 0
    height: int = 0
    output: str = field(default="", compare=False, repr=False)

    @property
    def size(self) -> str:
        """Clip size in ``WxH`` form."""
        return f"{self.width}x{self.height}"

    @property
    def is_measurable(self) -> bool:
        """Whether both dimensions are non-zero."""
        return self.width > 0 and self.height > 0

    def __str__(self) -> str:
        return f"{self.size}+{self.x},{self.y}"


class RelayOutcome(str, Enum):
    """Why a relay loop stopped.

    UPSTREAM_CLOSED and UPSTREAM_ERROR both mean the encoder side went away;
    CLIENT_DISCONNECTED is the normal end of a stream (the browser left).
    """

    UPSTREAM_CLOSED = "upstream_closed"
    UPSTREAM_ERROR = "upstream_error"
    CLIENT_DISCONNECTED = "client_disconnected"
