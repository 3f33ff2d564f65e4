"""Window query providers.

All knowledge of the windowing system's command-line tools lives here. The
locator and geometry resolver only see the WindowQueryProvider protocol, so
they can run against StaticWindowQuery without a real display.
"""

from __future__ import annotations

import logging
import os
import re
import subprocess
from collections.abc import Iterable
from typing import Protocol, runtime_checkable

from window_streamer.exceptions import WindowQueryError
from window_streamer.models import WindowGeometry, WindowHandle

logger = logging.getLogger(__name__)

UNKNOWN_WINDOW_NAME = "Unknown"

# xwininfo labels, scanned anywhere in the output
_GEOMETRY_LABELS = {
    "x": "Absolute upper-left X:",
    "y": "Absolute upper-left Y:",
    "width": "Width:",
    "height": "Height:",
}
_GEOMETRY_PATTERNS = {
    field: re.compile(rf"^\s*{re.escape(label)}\s*(\S+)", re.MULTILINE)
    for field, label in _GEOMETRY_LABELS.items()
}

_ERE_SPECIAL = re.compile(r"([\\.\[\]()*+?{}|^$])")


def _safe_int(value: str, default: int = 0) -> int:
    """Safely parse an integer field from query output."""
    value = value.strip()
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def escape_name_filter(name_filter: str) -> str:
    """Turn a literal title substring into an xdotool (POSIX ERE) pattern.

    An empty filter becomes ``.`` so that it matches every titled window.
    """
    if not name_filter:
        return "."
    return _ERE_SPECIAL.sub(r"\\\1", name_filter)


def parse_xwininfo(text: str) -> WindowGeometry:
    """Extract the absolute geometry from ``xwininfo -id`` output.

    Missing or malformed fields stay at zero.

    Parameters
    ----------
    text : str
        Free-form xwininfo output.

    Returns
    -------
    WindowGeometry
        Parsed geometry carrying ``text`` as its output; callers decide
        whether zero sizes are acceptable.
    """
    values: dict[str, int] = {}
    for field, pattern in _GEOMETRY_PATTERNS.items():
        match = pattern.search(text)
        values[field] = _safe_int(match.group(1)) if match else 0
    return WindowGeometry(**values, output=text)


@runtime_checkable
class WindowQueryProvider(Protocol):
    """Capability interface over the windowing system."""

    def find_windows(self, name_filter: str) -> list[str]:
        """Return ids of visible windows whose title contains ``name_filter``.

        An empty list means no match. Raises WindowQueryError when the query
        itself fails.
        """
        ...

    def get_window_name(self, window_id: str) -> str:
        """Return the window title, or ``"Unknown"`` when it can't be read."""
        ...

    def get_geometry(self, window_id: str) -> WindowGeometry:
        """Return the absolute geometry. Raises WindowQueryError on failure."""
        ...


class X11WindowQuery:
    """Window queries via ``xdotool`` and ``xwininfo`` on an X display.

    Parameters
    ----------
    display : str
        X display to query (e.g. ``":99"``).
    timeout : float
        Timeout in seconds for each command.
    """

    def __init__(self, display: str = ":99", timeout: float = 5.0) -> None:
        self.display = display
        self.timeout = timeout

    def _run(self, cmd: list[str]) -> subprocess.CompletedProcess[str]:
        env = os.environ.copy()
        env["DISPLAY"] = self.display
        try:
            return subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                env=env,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            raise WindowQueryError(f"Timed out after {self.timeout}s", command=cmd) from e
        except (FileNotFoundError, OSError) as e:
            raise WindowQueryError(f"Could not run query: {e}", command=cmd) from e

    def find_windows(self, name_filter: str) -> list[str]:
        cmd = ["xdotool", "search", "--onlyvisible", "--name", escape_name_filter(name_filter)]
        result = self._run(cmd)
        ids = [line.strip() for line in result.stdout.splitlines() if line.strip()]
        if ids:
            return ids

        # xdotool exits 1 with no output when nothing matches
        stderr = result.stderr.strip()
        if result.returncode != 0 and stderr:
            raise WindowQueryError(
                stderr, command=cmd, returncode=result.returncode, output=stderr
            )
        return []

    def get_window_name(self, window_id: str) -> str:
        try:
            result = self._run(["xdotool", "getwindowname", window_id])
        except WindowQueryError as e:
            logger.debug("Failed to read name of window %s: %s", window_id, e)
            return UNKNOWN_WINDOW_NAME
        if result.returncode != 0:
            return UNKNOWN_WINDOW_NAME
        return result.stdout.strip() or UNKNOWN_WINDOW_NAME

    def get_geometry(self, window_id: str) -> WindowGeometry:
        cmd = ["xwininfo", "-id", window_id]
        result = self._run(cmd)
        if result.returncode != 0:
            output = (result.stderr or result.stdout).strip()
            raise WindowQueryError(
                output or "xwininfo failed",
                command=cmd,
                returncode=result.returncode,
                output=output,
            )
        logger.debug("xwininfo output for %s:\n%s", window_id, result.stdout)
        return parse_xwininfo(result.stdout)


class StaticWindowQuery:
    """Deterministic provider backed by a fixed list of windows.

    Windows are matched by plain substring and returned in the order given,
    which makes the full pipeline testable without an X server.

    Parameters
    ----------
    windows : Iterable[tuple[WindowHandle, WindowGeometry]]
        Windows in enumeration order.
    error : str | None
        When set, every query raises WindowQueryError with this message.
    """

    def __init__(
        self,
        windows: Iterable[tuple[WindowHandle, WindowGeometry]] = (),
        error: str | None = None,
    ) -> None:
        self._windows: list[tuple[WindowHandle, WindowGeometry]] = list(windows)
        self._error = error
        self.calls: list[tuple[str, str]] = []

    @classmethod
    def single(
        cls,
        name: str,
        geometry: WindowGeometry,
        window_id: str = "0x1",
    ) -> StaticWindowQuery:
        """Provider exposing exactly one window."""
        return cls([(WindowHandle(window_id, name), geometry)])

    def _check(self, op: str, arg: str) -> None:
        self.calls.append((op, arg))
        if self._error is not None:
            raise WindowQueryError(self._error)

    def _lookup(self, window_id: str) -> tuple[WindowHandle, WindowGeometry] | None:
        for handle, geometry in self._windows:
            if handle.window_id == window_id:
                return handle, geometry
        return None

    def find_windows(self, name_filter: str) -> list[str]:
        self._check("find_windows", name_filter)
        return [h.window_id for h, _ in self._windows if name_filter in h.name]

    def get_window_name(self, window_id: str) -> str:
        self.calls.append(("get_window_name", window_id))
        entry = None if self._error is not None else self._lookup(window_id)
        return entry[0].name if entry else UNKNOWN_WINDOW_NAME

    def get_geometry(self, window_id: str) -> WindowGeometry:
        self._check("get_geometry", window_id)
        entry = self._lookup(window_id)
        if entry is None:
            raise WindowQueryError(f"BadWindow (invalid Window parameter): {window_id}")
        return entry[1]
