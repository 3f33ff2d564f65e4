"""Tests for window query providers and xwininfo parsing."""

import subprocess

import pytest

from window_streamer.exceptions import WindowQueryError
from window_streamer.models import WindowGeometry, WindowHandle
from window_streamer.services import window_query
from window_streamer.services.window_query import (
    StaticWindowQuery,
    WindowQueryProvider,
    X11WindowQuery,
    escape_name_filter,
    parse_xwininfo,
)


XWININFO_OUTPUT = """
xwininfo: Window id: 0x1a00003 "Mozilla Firefox"

  Absolute upper-left X:  100
  Absolute upper-left Y:  50
  Relative upper-left X:  0
  Relative upper-left Y:  0
  Width: 1280
  Height: 720
  Depth: 24
  Visual: 0x21
  Border width: 0
  Map State: IsViewable
  Corners:  +100+50  -540+50  -540-310  +100-310
  -geometry 1280x720+100+50
"""


def _completed(cmd, returncode=0, stdout="", stderr=""):
    return subprocess.CompletedProcess(cmd, returncode, stdout=stdout, stderr=stderr)


class TestParseXwininfo:
    """Test label-based geometry scraping."""

    def test_full_output(self):
        geometry = parse_xwininfo(XWININFO_OUTPUT)
        assert geometry == WindowGeometry(100, 50, 1280, 720)
        assert geometry.output == XWININFO_OUTPUT

    def test_missing_labels_default_to_zero(self):
        text = "  Absolute upper-left X:  10\n  Width: 300\n"
        assert parse_xwininfo(text) == WindowGeometry(x=10, y=0, width=300, height=0)

    def test_malformed_value_defaults_to_zero(self):
        text = XWININFO_OUTPUT.replace("Height: 720", "Height: n/a")
        geometry = parse_xwininfo(text)
        assert geometry.height == 0
        assert geometry.width == 1280

    def test_negative_offsets(self):
        text = "Absolute upper-left X:  -20\nAbsolute upper-left Y:  -5\nWidth: 10\nHeight: 10\n"
        assert parse_xwininfo(text) == WindowGeometry(-20, -5, 10, 10)

    def test_border_width_is_not_width(self):
        text = "  Border width: 7\n  Width: 640\n  Height: 480\n"
        assert parse_xwininfo(text).width == 640

    def test_empty_output(self):
        assert parse_xwininfo("") == WindowGeometry()


class TestEscapeNameFilter:
    """Test literal-substring escaping for xdotool's regex matcher."""

    def test_plain_text_unchanged(self):
        assert escape_name_filter("Firefox") == "Firefox"

    def test_regex_metacharacters_escaped(self):
        assert escape_name_filter("a.b (1)") == r"a\.b \(1\)"
        assert escape_name_filter("[x]*+?") == r"\[x\]\*\+\?"

    def test_empty_matches_everything(self):
        assert escape_name_filter("") == "."


class TestX11WindowQuery:
    """Test command construction and output handling with subprocess stubbed."""

    def test_find_windows_returns_ids_in_order(self, monkeypatch):
        calls = []

        def fake_run(cmd, **kwargs):
            calls.append((cmd, kwargs))
            return _completed(cmd, stdout="41943043\n41943077\n")

        monkeypatch.setattr(window_query.subprocess, "run", fake_run)
        query = X11WindowQuery(display=":42", timeout=2.0)

        assert query.find_windows("Fire.fox") == ["41943043", "41943077"]
        cmd, kwargs = calls[0]
        assert cmd == ["xdotool", "search", "--onlyvisible", "--name", r"Fire\.fox"]
        assert kwargs["env"]["DISPLAY"] == ":42"
        assert kwargs["timeout"] == 2.0

    def test_find_windows_no_match_is_empty(self, monkeypatch):
        monkeypatch.setattr(
            window_query.subprocess, "run", lambda cmd, **kw: _completed(cmd, returncode=1)
        )
        assert X11WindowQuery().find_windows("Nothing") == []

    def test_find_windows_display_error_raises(self, monkeypatch):
        monkeypatch.setattr(
            window_query.subprocess,
            "run",
            lambda cmd, **kw: _completed(cmd, returncode=1, stderr="Error: Can't open display: :99"),
        )
        with pytest.raises(WindowQueryError, match="Can't open display"):
            X11WindowQuery().find_windows("Firefox")

    def test_missing_tool_raises(self, monkeypatch):
        def fake_run(cmd, **kwargs):
            raise FileNotFoundError(2, "No such file or directory", cmd[0])

        monkeypatch.setattr(window_query.subprocess, "run", fake_run)
        with pytest.raises(WindowQueryError, match="xdotool"):
            X11WindowQuery().find_windows("Firefox")

    def test_timeout_raises(self, monkeypatch):
        def fake_run(cmd, **kwargs):
            raise subprocess.TimeoutExpired(cmd, kwargs["timeout"])

        monkeypatch.setattr(window_query.subprocess, "run", fake_run)
        with pytest.raises(WindowQueryError, match="Timed out"):
            X11WindowQuery(timeout=0.5).get_geometry("0x1")

    def test_get_window_name(self, monkeypatch):
        monkeypatch.setattr(
            window_query.subprocess,
            "run",
            lambda cmd, **kw: _completed(cmd, stdout="Mozilla Firefox\n"),
        )
        assert X11WindowQuery().get_window_name("41943043") == "Mozilla Firefox"

    def test_get_window_name_failure_is_unknown(self, monkeypatch):
        monkeypatch.setattr(
            window_query.subprocess, "run", lambda cmd, **kw: _completed(cmd, returncode=1)
        )
        assert X11WindowQuery().get_window_name("41943043") == "Unknown"

    def test_get_geometry_parses_output(self, monkeypatch):
        seen = []

        def fake_run(cmd, **kwargs):
            seen.append(cmd)
            return _completed(cmd, stdout=XWININFO_OUTPUT)

        monkeypatch.setattr(window_query.subprocess, "run", fake_run)
        geometry = X11WindowQuery().get_geometry("0x1a00003")

        assert seen == [["xwininfo", "-id", "0x1a00003"]]
        assert geometry == WindowGeometry(100, 50, 1280, 720)

    def test_get_geometry_bad_window_raises(self, monkeypatch):
        monkeypatch.setattr(
            window_query.subprocess,
            "run",
            lambda cmd, **kw: _completed(
                cmd, returncode=1, stderr="X Error: BadWindow (invalid Window parameter)"
            ),
        )
        with pytest.raises(WindowQueryError) as exc_info:
            X11WindowQuery().get_geometry("0xdead")
        assert "BadWindow" in exc_info.value.output
        assert exc_info.value.returncode == 1


class TestStaticWindowQuery:
    """Test the deterministic provider."""

    def test_is_a_provider(self):
        assert isinstance(StaticWindowQuery(), WindowQueryProvider)
        assert isinstance(X11WindowQuery(), WindowQueryProvider)

    def test_substring_match_in_order(self):
        query = StaticWindowQuery(
            [
                (WindowHandle("1", "Terminal"), WindowGeometry(0, 0, 10, 10)),
                (WindowHandle("2", "Firefox - Docs"), WindowGeometry(0, 0, 10, 10)),
                (WindowHandle("3", "Firefox - Mail"), WindowGeometry(0, 0, 10, 10)),
            ]
        )
        assert query.find_windows("Firefox") == ["2", "3"]
        assert query.find_windows("") == ["1", "2", "3"]
        assert query.find_windows("firefox") == []

    def test_error_mode(self):
        query = StaticWindowQuery(error="no display")
        with pytest.raises(WindowQueryError, match="no display"):
            query.find_windows("x")
        assert query.get_window_name("1") == "Unknown"

    def test_unknown_window_geometry_raises(self):
        with pytest.raises(WindowQueryError, match="BadWindow"):
            StaticWindowQuery().get_geometry("0x9")
