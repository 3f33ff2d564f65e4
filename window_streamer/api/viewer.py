"""Viewer page rendering."""

from __future__ import annotations

import html
import logging
from pathlib import Path
from string import Template

from window_streamer.config import StreamerConfig
from window_streamer.exceptions import TemplateError


logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE_PATH = Path(__file__).resolve().parent.parent / "templates" / "index.html"


def render_viewer_page(config: StreamerConfig, stream_path: str = "/stream") -> str:
    """Render the viewer page for the configured window.

    The page only depends on startup configuration, so it is rendered once
    when the app is created.

    Parameters
    ----------
    config : StreamerConfig
        Streamer configuration.
    stream_path : str
        URL path of the stream endpoint.

    Returns
    -------
    str
        HTML document.

    Raises
    ------
    TemplateError
        If the template is missing or has unknown or malformed placeholders.
    """
    path = config.template_path or DEFAULT_TEMPLATE_PATH
    try:
        source = path.read_text(encoding="utf-8")
    except OSError as e:
        raise TemplateError(f"Cannot read viewer template: {e}", path=str(path)) from e

    label = config.window_name or "Window"
    try:
        page = Template(source).substitute(
            title=html.escape(f"{label} Stream"),
            window_name=html.escape(config.window_name),
            stream_path=html.escape(stream_path),
        )
    except (KeyError, ValueError) as e:
        raise TemplateError(f"Invalid viewer template: {e!r}", path=str(path)) from e

    logger.debug("Rendered viewer page from %s", path)
    return page
