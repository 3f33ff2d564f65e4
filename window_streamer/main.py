"""CLI entry point for the window streamer."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated

import tyro
import uvicorn
from fastapi import FastAPI

from window_streamer.api.app import create_app
from window_streamer.config import StreamerConfig
from window_streamer.exceptions import TemplateError


def setup_logging(level: str) -> None:
    """Configure logging.

    Parameters
    ----------
    level : str
        Logging level name.
    """
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    # Reduce noise from third-party loggers
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def run_server(app: FastAPI, config: StreamerConfig, log_level: str = "INFO") -> None:
    """Serve the app until SIGINT or SIGTERM.

    Streams never end on their own, so uvicorn is given a finite graceful
    period; once it expires, open streams are cancelled and their encoders
    reaped.

    Parameters
    ----------
    app : FastAPI
        Application from create_app.
    config : StreamerConfig
        Streamer configuration (host, port, shutdown_timeout).
    log_level : str
        uvicorn log level name.
    """
    uvicorn.run(
        app,
        host=config.host,
        port=config.port,
        log_level=log_level.lower(),
        timeout_graceful_shutdown=config.shutdown_timeout,
    )


def main(
    window: Annotated[str, tyro.conf.arg(help="Name (title substring) of the window to stream")] = "",
    display: Annotated[str, tyro.conf.arg(help="X display the window lives on")] = ":99",
    host: Annotated[str, tyro.conf.arg(help="Host to bind (0.0.0.0 for external access)")] = "0.0.0.0",
    port: Annotated[int, tyro.conf.arg(help="Port for the web interface and stream")] = 8181,
    log_level: Annotated[str, tyro.conf.arg(help="Logging level")] = "INFO",
    framerate: Annotated[int, tyro.conf.arg(help="Capture frame rate")] = 60,
    ffmpeg: Annotated[str, tyro.conf.arg(help="Path to the ffmpeg executable")] = "ffmpeg",
    max_streams: Annotated[
        int,
        tyro.conf.arg(help="Maximum concurrent streams (0 = unlimited)"),
    ] = 0,
    query_timeout: Annotated[
        float,
        tyro.conf.arg(help="Timeout in seconds for xdotool/xwininfo queries"),
    ] = 5.0,
    stop_timeout: Annotated[
        float,
        tyro.conf.arg(help="Timeout in seconds to reap a stopped encoder"),
    ] = 5.0,
    shutdown_timeout: Annotated[
        float,
        tyro.conf.arg(help="Seconds to wait for open streams on shutdown before cancelling them"),
    ] = 5.0,
    boundary: Annotated[
        str,
        tyro.conf.arg(help="Multipart boundary (must match the ffmpeg mpjpeg muxer)"),
    ] = "ffmpeg",
    chunk_size: Annotated[
        int,
        tyro.conf.arg(help="Maximum bytes relayed per encoder read"),
    ] = 64 * 1024,
    template: Annotated[
        str | None,
        tyro.conf.arg(help="Viewer page template (omit for the built-in page)"),
    ] = None,
) -> None:
    """Window Streamer - stream one window to the browser.

    Serves a viewer page on / and a multipart MJPEG stream of the window on
    /stream. Each stream request starts its own ffmpeg capture, which is
    killed as soon as the browser disconnects.

    Examples
    --------
    Stream Firefox from the default virtual display:
        window-streamer --window Firefox

    Different display and port:
        window-streamer --window Terminal --display :1 --port 8080
    """
    setup_logging(log_level)
    logger = logging.getLogger(__name__)

    config = StreamerConfig(
        window_name=window,
        display=display,
        host=host,
        port=port,
        framerate=framerate,
        ffmpeg_path=ffmpeg,
        query_timeout=query_timeout,
        stop_timeout=stop_timeout,
        shutdown_timeout=shutdown_timeout,
        boundary=boundary,
        chunk_size=chunk_size,
        max_streams=max_streams,
        template_path=Path(template).resolve() if template else None,
    )

    try:
        config.validate()
    except ValueError as e:
        logger.error("Configuration error: %s", e)
        raise SystemExit(1)

    logger.info("Starting Window Streamer")
    logger.info("  Window: %s", window or "(first visible window)")
    logger.info("  Display: %s", display)
    logger.info("  Host: %s", host)
    logger.info("  Port: %d", port)
    logger.info("  Frame rate: %d", framerate)
    if max_streams:
        logger.info("  Max streams: %d", max_streams)
    else:
        logger.info("  Max streams: unlimited")
    logger.info("  Web interface: http://localhost:%d", port)

    try:
        app = create_app(config)
    except TemplateError as e:
        logger.error("Cannot start without a viewer page: %s", e)
        raise SystemExit(1)

    run_server(app, config, log_level)


def cli() -> None:
    """Entry point for installed script."""
    tyro.cli(main)


if __name__ == "__main__":
    cli()
