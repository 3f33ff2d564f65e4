"""Window stream route."""

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import PlainTextResponse, Response

from window_streamer.api.dependencies import get_config, get_stream_service
from window_streamer.api.responses import MJPEGStreamResponse
from window_streamer.config import StreamerConfig
from window_streamer.exceptions import (
    GeometryError,
    LaunchError,
    StreamLimitError,
    WindowNotFoundError,
)
from window_streamer.services.stream_service import StreamService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["stream"])


@router.get(
    "/stream",
    responses={
        200: {"description": "Endless multipart/x-mixed-replace MJPEG stream"},
        500: {"description": "Window not found, unmeasurable, or encoder failed to start"},
        503: {"description": "Concurrent stream limit reached"},
    },
    summary="Stream the configured window",
)
async def stream_window(
    config: StreamerConfig = Depends(get_config),
    service: StreamService = Depends(get_stream_service),
) -> Response:
    """Capture the configured window and stream it until the client leaves."""
    try:
        session = await service.open_session()
    except StreamLimitError as e:
        logger.warning("Rejecting stream request: %s", e)
        return PlainTextResponse(str(e), status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
    except WindowNotFoundError as e:
        logger.error("Failed to find window: %s", e)
        return PlainTextResponse(str(e), status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)
    except GeometryError as e:
        logger.error("Failed to get window dimensions: %s", e)
        if e.output:
            logger.error("Query output: %s", e.output)
        return PlainTextResponse(
            f"Failed to get dimensions of window {e.window_id}",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
    except LaunchError as e:
        logger.error("Failed to start capture: %s", e)
        return PlainTextResponse(
            "Stream error: capture process failed to start",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    return MJPEGStreamResponse(session, media_type=config.media_type, chunk_size=config.chunk_size)
