"""API route modules for the window streamer."""

from fastapi import APIRouter

from window_streamer.api.routes.stream import router as stream_router
from window_streamer.api.routes.viewer import router as viewer_router


api_router = APIRouter()
api_router.include_router(viewer_router)
api_router.include_router(stream_router)

__all__ = ["api_router"]
