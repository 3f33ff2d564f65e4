"""Viewer page route."""

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse

from window_streamer.api.dependencies import AppState, get_app_state

router = APIRouter(tags=["viewer"])


@router.get("/", response_class=HTMLResponse, summary="Viewer page")
def viewer_page(state: AppState = Depends(get_app_state)) -> str:
    """Page embedding the stream as an image."""
    return state.viewer_html
