"""Window geometry resolution."""

from __future__ import annotations

import logging

from window_streamer.exceptions import GeometryError, WindowQueryError
from window_streamer.models import WindowGeometry, WindowHandle
from window_streamer.services.window_query import WindowQueryProvider

logger = logging.getLogger(__name__)


class GeometryResolver:
    """Measures a located window.

    Parameters
    ----------
    provider : WindowQueryProvider
        Windowing-system query backend.
    """

    def __init__(self, provider: WindowQueryProvider) -> None:
        self.provider = provider

    def resolve(self, handle: WindowHandle) -> WindowGeometry:
        """Return the absolute screen rectangle of ``handle``.

        Raises
        ------
        GeometryError
            If the query fails, or the window has zero width or height
            (minimized, unmapped, or destroyed since it was located).
        """
        try:
            geometry = self.provider.get_geometry(handle.window_id)
        except WindowQueryError as e:
            raise GeometryError(
                f"Failed to query window geometry: {e}",
                window_id=handle.window_id,
                output=e.output,
            ) from e

        if not geometry.is_measurable:
            raise GeometryError(
                "Window has zero width or height",
                window_id=handle.window_id,
                geometry=geometry,
                output=geometry.output,
            )

        logger.debug("Window %s geometry: %s", handle, geometry)
        return geometry
