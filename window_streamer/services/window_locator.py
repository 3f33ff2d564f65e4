"""Window lookup by title substring."""

from __future__ import annotations

import logging

from window_streamer.exceptions import WindowNotFoundError, WindowQueryError
from window_streamer.models import WindowHandle
from window_streamer.services.window_query import WindowQueryProvider

logger = logging.getLogger(__name__)


class WindowLocator:
    """Finds the window to stream.

    Parameters
    ----------
    provider : WindowQueryProvider
        Windowing-system query backend.
    """

    def __init__(self, provider: WindowQueryProvider) -> None:
        self.provider = provider

    def locate(self, name_filter: str) -> WindowHandle:
        """Return the first visible window whose title contains ``name_filter``.

        "First" is the windowing system's enumeration order, which is not
        guaranteed to be stable across platforms or X servers.

        Parameters
        ----------
        name_filter : str
            Title substring; "" matches any titled window.

        Returns
        -------
        WindowHandle
            The first match.

        Raises
        ------
        WindowNotFoundError
            If nothing matches or the query itself fails.
        """
        try:
            window_ids = self.provider.find_windows(name_filter)
        except WindowQueryError as e:
            raise WindowNotFoundError(name_filter, reason=str(e)) from e

        if not window_ids:
            raise WindowNotFoundError(name_filter)

        window_id = window_ids[0]
        if len(window_ids) > 1:
            logger.debug(
                "%d windows match '%s', using the first (%s)",
                len(window_ids),
                name_filter,
                window_id,
            )
        return WindowHandle(window_id, self.provider.get_window_name(window_id))

    def list_all(self) -> list[WindowHandle]:
        """List every visible window, for diagnostics.

        Never raises; a failed query yields an empty list.
        """
        try:
            window_ids = self.provider.find_windows("")
        except WindowQueryError as e:
            logger.warning("Failed to list windows: %s", e)
            return []
        return [WindowHandle(wid, self.provider.get_window_name(wid)) for wid in window_ids]
