"""Temporary emphasis of a single verse, with scroll-to support."""

import asyncio
import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)


class VerseHighlighter:
    """Holds the highlighted verse number and clears it when it expires.

    A highlight clears itself after ``timeout`` seconds, when the user
    scrolls, or once it has been scrolled into view.

    Args:
        timeout: Seconds before a highlight clears itself.
        max_attempts: How many times ``scroll_into_view`` looks for the verse.
        interval: Seconds between lookups.
    """

    def __init__(self, timeout: float = 5.0, max_attempts: int = 15, interval: float = 0.2) -> None:
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.interval = interval
        self.verse_id: str | None = None
        self._expiry: asyncio.TimerHandle | None = None

    def set(self, verse_id: str | None) -> None:
        """Highlight ``verse_id`` (None clears) and restart the expiry timer."""
        self._cancel_expiry()
        self.verse_id = verse_id
        if verse_id is None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop: nothing can fire the timer, the highlight stays until cleared.
            return
        self._expiry = loop.call_later(self.timeout, self._expire, verse_id)

    def clear(self) -> None:
        self.set(None)

    def on_user_scroll(self) -> None:
        self.clear()

    def _expire(self, verse_id: str) -> None:
        self._expiry = None
        if self.verse_id == verse_id:
            logger.debug("Highlight on verse %s expired", verse_id)
            self.verse_id = None

    def _cancel_expiry(self) -> None:
        if self._expiry is not None:
            self._expiry.cancel()
            self._expiry = None

    async def scroll_into_view(
        self, ready: asyncio.Event, locate: Callable[[str], bool]
    ) -> bool:
        """Wait for the verse list, then bring the highlighted verse into view.

        Args:
            ready: Set by the chapter loader once verses for the current
                chapter are available.
            locate: Tries to scroll to a verse; returns True on success.

        Returns:
            True if the verse was found. The highlight is cleared on
            success; on give-up it is left to expire.
        """
        await ready.wait()
        for _ in range(self.max_attempts):
            verse_id = self.verse_id
            if verse_id is None:
                return False
            if locate(verse_id):
                self.clear()
                return True
            await asyncio.sleep(self.interval)
        logger.debug("Gave up scrolling to verse %s", self.verse_id)
        return False
