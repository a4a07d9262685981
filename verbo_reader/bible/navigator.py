"""Reference detection wired to the chapter loader."""

import logging
from collections.abc import Callable

from verbo_reader.bible.loader import ChapterLoader
from verbo_reader.bible.resolver import resolve
from verbo_reader.models.bible import NavigationTarget
from verbo_reader.notify import Notifier

logger = logging.getLogger(__name__)


class Navigator:
    """Detects references in text and moves the reader to them.

    Args:
        loader: The chapter loader to drive.
        notifier: Announces the navigation to the user.
        show_reader: Called to switch the app back to the reading view.
    """

    def __init__(
        self,
        loader: ChapterLoader,
        notifier: Notifier | None = None,
        show_reader: Callable[[], None] | None = None,
    ) -> None:
        self._loader = loader
        self._notifier = notifier
        self._show_reader = show_reader

    async def detect_and_navigate(self, text: str) -> NavigationTarget | None:
        """Navigate to the first reference found in ``text``.

        Returns:
            The applied target, or None if the text holds no resolvable
            reference (no action is taken).
        """
        target = resolve(text, self._loader.books)
        if target is None:
            return None

        logger.info("Navigating to %s", target.label())
        if self._notifier is not None:
            self._notifier.show(f"Going to {target.label()}...")
        if self._show_reader is not None:
            self._show_reader()
        await self._loader.go_to(target)
        return target
