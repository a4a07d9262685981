"""Per-book completed chapters, stored in guest local storage."""

import logging

from verbo_reader.models.user import ReadProgressMap
from verbo_reader.notify import Notifier
from verbo_reader.progress.stats import ProfileStats
from verbo_reader.storage.local import PROGRESS_KEY, LocalStorage

logger = logging.getLogger(__name__)

CHAPTER_COMPLETED = "Chapter completed!"


class ReadProgressTracker:
    """Tracks which chapters of each book have been read.

    Marking a chapter read counts it once in ``chapters_read`` and runs the
    daily check-in. Marking it unread again changes nothing but the map, so
    toggling the same chapter back and forth counts it again each time.

    Args:
        storage: Local storage the whole map is written to on every change.
        stats: Profile statistics of the signed-in user, if any.
        notifier: Announces completed chapters.
    """

    def __init__(
        self,
        storage: LocalStorage,
        stats: ProfileStats | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        self._storage = storage
        self._stats = stats
        self._notifier = notifier
        self.progress: ReadProgressMap = {}

    def load(self) -> None:
        data = self._storage.get_json(PROGRESS_KEY, {})
        if not isinstance(data, dict):
            logger.warning("Ignoring malformed read progress")
            data = {}
        self.progress = {
            str(book): [str(ch) for ch in chapters]
            for book, chapters in data.items()
            if isinstance(chapters, list)
        }

    def is_chapter_read(self, book_id: str, chapter_number: str | int) -> bool:
        return str(chapter_number) in self.progress.get(book_id, [])

    async def toggle_read_chapter(self, book_id: str, chapter_number: str | int) -> bool:
        """Flip a chapter's read state.

        Returns:
            True if the chapter is now marked read.
        """
        number = str(chapter_number)
        book_progress = self.progress.get(book_id, [])
        completed = number in book_progress
        if completed:
            updated = [c for c in book_progress if c != number]
        else:
            updated = [*book_progress, number]

        self.progress = {**self.progress, book_id: updated}
        self._storage.set_json(PROGRESS_KEY, self.progress)

        if completed:
            return False

        if self._notifier is not None:
            self._notifier.show(CHAPTER_COMPLETED)
        if self._stats is not None and self._stats.stats is not None:
            await self._stats.increment("chapters_read")
            await self._stats.check_in_daily()
        return True
