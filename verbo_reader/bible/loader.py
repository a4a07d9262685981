"""Three-stage chapter loader: books -> chapters -> verses.

The loader owns the reading position for one edition. Every book or
chapter selection starts a new load; results that arrive after a newer
selection are discarded, so the visible chapter list and verses always
belong to the most recent selection regardless of fetch completion order.
"""

import asyncio
import logging
from enum import Enum

from verbo_reader.bible.client import BibleSource
from verbo_reader.bible.highlight import VerseHighlighter
from verbo_reader.models.bible import (
    BookCatalogEntry,
    ChapterRef,
    NavigationTarget,
    PendingTarget,
    Verse,
)
from verbo_reader.notify import Notifier

logger = logging.getLogger(__name__)

BOOKS_ERROR = "Error loading the book list."
CHAPTERS_ERROR = "Error loading chapters for {book}."
VERSES_ERROR = "Error loading the chapter. Please try again."


class LoaderState(str, Enum):
    IDLE = "idle"
    LOADING_BOOKS = "loading_books"
    BOOKS_READY = "books_ready"
    LOADING_CHAPTERS = "loading_chapters"
    CHAPTERS_READY = "chapters_ready"
    LOADING_VERSES = "loading_verses"
    VERSES_READY = "verses_ready"


class ChapterLoader:
    """Loads and tracks the current book, chapter and verses of an edition.

    Pending navigation lives in ``pending``: a chapter slot consumed when a
    chapter list arrives, and a verse slot consumed when a verse list
    arrives. Both are cleared as soon as they are applied.

    Args:
        source: Where books, chapters and verses are fetched from.
        bible_id: Initial edition.
        highlighter: Receives the verse to emphasise after navigation.
        notifier: Shows load failures to the user.
        last_chapter_sentinel: Chapter number requested when stepping back
            into the previous book.
    """

    def __init__(
        self,
        source: BibleSource,
        bible_id: str,
        highlighter: VerseHighlighter | None = None,
        notifier: Notifier | None = None,
        last_chapter_sentinel: int = 999,
    ) -> None:
        self._source = source
        self._notifier = notifier
        self.highlighter = highlighter or VerseHighlighter()
        self.last_chapter_sentinel = last_chapter_sentinel

        self.bible_id = bible_id
        self.state = LoaderState.IDLE
        self.loading = False
        self.books: list[BookCatalogEntry] = []
        self.current_book: BookCatalogEntry | None = None
        self.chapters: list[ChapterRef] = []
        self.current_chapter: ChapterRef | None = None
        self.verses: list[Verse] = []
        self.selected_verse: Verse | None = None
        self.pending = PendingTarget()
        self.verses_ready = asyncio.Event()

        # Bumped on every new request; a response is applied only if its
        # counter is still current.
        self._books_request = 0
        self._chapters_request = 0
        self._verses_request = 0

    def _notify(self, message: str) -> None:
        if self._notifier is not None:
            self._notifier.show(message)

    def _invalidate_verses(self) -> None:
        self._verses_request += 1
        self.verses = []
        self.selected_verse = None
        self.verses_ready.clear()

    # ── Edition and catalog ──────────────────────────────────────────────

    async def set_bible(self, bible_id: str) -> None:
        """Switch edition: reset the reading position and reload the catalog."""
        self.bible_id = bible_id
        self.books = []
        self.current_book = None
        self.chapters = []
        self.current_chapter = None
        self._chapters_request += 1
        self._invalidate_verses()
        self.pending = PendingTarget()
        self.highlighter.clear()
        await self.load_books()

    async def load_books(self) -> None:
        """Fetch the catalog; select its first book if none is selected."""
        self._books_request += 1
        request = self._books_request
        bible_id = self.bible_id
        self.state = LoaderState.LOADING_BOOKS
        self.loading = True
        try:
            books = await self._source.fetch_books(bible_id)
        except Exception:
            logger.exception("Error loading books for %s", bible_id)
            if request == self._books_request:
                self.loading = False
                self.state = LoaderState.BOOKS_READY if self.books else LoaderState.IDLE
                self._notify(BOOKS_ERROR)
            return

        if request != self._books_request:
            logger.debug("Discarding stale book catalog for %s", bible_id)
            return

        self.loading = False
        self.books = books
        self.state = LoaderState.BOOKS_READY
        if self.current_book is None and books:
            await self.select_book(books[0])

    # ── Book and chapter selection ───────────────────────────────────────

    async def select_book(self, book: BookCatalogEntry) -> None:
        """Make ``book`` current and load its chapters.

        When the chapter list arrives, a pending chapter number selects the
        matching chapter (the first chapter if none matches) and is cleared.
        Otherwise the first chapter is selected unless the current chapter
        already belongs to this book.
        """
        self._chapters_request += 1
        request = self._chapters_request
        bible_id = self.bible_id

        self.current_book = book
        self.chapters = []
        self._invalidate_verses()
        self.state = LoaderState.LOADING_CHAPTERS
        try:
            chapters = await self._source.fetch_chapters(bible_id, book.id)
        except Exception:
            logger.exception("Error loading chapters for %s", book.id)
            if request == self._chapters_request:
                self.state = LoaderState.BOOKS_READY
                self._notify(CHAPTERS_ERROR.format(book=book.name))
            return

        if request != self._chapters_request:
            logger.debug("Discarding stale chapter list for %s", book.id)
            return

        self.chapters = chapters
        self.state = LoaderState.CHAPTERS_READY
        if not chapters:
            return

        if self.pending.chapter is not None:
            wanted = self.pending.chapter
            self.pending.chapter = None
            target = next((c for c in chapters if c.number_value == wanted), chapters[0])
            await self.select_chapter(target)
        elif self.current_chapter is None or self.current_chapter.book_id != book.id:
            await self.select_chapter(chapters[0])
        else:
            # Same book reselected: verses were invalidated above.
            await self.select_chapter(self.current_chapter)

    async def select_chapter(self, chapter: ChapterRef) -> None:
        """Make ``chapter`` current and load its verses.

        Displayed verses are cleared immediately. When the new verses
        arrive, a pending verse becomes the highlight; otherwise any stale
        highlight is cleared.
        """
        self.current_chapter = chapter
        self._invalidate_verses()
        request = self._verses_request
        bible_id = self.bible_id

        self.state = LoaderState.LOADING_VERSES
        self.loading = True
        try:
            verses = await self._source.fetch_chapter_content(bible_id, chapter.id)
        except Exception:
            logger.exception("Error loading verses for %s", chapter.id)
            if request == self._verses_request:
                self.loading = False
                self.state = LoaderState.CHAPTERS_READY
                self._notify(VERSES_ERROR)
            return

        if request != self._verses_request:
            logger.debug("Discarding stale verses for %s", chapter.id)
            return

        self.loading = False
        self.verses = verses
        self.state = LoaderState.VERSES_READY
        if self.pending.verse is not None:
            self.highlighter.set(str(self.pending.verse))
            self.pending.verse = None
        else:
            self.highlighter.clear()
        self.verses_ready.set()

    def select_verse(self, verse: Verse | None) -> None:
        self.selected_verse = verse

    # ── Navigation ───────────────────────────────────────────────────────

    async def go_to(self, target: NavigationTarget) -> None:
        """Apply a resolved navigation target to the reading position.

        Four cases, on whether the target book and chapter are current:

        * same book, same chapter: only move the highlight;
        * same book, other chapter in the loaded list: switch chapter;
        * same book, chapter not in the loaded list: stash the chapter
          number for the next chapter list;
        * other book: stash the chapter number and switch book.

        A verse number is stashed until the target chapter's verses load.
        """
        verse = target.verse_number
        if verse:
            self.pending.verse = verse

        book = self.current_book
        if book is not None and target.book.id == book.id:
            chapter = next(
                (c for c in self.chapters if c.number_value == target.chapter_number), None
            )
            if chapter is None:
                self.pending.chapter = target.chapter_number
                return
            if self.current_chapter is not None and chapter.id == self.current_chapter.id:
                if verse:
                    self.highlighter.set(str(verse))
                    self.pending.verse = None
                return
            await self.select_chapter(chapter)
            return

        self.pending.chapter = target.chapter_number
        await self.select_book(target.book)

    def _book_index(self) -> int:
        if self.current_book is None:
            return -1
        return next(
            (i for i, b in enumerate(self.books) if b.id == self.current_book.id), -1
        )

    def _chapter_index(self) -> int:
        if self.current_chapter is None:
            return -1
        return next(
            (i for i, c in enumerate(self.chapters) if c.id == self.current_chapter.id), -1
        )

    async def next_chapter(self) -> None:
        """Advance one chapter, rolling over to chapter 1 of the next book."""
        self.highlighter.clear()
        idx = self._chapter_index()
        if idx < len(self.chapters) - 1:
            await self.select_chapter(self.chapters[idx + 1])
            return
        book_idx = self._book_index()
        if book_idx < len(self.books) - 1:
            self.pending.chapter = 1
            await self.select_book(self.books[book_idx + 1])

    async def previous_chapter(self) -> None:
        """Go back one chapter, stepping into the previous book when at chapter 1.

        Stepping back across a book boundary requests ``last_chapter_sentinel``;
        chapter lists never contain that number, so the first chapter of the
        previous book is selected.
        """
        self.highlighter.clear()
        idx = self._chapter_index()
        if idx > 0:
            await self.select_chapter(self.chapters[idx - 1])
            return
        book_idx = self._book_index()
        if book_idx > 0:
            self.pending.chapter = self.last_chapter_sentinel
            await self.select_book(self.books[book_idx - 1])
