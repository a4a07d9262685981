"""Tests for the chapter loader state machine and navigation."""

import asyncio

import pytest
from conftest import BIBLE_ID, CATALOG, FakeBibleSource, settle

from verbo_reader.bible.loader import (
    BOOKS_ERROR,
    VERSES_ERROR,
    ChapterLoader,
    LoaderState,
)
from verbo_reader.models import NavigationTarget
from verbo_reader.notify import Notifier

GEN, EXO, JHN, FIRST_JN = CATALOG


def _target(book, chapter: int, verse: int | None = None) -> NavigationTarget:
    return NavigationTarget(
        book=book, book_query=book.name.lower(), chapter_number=chapter, verse_number=verse
    )


@pytest.fixture
def notifier() -> Notifier:
    return Notifier()


@pytest.fixture
def loader(source: FakeBibleSource, notifier: Notifier) -> ChapterLoader:
    return ChapterLoader(source, BIBLE_ID, notifier=notifier)


def _verse_prefixes(loader: ChapterLoader) -> set[str]:
    return {v.id.rsplit(".", 1)[0] for v in loader.verses}


# ── Initial load ─────────────────────────────────────────────────────────────


class TestInitialLoad:
    def test_starts_idle(self, loader: ChapterLoader) -> None:
        assert loader.state == LoaderState.IDLE
        assert loader.current_book is None

    def test_load_selects_first_book_and_chapter(self, loader: ChapterLoader) -> None:
        asyncio.run(loader.load_books())

        assert loader.books == CATALOG
        assert loader.current_book == GEN
        assert [c.number for c in loader.chapters] == ["1", "2", "3"]
        assert loader.current_chapter is not None
        assert loader.current_chapter.id == "GEN.1"
        assert _verse_prefixes(loader) == {"GEN.1"}
        assert loader.state == LoaderState.VERSES_READY
        assert loader.verses_ready.is_set()
        assert loader.loading is False

    def test_loads_run_in_order(self, loader: ChapterLoader, source: FakeBibleSource) -> None:
        asyncio.run(loader.load_books())
        assert source.calls == ["books", "GEN", "GEN.1"]

    def test_set_bible_resets_position(self, loader: ChapterLoader) -> None:
        async def scenario() -> None:
            await loader.load_books()
            await loader.go_to(_target(JHN, 3, 16))
            loader.pending.chapter = 7
            await loader.set_bible("another-bible")

        asyncio.run(scenario())
        assert loader.bible_id == "another-bible"
        assert loader.current_book == GEN
        assert loader.current_chapter is not None
        assert loader.current_chapter.id == "GEN.1"
        assert loader.pending.chapter is None
        assert loader.highlighter.verse_id is None

    def test_reselecting_same_book_keeps_chapter(self, loader: ChapterLoader) -> None:
        async def scenario() -> None:
            await loader.load_books()
            await loader.select_chapter(loader.chapters[1])
            await loader.select_book(GEN)

        asyncio.run(scenario())
        assert loader.current_chapter is not None
        assert loader.current_chapter.id == "GEN.2"
        assert _verse_prefixes(loader) == {"GEN.2"}

    def test_selecting_chapter_clears_verses_immediately(
        self, loader: ChapterLoader, source: FakeBibleSource
    ) -> None:
        async def scenario() -> None:
            await loader.load_books()
            loader.select_verse(loader.verses[0])
            source.gates["GEN.2"] = asyncio.Event()
            task = asyncio.create_task(loader.select_chapter(loader.chapters[1]))
            await settle()
            assert loader.verses == []
            assert loader.selected_verse is None
            assert loader.state == LoaderState.LOADING_VERSES
            assert not loader.verses_ready.is_set()
            source.gates["GEN.2"].set()
            await task

        asyncio.run(scenario())
        assert _verse_prefixes(loader) == {"GEN.2"}


# ── Stale responses ──────────────────────────────────────────────────────────


class TestStaleResponses:
    def test_slow_book_load_does_not_clobber_newer_book(
        self, loader: ChapterLoader, source: FakeBibleSource
    ) -> None:
        async def scenario() -> None:
            await loader.load_books()
            gate = asyncio.Event()
            source.gates["EXO"] = gate
            slow = asyncio.create_task(loader.select_book(EXO))
            await settle()
            await loader.select_book(JHN)
            gate.set()
            await slow

        asyncio.run(scenario())
        assert loader.current_book == JHN
        assert {c.book_id for c in loader.chapters} == {"JHN"}
        assert loader.current_chapter is not None
        assert loader.current_chapter.book_id == "JHN"
        assert _verse_prefixes(loader) == {"JHN.1"}

    def test_slow_verse_load_does_not_clobber_newer_chapter(
        self, loader: ChapterLoader, source: FakeBibleSource
    ) -> None:
        async def scenario() -> None:
            await loader.load_books()
            gate = asyncio.Event()
            source.gates["GEN.2"] = gate
            slow = asyncio.create_task(loader.select_chapter(loader.chapters[1]))
            await settle()
            await loader.select_chapter(loader.chapters[2])
            gate.set()
            await slow

        asyncio.run(scenario())
        assert loader.current_chapter is not None
        assert loader.current_chapter.id == "GEN.3"
        assert _verse_prefixes(loader) == {"GEN.3"}
        assert loader.state == LoaderState.VERSES_READY

    def test_verse_load_for_old_book_is_discarded(
        self, loader: ChapterLoader, source: FakeBibleSource
    ) -> None:
        async def scenario() -> None:
            await loader.load_books()
            gate = asyncio.Event()
            source.gates["GEN.2"] = gate
            slow = asyncio.create_task(loader.select_chapter(loader.chapters[1]))
            await settle()
            await loader.select_book(EXO)
            gate.set()
            await slow

        asyncio.run(scenario())
        assert loader.current_book == EXO
        assert _verse_prefixes(loader) == {"EXO.1"}


# ── Pending tokens ───────────────────────────────────────────────────────────


class TestPendingTokens:
    def test_pending_verse_applied_once(self, loader: ChapterLoader) -> None:
        async def scenario() -> tuple[str | None, str | None]:
            await loader.load_books()
            loader.pending.verse = 2
            await loader.select_chapter(loader.chapters[1])
            first = loader.highlighter.verse_id
            assert loader.pending.verse is None
            await loader.select_chapter(loader.chapters[2])
            return first, loader.highlighter.verse_id

        first, second = asyncio.run(scenario())
        assert first == "2"
        assert second is None

    def test_pending_chapter_consumed_by_chapter_list(self, loader: ChapterLoader) -> None:
        async def scenario() -> None:
            await loader.load_books()
            loader.pending.chapter = 3
            await loader.select_book(EXO)

        asyncio.run(scenario())
        # EXO has two chapters: fall back to the first
        assert loader.current_chapter is not None
        assert loader.current_chapter.id == "EXO.1"
        assert loader.pending.chapter is None


# ── Navigation branches ──────────────────────────────────────────────────────


class TestGoTo:
    def test_same_book_same_chapter_only_moves_highlight(
        self, loader: ChapterLoader, source: FakeBibleSource
    ) -> None:
        async def scenario() -> None:
            await loader.load_books()
            calls_before = list(source.calls)
            await loader.go_to(_target(GEN, 1, 3))
            assert source.calls == calls_before

        asyncio.run(scenario())
        assert loader.highlighter.verse_id == "3"
        assert loader.pending.verse is None

    def test_same_book_other_chapter(self, loader: ChapterLoader) -> None:
        async def scenario() -> None:
            await loader.load_books()
            await loader.go_to(_target(GEN, 2, 2))

        asyncio.run(scenario())
        assert loader.current_chapter is not None
        assert loader.current_chapter.id == "GEN.2"
        assert loader.highlighter.verse_id == "2"
        assert loader.pending.verse is None

    def test_other_book(self, loader: ChapterLoader) -> None:
        async def scenario() -> None:
            await loader.load_books()
            await loader.go_to(_target(JHN, 3, 16))

        asyncio.run(scenario())
        assert loader.current_book == JHN
        assert loader.current_chapter is not None
        assert loader.current_chapter.id == "JHN.3"
        assert loader.highlighter.verse_id == "16"
        assert loader.pending.chapter is None
        assert loader.pending.verse is None

    def test_other_book_without_verse_clears_highlight(self, loader: ChapterLoader) -> None:
        async def scenario() -> None:
            await loader.load_books()
            loader.highlighter.set("1")
            await loader.go_to(_target(EXO, 2))

        asyncio.run(scenario())
        assert loader.current_chapter is not None
        assert loader.current_chapter.id == "EXO.2"
        assert loader.highlighter.verse_id is None

    def test_same_book_while_chapters_loading(
        self, loader: ChapterLoader, source: FakeBibleSource
    ) -> None:
        async def scenario() -> None:
            await loader.load_books()
            gate = asyncio.Event()
            source.gates["JHN"] = gate
            loading = asyncio.create_task(loader.select_book(JHN))
            await settle()
            await loader.go_to(_target(JHN, 5, 2))
            assert loader.pending.chapter == 5
            gate.set()
            await loading

        asyncio.run(scenario())
        assert loader.current_chapter is not None
        assert loader.current_chapter.id == "JHN.5"
        assert loader.highlighter.verse_id == "2"
        assert loader.pending.chapter is None

    def test_same_book_missing_chapter_stays_pending(self, loader: ChapterLoader) -> None:
        async def scenario() -> None:
            await loader.load_books()
            await loader.go_to(_target(GEN, 50))

        asyncio.run(scenario())
        assert loader.current_chapter is not None
        assert loader.current_chapter.id == "GEN.1"
        assert loader.pending.chapter == 50


# ── Next / previous ──────────────────────────────────────────────────────────


class TestChapterStepping:
    def test_next_within_book(self, loader: ChapterLoader) -> None:
        async def scenario() -> None:
            await loader.load_books()
            await loader.next_chapter()

        asyncio.run(scenario())
        assert loader.current_chapter is not None
        assert loader.current_chapter.id == "GEN.2"

    def test_next_rolls_into_next_book(self, loader: ChapterLoader) -> None:
        async def scenario() -> None:
            await loader.load_books()
            await loader.select_chapter(loader.chapters[-1])
            await loader.next_chapter()

        asyncio.run(scenario())
        assert loader.current_book == EXO
        assert loader.current_chapter is not None
        assert loader.current_chapter.id == "EXO.1"

    def test_next_at_end_of_last_book_is_noop(self, loader: ChapterLoader) -> None:
        async def scenario() -> None:
            await loader.load_books()
            await loader.go_to(_target(FIRST_JN, 5))
            await loader.next_chapter()

        asyncio.run(scenario())
        assert loader.current_chapter is not None
        assert loader.current_chapter.id == "1JN.5"

    def test_next_clears_highlight(self, loader: ChapterLoader) -> None:
        async def scenario() -> None:
            await loader.load_books()
            await loader.go_to(_target(GEN, 1, 2))
            await loader.next_chapter()

        asyncio.run(scenario())
        assert loader.highlighter.verse_id is None

    def test_previous_within_book(self, loader: ChapterLoader) -> None:
        async def scenario() -> None:
            await loader.load_books()
            await loader.go_to(_target(GEN, 3))
            await loader.previous_chapter()

        asyncio.run(scenario())
        assert loader.current_chapter is not None
        assert loader.current_chapter.id == "GEN.2"

    def test_previous_into_previous_book_lands_on_first_chapter(
        self, loader: ChapterLoader
    ) -> None:
        async def scenario() -> None:
            await loader.load_books()
            await loader.go_to(_target(EXO, 1))
            await loader.previous_chapter()

        asyncio.run(scenario())
        assert loader.current_book == GEN
        assert loader.current_chapter is not None
        assert loader.current_chapter.id == "GEN.1"
        assert loader.pending.chapter is None

    def test_previous_at_start_of_first_book_is_noop(self, loader: ChapterLoader) -> None:
        async def scenario() -> None:
            await loader.load_books()
            await loader.previous_chapter()

        asyncio.run(scenario())
        assert loader.current_chapter is not None
        assert loader.current_chapter.id == "GEN.1"


# ── Failures ─────────────────────────────────────────────────────────────────


class TestLoadFailures:
    def test_book_failure_notifies_and_stays_idle(
        self, loader: ChapterLoader, source: FakeBibleSource, notifier: Notifier
    ) -> None:
        source.failures.add("books")
        asyncio.run(loader.load_books())
        assert loader.state == LoaderState.IDLE
        assert loader.books == []
        assert notifier.current == BOOKS_ERROR
        assert loader.loading is False

    def test_chapter_failure_returns_to_books_ready(
        self, loader: ChapterLoader, source: FakeBibleSource, notifier: Notifier
    ) -> None:
        async def scenario() -> None:
            await loader.load_books()
            source.failures.add("EXO")
            await loader.select_book(EXO)

        asyncio.run(scenario())
        assert loader.state == LoaderState.BOOKS_READY
        assert loader.chapters == []
        assert notifier.current is not None
        assert "Éxodo" in notifier.current

    def test_verse_failure_leaves_verses_empty(
        self, loader: ChapterLoader, source: FakeBibleSource, notifier: Notifier
    ) -> None:
        async def scenario() -> None:
            await loader.load_books()
            source.failures.add("GEN.2")
            await loader.select_chapter(loader.chapters[1])

        asyncio.run(scenario())
        assert loader.state == LoaderState.CHAPTERS_READY
        assert loader.verses == []
        assert loader.loading is False
        assert notifier.current == VERSES_ERROR

    def test_reselecting_after_failure_recovers(
        self, loader: ChapterLoader, source: FakeBibleSource
    ) -> None:
        async def scenario() -> None:
            await loader.load_books()
            source.failures.add("GEN.2")
            await loader.select_chapter(loader.chapters[1])
            source.failures.clear()
            await loader.select_chapter(loader.chapters[1])

        asyncio.run(scenario())
        assert _verse_prefixes(loader) == {"GEN.2"}
