"""Shared fixtures and in-memory stand-ins for external collaborators."""

import asyncio
from pathlib import Path

import pytest

from verbo_reader.models import BookCatalogEntry, ChapterRef, ChatMessage, Verse
from verbo_reader.storage.local import LocalStorage
from verbo_reader.storage.remote import SQLiteRemoteStore

BIBLE_ID = "test-bible"

CATALOG = [
    BookCatalogEntry(id="GEN", name="Génesis", edition_id=BIBLE_ID),
    BookCatalogEntry(id="EXO", name="Éxodo", edition_id=BIBLE_ID),
    BookCatalogEntry(id="JHN", name="Juan", edition_id=BIBLE_ID),
    BookCatalogEntry(id="1JN", name="1 Juan", edition_id=BIBLE_ID),
]

CHAPTER_COUNTS = {"GEN": 3, "EXO": 2, "JHN": 21, "1JN": 5}


class FakeCipher:
    """Reversible marker cipher; refuses anything it did not produce."""

    def encrypt(self, plaintext: str) -> str:
        return "enc:" + plaintext[::-1]

    def decrypt(self, ciphertext: str) -> str:
        if not ciphertext.startswith("enc:"):
            raise ValueError("foreign ciphertext")
        return ciphertext[4:][::-1]


class FakeBibleSource:
    """In-memory BibleSource.

    ``gates`` maps a request key (``"books"``, a book id or a chapter id) to
    an ``asyncio.Event`` the fetch waits on, to control completion order.
    Keys in ``failures`` raise instead of returning.
    """

    def __init__(self, catalog: list[BookCatalogEntry] | None = None) -> None:
        self.catalog = list(CATALOG if catalog is None else catalog)
        self.gates: dict[str, asyncio.Event] = {}
        self.failures: set[str] = set()
        self.calls: list[str] = []

    async def _gate(self, key: str) -> None:
        self.calls.append(key)
        if key in self.gates:
            await self.gates[key].wait()
        if key in self.failures:
            raise RuntimeError(f"fetch failed: {key}")

    async def fetch_books(self, bible_id: str) -> list[BookCatalogEntry]:
        await self._gate("books")
        return list(self.catalog)

    async def fetch_chapters(self, bible_id: str, book_id: str) -> list[ChapterRef]:
        await self._gate(book_id)
        return [
            ChapterRef(id=f"{book_id}.{n}", book_id=book_id, number=str(n))
            for n in range(1, CHAPTER_COUNTS.get(book_id, 1) + 1)
        ]

    async def fetch_chapter_content(self, bible_id: str, chapter_id: str) -> list[Verse]:
        await self._gate(chapter_id)
        return [
            Verse(id=f"{chapter_id}.{n}", number=str(n), text=f"{chapter_id} verse {n}")
            for n in range(1, 4)
        ]


class FakeGenerator:
    def __init__(self, reply: str = "Amen.", image: str | None = None) -> None:
        self.reply = reply
        self.image = image
        self.fail = False
        self.histories: list[list[ChatMessage]] = []
        self.contexts: list[str | None] = []

    async def generate_chat_response(self, history, verse_context, is_study=False, location=None):
        if self.fail:
            raise TimeoutError("generation timed out")
        self.histories.append(history)
        self.contexts.append(verse_context)
        return self.reply

    async def generate_image(self, prompt: str) -> str | None:
        if self.fail:
            raise TimeoutError("generation timed out")
        return self.image


async def settle() -> None:
    """Let every ready task run until none are left runnable."""
    for _ in range(20):
        await asyncio.sleep(0)


@pytest.fixture
def cipher() -> FakeCipher:
    return FakeCipher()


@pytest.fixture
def source() -> FakeBibleSource:
    return FakeBibleSource()


@pytest.fixture
def local(tmp_path: Path) -> LocalStorage:
    return LocalStorage(tmp_path / "local.db")


@pytest.fixture
def remote(tmp_path: Path) -> SQLiteRemoteStore:
    store = SQLiteRemoteStore(tmp_path / "remote.db")
    store.create_profile("user-1", name="Ana", email="ana@example.com")
    return store
