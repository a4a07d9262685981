"""API.Bible content client."""

import asyncio
import logging
import re
from typing import Any, Protocol

import requests

from verbo_reader.models.bible import BookCatalogEntry, ChapterRef, Verse

logger = logging.getLogger(__name__)


class BibleApiError(RuntimeError):
    """Raised when the Bible content API cannot be reached or answers with an error."""


class BibleSource(Protocol):
    """Where the chapter loader gets books, chapters and verses from."""

    async def fetch_books(self, bible_id: str) -> list[BookCatalogEntry]: ...

    async def fetch_chapters(self, bible_id: str, book_id: str) -> list[ChapterRef]: ...

    async def fetch_chapter_content(self, bible_id: str, chapter_id: str) -> list[Verse]: ...


def parse_chapter_content(nodes: list[dict[str, Any]], chapter_id: str) -> list[Verse]:
    """Flatten API.Bible JSON chapter content into verses.

    A ``tag`` node named ``verse`` opens a verse; every following text node
    is appended to it until the next verse tag. Text nodes seen before the
    first verse tag are dropped, as are bare verse-number markers.

    Args:
        nodes: The ``content`` array of the chapter response.
        chapter_id: Used to build verse ids when the API omits ``verseId``.

    Returns:
        Verses in document order.
    """
    verses: list[Verse] = []
    by_number: dict[str, Verse] = {}
    current_number: str | None = None

    def walk(items: list[dict[str, Any]]) -> None:
        nonlocal current_number
        for node in items:
            if node.get("type") == "tag" and node.get("name") == "verse":
                current_number = (node.get("attrs") or {}).get("number") or None

            text = node.get("text")
            if text and current_number:
                clean = text
                if clean.strip().startswith(current_number):
                    clean = re.sub(rf"^{re.escape(current_number)}\s*", "", clean.strip())
                existing = by_number.get(current_number)
                if clean and existing is not None:
                    existing.text += clean
                elif clean:
                    verse = Verse(
                        id=node.get("verseId") or f"{chapter_id}-{current_number}",
                        number=current_number,
                        text=clean,
                    )
                    by_number[current_number] = verse
                    verses.append(verse)

            if node.get("items"):
                walk(node["items"])

    walk(nodes)
    return verses


class ApiBibleClient:
    """Fetches Bible content from API.Bible.

    Requests are blocking and run in a worker thread so callers can await
    them from the event loop.

    Args:
        api_key: API.Bible key sent in the ``api-key`` header.
        base_url: Root of the ``/bibles`` endpoint.
        timeout: Per-request timeout in seconds.
        session: Optional pre-configured requests session.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.scripture.api.bible/v1/bibles",
        timeout: float = 15.0,
        session: requests.Session | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({"api-key": api_key})

    def _get(self, endpoint: str, params: dict[str, str] | None = None) -> Any:
        url = f"{self._base_url}{endpoint}"
        try:
            response = self._session.get(url, params=params, timeout=self._timeout)
            response.raise_for_status()
            return response.json()["data"]
        except (requests.RequestException, ValueError, KeyError) as exc:
            raise BibleApiError(f"API.Bible request failed for {endpoint}: {exc}") from exc

    async def fetch_books(self, bible_id: str) -> list[BookCatalogEntry]:
        data = await asyncio.to_thread(self._get, f"/{bible_id}/books")
        return [BookCatalogEntry.model_validate(item) for item in data]

    async def fetch_chapters(self, bible_id: str, book_id: str) -> list[ChapterRef]:
        data = await asyncio.to_thread(self._get, f"/{bible_id}/books/{book_id}/chapters")
        return [
            ChapterRef.model_validate(item)
            for item in data
            if item.get("number") != "intro"
        ]

    async def fetch_chapter_content(self, bible_id: str, chapter_id: str) -> list[Verse]:
        data = await asyncio.to_thread(
            self._get,
            f"/{bible_id}/chapters/{chapter_id}",
            {
                "content-type": "json",
                "include-notes": "false",
                "include-titles": "false",
            },
        )
        verses = parse_chapter_content(data.get("content") or [], chapter_id)
        logger.debug("Parsed %d verses for chapter %s", len(verses), chapter_id)
        return verses
