"""Note and bookmark storage tiers.

Guest sessions write plaintext JSON to local storage; authenticated sessions
write ciphertext to the remote store. The synchronizer picks one tier per
session and every write goes to that tier only.
"""

import logging
from typing import Protocol

from pydantic import ValidationError

from verbo_reader.crypto import Cipher, decrypt_field, encrypt_field
from verbo_reader.models.user import Bookmark, NoteMap
from verbo_reader.storage.local import BOOKMARKS_KEY, NOTES_KEY, LocalStorage
from verbo_reader.storage.remote import RemoteStore

logger = logging.getLogger(__name__)


class NoteStore(Protocol):
    async def load(self) -> NoteMap: ...

    async def save(self, notes: NoteMap, note_id: str) -> None:
        """Persist ``notes[note_id]``; ``notes`` is the full updated map."""
        ...


class BookmarkStore(Protocol):
    async def load(self) -> list[Bookmark]: ...

    async def save(self, bookmarks: list[Bookmark], changed: Bookmark, added: bool) -> None:
        """Persist one add/remove; ``bookmarks`` is the full updated list."""
        ...


class LocalNoteStore:
    def __init__(self, storage: LocalStorage) -> None:
        self._storage = storage

    async def load(self) -> NoteMap:
        data = self._storage.get_json(NOTES_KEY, {})
        if not isinstance(data, dict):
            return {}
        return {str(k): str(v) for k, v in data.items()}

    async def save(self, notes: NoteMap, note_id: str) -> None:
        self._storage.set_json(NOTES_KEY, notes)


class RemoteNoteStore:
    """Encrypted notes for one user."""

    def __init__(self, remote: RemoteStore, cipher: Cipher, user_id: str) -> None:
        self._remote = remote
        self._cipher = cipher
        self._user_id = user_id

    async def load(self) -> NoteMap:
        rows = await self._remote.fetch_notes(self._user_id)
        notes: NoteMap = {}
        for row in rows:
            if row.get("encrypted_content"):
                notes[row["verse_id"]] = decrypt_field(self._cipher, row["encrypted_content"])
        return notes

    async def save(self, notes: NoteMap, note_id: str) -> None:
        await self._remote.upsert_note(
            self._user_id, note_id, encrypt_field(self._cipher, notes[note_id])
        )


class LocalBookmarkStore:
    def __init__(self, storage: LocalStorage) -> None:
        self._storage = storage

    async def load(self) -> list[Bookmark]:
        data = self._storage.get_json(BOOKMARKS_KEY, [])
        if not isinstance(data, list):
            return []
        bookmarks = []
        for item in data:
            try:
                bookmarks.append(Bookmark.model_validate(item))
            except ValidationError:
                logger.warning("Skipping malformed local bookmark: %r", item)
        return bookmarks

    async def save(self, bookmarks: list[Bookmark], changed: Bookmark, added: bool) -> None:
        self._storage.set_json(
            BOOKMARKS_KEY, [b.model_dump(by_alias=True) for b in bookmarks]
        )


class RemoteBookmarkStore:
    def __init__(self, remote: RemoteStore, user_id: str) -> None:
        self._remote = remote
        self._user_id = user_id

    async def load(self) -> list[Bookmark]:
        rows = await self._remote.fetch_bookmarks(self._user_id)
        return [
            Bookmark(
                id=row["verse_id"],
                number=row.get("verse_num") or "",
                text=row.get("verse_text") or "",
                book_name=row.get("book_name") or "",
                chapter_num=row.get("chapter_num") or "",
            )
            for row in rows
        ]

    async def save(self, bookmarks: list[Bookmark], changed: Bookmark, added: bool) -> None:
        if added:
            await self._remote.insert_bookmark(
                self._user_id,
                {
                    "verse_id": changed.id,
                    "verse_num": changed.number,
                    "verse_text": changed.text,
                    "book_name": changed.book_name,
                    "chapter_num": changed.chapter_num,
                },
            )
        else:
            await self._remote.delete_bookmark(self._user_id, changed.id)
