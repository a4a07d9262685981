"""Notes and bookmarks across guest and signed-in sessions.

Guest data lives in local storage as plaintext; signed-in data lives in the
remote store as ciphertext. The two are never merged: signing in replaces
the in-memory notes and bookmarks with the remote copies, signing out
empties them. Guest edits are not uploaded on sign-in.
"""

import logging
from collections.abc import Callable

from verbo_reader.chat.session import ChatSession
from verbo_reader.crypto import Cipher
from verbo_reader.models.bible import Verse
from verbo_reader.models.user import Bookmark, NoteMap, UserProfile
from verbo_reader.notify import Notifier
from verbo_reader.progress.stats import ProfileStats
from verbo_reader.storage.local import LocalStorage
from verbo_reader.storage.remote import RemoteStore
from verbo_reader.storage.tiers import (
    BookmarkStore,
    LocalBookmarkStore,
    LocalNoteStore,
    NoteStore,
    RemoteBookmarkStore,
    RemoteNoteStore,
)

logger = logging.getLogger(__name__)

SYNCING = "Syncing your data..."
SAVE_NOTE_ERROR = "Could not save your note. It is kept on this device for now."
SAVE_BOOKMARK_ERROR = "Could not update your favorites. Please try again."

# Notes at least this long count towards notes_count.
COUNTED_NOTE_LENGTH = 6


class UserDataSynchronizer:
    """Owns the in-memory notes and bookmarks and the tier they persist to.

    Args:
        local: Guest local storage.
        remote: Remote store for signed-in users.
        cipher: Encrypts remote content.
        notifier: Shows sync progress and save failures.
        stats: Profile statistics, updated when notes are written.
        chat: Chat session whose history follows the same session rules.
        reset_view: Called on sign-out to return to the reading view.
    """

    def __init__(
        self,
        local: LocalStorage,
        remote: RemoteStore,
        cipher: Cipher,
        notifier: Notifier | None = None,
        stats: ProfileStats | None = None,
        chat: ChatSession | None = None,
        reset_view: Callable[[], None] | None = None,
    ) -> None:
        self._local = local
        self._remote = remote
        self._cipher = cipher
        self._notifier = notifier
        self._stats = stats
        self._chat = chat
        self._reset_view = reset_view

        self.user: UserProfile | None = None
        self.notes: NoteMap = {}
        self.bookmarks: list[Bookmark] = []
        self.has_synced = False
        self._note_store: NoteStore = LocalNoteStore(local)
        self._bookmark_store: BookmarkStore = LocalBookmarkStore(local)
        # Bumped on sign-out; a sync started under an older value is dropped.
        self._session = 0

    def _notify(self, message: str) -> None:
        if self._notifier is not None:
            self._notifier.show(message)

    async def load_guest_state(self) -> None:
        """Read guest notes and bookmarks from local storage (app start)."""
        self.notes = await self._note_store.load()
        self.bookmarks = await self._bookmark_store.load()

    # ── Session transitions ──────────────────────────────────────────────

    async def start_session(self, user: UserProfile) -> bool:
        """Pull the user's remote data, once per signed-in session.

        The guard is raised before any fetch so a second trigger while the
        first is still in flight does nothing. A failed fetch keeps the
        existing state; signing in again retries. If the user signs out
        before a fetch completes, its result is discarded.

        Returns:
            True if this call completed the sync for a session that is
            still active.
        """
        if self.has_synced:
            return False
        self.has_synced = True

        session = self._session
        self.user = user
        note_store = RemoteNoteStore(self._remote, self._cipher, user.id)
        bookmark_store = RemoteBookmarkStore(self._remote, user.id)
        self._note_store = note_store
        self._bookmark_store = bookmark_store
        self._notify(SYNCING)

        try:
            notes = await note_store.load()
            if session != self._session:
                logger.debug("Discarding notes for %s: signed out during sync", user.id)
                return False
            self.notes = notes
            bookmarks = await bookmark_store.load()
            if session != self._session:
                logger.debug("Discarding bookmarks for %s: signed out during sync", user.id)
                return False
            self.bookmarks = bookmarks
        except Exception:
            logger.exception("Error syncing user data for %s", user.id)

        if session != self._session:
            return False
        if self._chat is not None:
            await self._chat.sync_history(user)
        return session == self._session

    def end_session(self) -> None:
        """Sign-out: empty notes and bookmarks and return to guest storage."""
        self._session += 1
        self.user = None
        self.notes = {}
        self.bookmarks = []
        self.has_synced = False
        self._note_store = LocalNoteStore(self._local)
        self._bookmark_store = LocalBookmarkStore(self._local)
        if self._chat is not None:
            self._chat.reset_for_guest()
        if self._reset_view is not None:
            self._reset_view()

    # ── Writes ───────────────────────────────────────────────────────────

    async def save_note(self, note_id: str, content: str) -> None:
        """Set a note and persist it to the active tier.

        The in-memory map is updated first and is not rolled back if the
        write fails.
        """
        if not note_id:
            return
        self.notes = {**self.notes, note_id: content}
        try:
            await self._note_store.save(self.notes, note_id)
        except Exception:
            logger.exception("Error saving note %s", note_id)
            self._notify(SAVE_NOTE_ERROR)

        if (
            self.user is not None
            and self._stats is not None
            and self._stats.stats is not None
            and len(content) >= COUNTED_NOTE_LENGTH
        ):
            await self._stats.increment("notes_count")

    def is_bookmarked(self, verse_id: str) -> bool:
        return any(b.id == verse_id for b in self.bookmarks)

    async def toggle_bookmark(
        self, verse: Verse | Bookmark, book_name: str = "", chapter_num: str = ""
    ) -> bool:
        """Add or remove a bookmark for ``verse``.

        Returns:
            True if the verse is now bookmarked.
        """
        existing = next((b for b in self.bookmarks if b.id == verse.id), None)
        if existing is not None:
            changed = existing
            self.bookmarks = [b for b in self.bookmarks if b.id != verse.id]
        else:
            changed = Bookmark(
                id=verse.id,
                number=verse.number,
                text=verse.text,
                book_name=book_name,
                chapter_num=chapter_num,
            )
            self.bookmarks = [*self.bookmarks, changed]

        added = existing is None
        try:
            await self._bookmark_store.save(self.bookmarks, changed, added)
        except Exception:
            logger.exception("Error saving bookmark %s", verse.id)
            self._notify(SAVE_BOOKMARK_ERROR)
        return added
