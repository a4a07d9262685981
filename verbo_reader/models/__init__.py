"""Data models for the Verbo reader."""

from verbo_reader.models.bible import (
    BibleVersion,
    BookCatalogEntry,
    ChapterRef,
    NavigationTarget,
    PendingTarget,
    Verse,
)
from verbo_reader.models.user import (
    Bookmark,
    ChatMessage,
    NoteMap,
    ReadProgressMap,
    Theme,
    UserProfile,
    UserStats,
    general_note_key,
)

__all__ = [
    "BibleVersion",
    "BookCatalogEntry",
    "Bookmark",
    "ChapterRef",
    "ChatMessage",
    "NavigationTarget",
    "NoteMap",
    "PendingTarget",
    "ReadProgressMap",
    "Theme",
    "UserProfile",
    "UserStats",
    "Verse",
    "general_note_key",
]
