"""User-owned data: notes, bookmarks, chat messages and profile stats."""

from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

# verseId, or "<bookId>-<chapterNumber>-GENERAL" for chapter notes -> plaintext
NoteMap = dict[str, str]

# bookId -> completed chapter numbers (as strings)
ReadProgressMap = dict[str, list[str]]

Theme = Literal["dark", "light", "sepia"]


def general_note_key(book_id: str, chapter_number: str) -> str:
    """Key under which a chapter-level note is stored."""
    return f"{book_id}-{chapter_number}-GENERAL"


class Bookmark(BaseModel):
    """A saved verse with the display fields denormalized."""

    model_config = ConfigDict(populate_by_name=True)

    id: str  # verse id
    number: str
    text: str
    book_name: str = Field(default="", alias="bookName")
    chapter_num: str = Field(default="", alias="chapterNum")


class ChatMessage(BaseModel):
    """A single message in the assistant conversation."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    role: Literal["user", "assistant", "system"]
    text: str
    image: str | None = None


class UserStats(BaseModel):
    """Cumulative reading statistics kept on the profile record."""

    chapters_read: int = 0
    notes_count: int = 0
    streak_days: int = 0
    last_activity_date: str | None = None  # ISO date, UTC


class UserProfile(BaseModel):
    """The authenticated identity as seen by the reader."""

    id: str
    name: str = ""
    email: str = ""
    role: Literal["user", "admin", "leader"] = "user"
    stats: UserStats | None = Field(default_factory=UserStats)
