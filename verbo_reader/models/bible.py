"""Bible catalog and navigation data models."""

from pydantic import BaseModel, ConfigDict, Field


class BibleVersion(BaseModel):
    """A selectable Bible edition."""

    name: str
    id: str


class BookCatalogEntry(BaseModel):
    """A book within an edition's catalog."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str  # short identifier, e.g. "JHN"
    name: str
    edition_id: str = Field(default="", alias="bibleId")


class ChapterRef(BaseModel):
    """A chapter of a book. ``number`` is the source's label ("1", "2", ...)."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    book_id: str = Field(alias="bookId")
    number: str

    @property
    def number_value(self) -> int | None:
        """The chapter number as an int, or None for non-numeric labels."""
        try:
            return int(self.number)
        except ValueError:
            return None


class Verse(BaseModel):
    """A verse. ``number`` follows the source numbering and may be non-dense."""

    id: str
    number: str
    text: str


class NavigationTarget(BaseModel):
    """A resolved reference waiting to be applied by the chapter loader."""

    model_config = ConfigDict(frozen=True)

    book: BookCatalogEntry
    book_query: str
    chapter_number: int
    verse_number: int | None = None

    def label(self) -> str:
        """Human readable form, e.g. ``Juan 3:16``."""
        suffix = f":{self.verse_number}" if self.verse_number else ""
        return f"{self.book.name} {self.chapter_number}{suffix}"


class PendingTarget(BaseModel):
    """Deferred navigation slots consumed by the chapter loader.

    One chapter slot and one verse slot; writing overwrites any unconsumed
    value.
    """

    chapter: int | None = None
    verse: int | None = None
