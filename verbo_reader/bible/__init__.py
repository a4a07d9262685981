"""Bible content: API client, reference resolution, chapter loading and navigation."""

from verbo_reader.bible.client import ApiBibleClient, BibleApiError, BibleSource
from verbo_reader.bible.highlight import VerseHighlighter
from verbo_reader.bible.loader import ChapterLoader, LoaderState
from verbo_reader.bible.navigator import Navigator
from verbo_reader.bible.resolver import resolve

__all__ = [
    "ApiBibleClient",
    "BibleApiError",
    "BibleSource",
    "ChapterLoader",
    "LoaderState",
    "Navigator",
    "VerseHighlighter",
    "resolve",
]
