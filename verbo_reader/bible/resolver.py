"""Free-text scripture reference resolution.

Turns text such as ``"Juan 3:16"``, ``"1 Corintios 13"`` or ``"**Salmos 23**"``
into a :class:`NavigationTarget` against a loaded book catalog. Most chat
text contains no reference at all, so failing to resolve is an ordinary
outcome and returns ``None``.
"""

import logging
import re
import unicodedata

from verbo_reader.models.bible import BookCatalogEntry, NavigationTarget

logger = logging.getLogger(__name__)

# Optional leading 1-3, a book-name fragment (may be two words), the chapter
# and an optional ":verse".
REFERENCE_PATTERN = re.compile(
    r"([1-3]?\s?[^\W_]+\s*[^\W\d_]*)\s*(\d+)(?::(\d+))?",
    re.IGNORECASE,
)

MARKDOWN_CHARS = re.compile(r"[*_#]")

MIN_FRAGMENT_LENGTH = 2


def normalize(text: str) -> str:
    """Lowercase and strip diacritics (NFD, combining marks removed)."""
    decomposed = unicodedata.normalize("NFD", text.lower())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def find_book(fragment: str, catalog: list[BookCatalogEntry]) -> BookCatalogEntry | None:
    """Find the catalog entry a book-name fragment refers to.

    An exact match on the short identifier wins over any name match. Names
    match when the normalized fragment is a substring of the normalized
    book name; the first such entry in catalog order is returned.

    Args:
        fragment: Lowercased, trimmed book fragment as typed.
        catalog: Books of the active edition, in canonical order.

    Returns:
        The matching entry, or None.
    """
    for book in catalog:
        if book.id.lower() == fragment:
            return book

    query = normalize(fragment)
    for book in catalog:
        if query in normalize(book.name):
            return book
    return None


def resolve(free_text: str, catalog: list[BookCatalogEntry]) -> NavigationTarget | None:
    """Resolve free text into a navigation target.

    Args:
        free_text: User input or assistant output that may contain a reference.
        catalog: Books of the active edition.

    Returns:
        The resolved target, or None when the text holds no reference to a
        book in the catalog.
    """
    if not catalog or not free_text:
        return None

    clean_text = MARKDOWN_CHARS.sub("", free_text).strip()
    match = REFERENCE_PATTERN.search(clean_text)
    if not match:
        return None

    fragment = match.group(1).lower().strip()
    # A lone conjunction before a number ("y 3") is not a book.
    if len(normalize(fragment)) < MIN_FRAGMENT_LENGTH:
        return None

    book = find_book(fragment, catalog)
    if book is None:
        logger.debug("No book in catalog matches %r", fragment)
        return None

    verse = match.group(3)
    return NavigationTarget(
        book=book,
        book_query=fragment,
        chapter_number=int(match.group(2)),
        verse_number=int(verse) if verse else None,
    )
