"""Entry point: open a scripture reference and print it."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from verbo_reader.bible.client import ApiBibleClient
from verbo_reader.bible.loader import ChapterLoader
from verbo_reader.bible.navigator import Navigator
from verbo_reader.config import load_config
from verbo_reader.notify import Notifier
from verbo_reader.storage.database import initialize_database


async def read(reference: str, bible_id: str | None, config_path: str) -> int:
    """Load the catalog, navigate to ``reference`` and print its verses."""
    config = load_config(config_path)
    logging.basicConfig(
        level=config.app.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    Path(config.storage.sqlite_path).parent.mkdir(parents=True, exist_ok=True)
    initialize_database(config.storage.sqlite_path)

    if not config.api_bible_key:
        print("API_BIBLE_KEY is not set", file=sys.stderr)
        return 2

    client = ApiBibleClient(
        config.api_bible_key,
        base_url=config.bible.base_url,
        timeout=config.bible.request_timeout,
    )
    notifier = Notifier()
    loader = ChapterLoader(
        client,
        bible_id or config.bible.default_bible_id,
        notifier=notifier,
        last_chapter_sentinel=config.reader.last_chapter_sentinel,
    )
    await loader.load_books()

    target = await Navigator(loader, notifier).detect_and_navigate(reference)
    if target is None:
        print(f"No book matches '{reference}'", file=sys.stderr)
        return 1
    if not loader.verses:
        print(notifier.current or "Nothing to show", file=sys.stderr)
        return 1

    edition = config.bible.version_name(loader.bible_id)
    print(f"{loader.current_book.name} {loader.current_chapter.number} ({edition})")
    for verse in loader.verses:
        marker = ">" if verse.number == loader.highlighter.verse_id else " "
        print(f"{marker} {verse.number} {verse.text.strip()}")
    return 0


def main() -> None:
    """Parse arguments and print the requested passage."""
    parser = argparse.ArgumentParser(description="Open a Bible reference.")
    parser.add_argument("reference", help='e.g. "Juan 3:16"')
    parser.add_argument("--bible-id", help="Edition id (defaults to config)")
    parser.add_argument("--config", default="config.yaml")
    args = parser.parse_args()
    sys.exit(asyncio.run(read(args.reference, args.bible_id, args.config)))


if __name__ == "__main__":
    main()
