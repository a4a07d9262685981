"""Application shell wiring the reader core together."""

import logging
from collections.abc import Callable
from datetime import date
from typing import get_args

from verbo_reader.bible.client import BibleSource
from verbo_reader.bible.highlight import VerseHighlighter
from verbo_reader.bible.loader import ChapterLoader
from verbo_reader.bible.navigator import Navigator
from verbo_reader.chat.session import ChatSession, GenerationService
from verbo_reader.config import AppConfig
from verbo_reader.crypto import Cipher
from verbo_reader.models.user import Theme, UserProfile
from verbo_reader.notify import Notifier
from verbo_reader.progress.stats import ProfileStats, utc_today
from verbo_reader.progress.tracker import ReadProgressTracker
from verbo_reader.storage.local import THEME_KEY, LocalStorage
from verbo_reader.storage.remote import RemoteStore
from verbo_reader.sync import UserDataSynchronizer

logger = logging.getLogger(__name__)

READER_VIEW = "reader"
THEMES: tuple[str, ...] = get_args(Theme)


class ReaderApp:
    """One reading session: position, user data, chat and statistics.

    Args:
        config: Application configuration.
        source: Bible content source.
        remote: Remote store for signed-in users.
        cipher: Cipher for remote content.
        generator: Assistant backend.
        local: Guest local storage.
        notifier: Toast channel; a new one is created if omitted.
        today: Date provider for streak check-ins.
    """

    def __init__(
        self,
        config: AppConfig,
        source: BibleSource,
        remote: RemoteStore,
        cipher: Cipher,
        generator: GenerationService,
        local: LocalStorage,
        notifier: Notifier | None = None,
        today: Callable[[], date] = utc_today,
    ) -> None:
        self.config = config
        self.notifier = notifier or Notifier()
        self.local = local
        self.current_view = READER_VIEW
        self.theme: Theme = "dark"
        self.user: UserProfile | None = None

        self.highlighter = VerseHighlighter(
            timeout=config.reader.highlight_timeout_seconds,
            max_attempts=config.reader.scroll_max_attempts,
            interval=config.reader.scroll_interval_seconds,
        )
        self.loader = ChapterLoader(
            source,
            config.bible.default_bible_id,
            highlighter=self.highlighter,
            notifier=self.notifier,
            last_chapter_sentinel=config.reader.last_chapter_sentinel,
        )
        self.navigator = Navigator(self.loader, self.notifier, self.show_reader)
        self.stats = ProfileStats(remote, today=today)
        self.progress = ReadProgressTracker(local, self.stats, self.notifier)
        self.chat = ChatSession(
            config.chat,
            generator,
            remote=remote,
            cipher=cipher,
            navigate=self.navigator.detect_and_navigate,
            set_view=self.set_view,
        )
        self.sync = UserDataSynchronizer(
            local,
            remote,
            cipher,
            notifier=self.notifier,
            stats=self.stats,
            chat=self.chat,
            reset_view=self.show_reader,
        )

    def set_view(self, view: str) -> None:
        self.current_view = view

    def show_reader(self) -> None:
        self.set_view(READER_VIEW)

    def set_theme(self, theme: Theme) -> None:
        if theme not in THEMES:
            raise ValueError(f"Unknown theme '{theme}'. Supported: {', '.join(THEMES)}")
        self.theme = theme
        self.local.set_json(THEME_KEY, theme)

    async def start(self) -> None:
        """Restore local preferences and guest data, then load the catalog."""
        saved_theme = self.local.get_json(THEME_KEY)
        if saved_theme in THEMES:
            self.theme = saved_theme
        self.progress.load()
        await self.sync.load_guest_state()
        await self.loader.load_books()

    async def login(self, user: UserProfile) -> None:
        self.user = user
        self.stats.user = user
        await self.stats.refresh()
        if self.user is not user:
            logger.info("Sign-in of %s superseded before sync", user.id)
            return
        await self.sync.start_session(user)

    async def logout(self) -> None:
        self.user = None
        self.stats.user = None
        self.sync.end_session()

    async def open_reference(self, text: str) -> bool:
        """Navigate to a reference typed by the user."""
        return await self.navigator.detect_and_navigate(text) is not None
