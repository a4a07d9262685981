"""Chat with the assistant, kept in sync with the signed-in user's history."""

import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Any, Protocol

from verbo_reader.chat.directives import (
    extract_nav_directive,
    has_map_data,
    strip_nav_directives,
)
from verbo_reader.config import ChatConfig
from verbo_reader.crypto import Cipher, decrypt_field, encrypt_field
from verbo_reader.models.bible import BookCatalogEntry, ChapterRef, Verse
from verbo_reader.models.user import ChatMessage, UserProfile
from verbo_reader.storage.remote import RemoteStore

logger = logging.getLogger(__name__)

Location = dict[str, float]


class GenerationService(Protocol):
    """Generative backend used by the chat."""

    async def generate_chat_response(
        self,
        history: list[ChatMessage],
        verse_context: str | None,
        is_study: bool = False,
        location: Location | None = None,
    ) -> str: ...

    async def generate_image(self, prompt: str) -> str | None: ...


def build_verse_context(
    verse: Verse | None, book: BookCatalogEntry | None, chapter: ChapterRef | None
) -> str:
    """Describe what the user is reading, for the assistant prompt."""
    book_name = book.name if book else ""
    chapter_number = chapter.number if chapter else ""
    if verse is not None:
        return f'"{verse.text}" ({book_name} {chapter_number}:{verse.number})'
    return f"Chapter {chapter_number} of {book_name}"


class ChatSession:
    """The conversation shown in the assistant panel.

    Messages are kept in memory; when a user is signed in each new message
    is also written, encrypted, to the remote store. Remote writes are best
    effort.

    Args:
        config: Seed and fallback texts.
        generator: Produces assistant replies and images.
        remote: Store for the signed-in user's history.
        cipher: Encrypts message text at rest.
        navigate: Called with text that may contain a scripture reference.
        set_view: Switches the app view (``"map"`` when the reply carries
            map data).
    """

    def __init__(
        self,
        config: ChatConfig,
        generator: GenerationService,
        remote: RemoteStore | None = None,
        cipher: Cipher | None = None,
        navigate: Callable[[str], Awaitable[Any]] | None = None,
        set_view: Callable[[str], None] | None = None,
    ) -> None:
        self._config = config
        self._generator = generator
        self._remote = remote
        self._cipher = cipher
        self._navigate = navigate
        self._set_view = set_view
        self.user: UserProfile | None = None
        self.is_typing = False
        self.messages: list[ChatMessage] = [self._seed(config.guest_greeting, "init")]

    @staticmethod
    def _seed(text: str, message_id: str | None = None) -> ChatMessage:
        if message_id is None:
            return ChatMessage(role="assistant", text=text)
        return ChatMessage(id=message_id, role="assistant", text=text)

    # ── Session lifecycle ────────────────────────────────────────────────

    async def sync_history(self, user: UserProfile) -> None:
        """Replace the conversation with the user's stored history.

        An empty history is replaced by a personalised greeting. On fetch
        failure the current conversation is kept. The result is dropped if
        the session was reset or handed to another user meanwhile.
        """
        self.user = user
        if self._remote is None or self._cipher is None:
            return
        try:
            rows = await self._remote.fetch_chat_history(user.id)
        except Exception:
            logger.exception("Error syncing chat history for %s", user.id)
            return

        if self.user is not user:
            logger.debug("Discarding chat history for %s: session changed", user.id)
            return

        if not rows:
            self.messages = [
                self._seed(self._config.user_greeting.format(name=user.name), "init-auth")
            ]
            return

        self.messages = [
            ChatMessage(
                id=str(row["id"]),
                role=row["role"],
                text=decrypt_field(self._cipher, row.get("encrypted_content")),
                image=row.get("image_url"),
            )
            for row in rows
        ]

    def reset_for_guest(self) -> None:
        self.user = None
        self.messages = [self._seed(self._config.guest_greeting, "init")]

    async def _persist(self, message: ChatMessage) -> None:
        if self.user is None or self._remote is None or self._cipher is None:
            return
        try:
            await self._remote.insert_chat_message(
                self.user.id,
                {
                    "id": message.id,
                    "role": message.role,
                    "encrypted_content": encrypt_field(self._cipher, message.text),
                    "image_url": message.image,
                    "created_at": datetime.now(timezone.utc).isoformat(),
                },
            )
        except Exception:
            logger.exception("Error saving chat message %s", message.id)

    async def _try_navigate(self, text: str) -> None:
        if self._navigate is None or not text:
            return
        try:
            await self._navigate(text)
        except Exception:
            logger.exception("Navigation from chat text failed")

    # ── Messaging ────────────────────────────────────────────────────────

    async def send_message(
        self,
        text: str,
        verse: Verse | None = None,
        book: BookCatalogEntry | None = None,
        chapter: ChapterRef | None = None,
        is_study: bool = False,
        location: Location | None = None,
    ) -> ChatMessage | None:
        """Send a user message and append the assistant's reply.

        Blank input, or input while a reply is pending, is ignored. The user
        text is checked for a reference first. A ``[NAV:...]`` directive in
        the reply drives navigation; without one the visible reply text is
        checked instead. Directives never reach the stored reply.

        Returns:
            The assistant message, or None if the input was ignored.
        """
        if not text or not text.strip() or self.is_typing:
            return None

        user_message = ChatMessage(role="user", text=str(text))
        self.messages.append(user_message)
        self.is_typing = True
        try:
            await self._persist(user_message)
            await self._try_navigate(text)

            try:
                reply = await self._generator.generate_chat_response(
                    list(self.messages),
                    build_verse_context(verse, book, chapter),
                    is_study,
                    location,
                )
            except Exception:
                logger.exception("Chat generation failed")
                reply = self._config.fallback_reply

            clean = strip_nav_directives(reply)
            directive = extract_nav_directive(reply)
            await self._try_navigate(directive if directive else clean)

            if has_map_data(reply) and self._set_view is not None:
                self._set_view("map")

            assistant_message = ChatMessage(role="assistant", text=clean)
            self.messages.append(assistant_message)
            await self._persist(assistant_message)
            return assistant_message
        finally:
            self.is_typing = False

    async def generate_image(self, verse: Verse | None) -> ChatMessage | None:
        """Ask for an illustration of ``verse`` and append it to the chat."""
        if verse is None or self.is_typing:
            return None
        self.is_typing = True
        try:
            try:
                image_url = await self._generator.generate_image(verse.text)
            except Exception:
                logger.exception("Image generation failed")
                image_url = None
            message = ChatMessage(
                role="assistant",
                text=self._config.image_caption if image_url else self._config.image_error,
                image=image_url or None,
            )
            self.messages.append(message)
            await self._persist(message)
            return message
        finally:
            self.is_typing = False

    async def clear(self) -> None:
        """Delete the conversation (remotely too when signed in) and reseed it."""
        if self.user is not None and self._remote is not None:
            try:
                await self._remote.clear_chat_history(self.user.id)
            except Exception:
                logger.exception("Error clearing chat history for %s", self.user.id)
        self.messages = [self._seed(self._config.cleared_message)]
