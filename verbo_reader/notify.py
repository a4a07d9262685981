"""Transient user-facing notifications."""

import logging

logger = logging.getLogger(__name__)


class Notifier:
    """Collects toast messages shown to the user.

    Only the latest message is considered visible; ``history`` keeps every
    message for inspection.
    """

    def __init__(self) -> None:
        self.current: str | None = None
        self.history: list[str] = []

    def show(self, message: str) -> None:
        logger.info("Notice: %s", message)
        self.current = message
        self.history.append(message)

    def dismiss(self) -> None:
        self.current = None
