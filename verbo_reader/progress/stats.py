"""Profile statistics: cumulative counters and the daily reading streak."""

import logging
from collections.abc import Callable
from datetime import date, datetime, timedelta, timezone

from verbo_reader.models.user import UserProfile, UserStats
from verbo_reader.storage.remote import RemoteStore

logger = logging.getLogger(__name__)


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def next_streak(stats: UserStats, today: date) -> tuple[int, str] | None:
    """Compute the streak after a check-in on ``today``.

    Args:
        stats: Current statistics.
        today: The check-in date.

    Returns:
        ``(streak_days, last_activity_date)`` to store, or None when the
        user already checked in today.
    """
    today_str = today.isoformat()
    last = stats.last_activity_date or ""
    if last == today_str:
        return None

    yesterday_str = (today - timedelta(days=1)).isoformat()
    if last == yesterday_str:
        return (stats.streak_days or 0) + 1, today_str
    return 1, today_str


class ProfileStats:
    """Statistics of the signed-in user, mirrored to the remote profile.

    Updates are applied in memory first; the remote write is best effort
    and failures are only logged.

    Args:
        remote: Store holding the profile record.
        today: Provides the current date (UTC by default).
    """

    def __init__(self, remote: RemoteStore | None, today: Callable[[], date] = utc_today) -> None:
        self._remote = remote
        self._today = today
        self.user: UserProfile | None = None

    @property
    def stats(self) -> UserStats | None:
        return self.user.stats if self.user is not None else None

    async def refresh(self) -> None:
        """Reload the stats record from the remote profile, if present."""
        user = self.user
        if user is None or self._remote is None:
            return
        try:
            row = await self._remote.fetch_profile(user.id)
        except Exception:
            logger.exception("Error loading profile for %s", user.id)
            return
        if self.user is not user:
            logger.debug("Discarding profile for %s: user changed", user.id)
            return
        if row and row.get("stats"):
            stats = UserStats.model_validate({**UserStats().model_dump(), **row["stats"]})
            self.user = user.model_copy(update={"stats": stats})

    async def update_stats(self, **changes: object) -> None:
        """Merge ``changes`` into the user's stats and persist them."""
        if self.user is None or self.user.stats is None:
            return
        stats = self.user.stats.model_copy(update=changes)
        self.user = self.user.model_copy(update={"stats": stats})
        user_id = self.user.id
        if self._remote is None:
            return
        try:
            await self._remote.update_profile_stats(user_id, stats.model_dump())
        except Exception:
            logger.exception("Error updating stats for %s", user_id)

    async def increment(self, field: str) -> None:
        """Add one to a counter field such as ``chapters_read``."""
        if self.stats is None:
            return
        await self.update_stats(**{field: getattr(self.stats, field) + 1})

    async def check_in_daily(self) -> None:
        """Record today's activity and extend or restart the streak."""
        if self.stats is None:
            return
        result = next_streak(self.stats, self._today())
        if result is None:
            return
        streak, today = result
        await self.update_stats(streak_days=streak, last_activity_date=today)
