"""Reading progress and profile statistics."""

from verbo_reader.progress.stats import ProfileStats, next_streak
from verbo_reader.progress.tracker import ReadProgressTracker

__all__ = ["ProfileStats", "ReadProgressTracker", "next_streak"]
