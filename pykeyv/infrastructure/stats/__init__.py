"""Statistics infrastructure."""

from pykeyv.infrastructure.stats.stats_manager import StatsManager

__all__ = ["StatsManager"]
