"""Cache statistics for observability.

Lightweight in-memory counters for one orchestrator instance. Counting is
toggled by the ``stats`` option; when disabled every recorder is a no-op.

Usage:
    keyv = Keyv(stats=True)
    await keyv.get("missing")

    print(f"Hit rate: {keyv.stats.hit_rate:.2%}")
    keyv.stats.to_dict()
"""

from typing import Any

from pykeyv.infrastructure.events.event_manager import EventManager


class StatsManager(EventManager):
    """Hit/miss/set/delete/error counters.

    Single event loop design, so counters are plain ints (no lock).

    Attributes:
        enabled: Whether recorders update the counters.
        hits: Reads that returned a live value.
        misses: Reads that returned nothing (absent or expired).
        sets: Successful writes.
        deletes: Delete calls.
        errors: Store errors seen by the orchestrator.
    """

    def __init__(self, enabled: bool = True, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.enabled = enabled
        self.reset()

    def hit(self) -> None:
        if self.enabled:
            self.hits += 1

    def miss(self) -> None:
        if self.enabled:
            self.misses += 1

    def set(self) -> None:
        if self.enabled:
            self.sets += 1

    def delete(self) -> None:
        if self.enabled:
            self.deletes += 1

    def error(self) -> None:
        if self.enabled:
            self.errors += 1

    def reset(self) -> None:
        """Zero every counter."""
        self.hits = 0
        self.misses = 0
        self.sets = 0
        self.deletes = 0
        self.errors = 0

    @property
    def total_requests(self) -> int:
        """Total reads (hits + misses)."""
        return self.hits + self.misses

    @property
    def hit_rate(self) -> float:
        """Hit rate (0.0 to 1.0)."""
        if self.total_requests == 0:
            return 0.0
        return self.hits / self.total_requests

    def to_dict(self) -> dict[str, Any]:
        """Convert counters to a dictionary for JSON serialization."""
        return {
            "enabled": self.enabled,
            "hits": self.hits,
            "misses": self.misses,
            "sets": self.sets,
            "deletes": self.deletes,
            "errors": self.errors,
            "total_requests": self.total_requests,
            "hit_rate": round(self.hit_rate, 4),
        }
