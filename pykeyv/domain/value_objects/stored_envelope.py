"""Stored envelope value object.

The envelope is the unit persisted in every backend: the caller's value
plus an absolute expiration deadline in epoch milliseconds.
"""

import time
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)


@dataclass(frozen=True, slots=True)
class StoredEnvelope:
    """Value plus expiration deadline.

    Attributes:
        value: The caller's value.
        expires: Absolute deadline in epoch milliseconds (None = never).
    """

    value: Any
    expires: int | None = None

    def is_expired(self, now: int | None = None) -> bool:
        """Check whether the deadline has passed.

        Args:
            now: Reference time in epoch milliseconds (default: current time).

        Returns:
            True if the envelope carries a deadline that is in the past.
        """
        if self.expires is None:
            return False
        return (now if now is not None else now_ms()) > self.expires

    def to_dict(self) -> dict[str, Any]:
        """Convert to the plain mapping handed to serializers."""
        return {"value": self.value, "expires": self.expires}

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "StoredEnvelope":
        """Build an envelope from a decoded ``{value, expires}`` mapping.

        Args:
            data: Mapping with a ``value`` key and an optional ``expires`` key.

        Returns:
            StoredEnvelope instance.
        """
        expires = data.get("expires")
        return cls(
            value=data.get("value"),
            expires=int(expires) if isinstance(expires, (int, float)) else None,
        )
