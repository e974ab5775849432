"""Batch entry and key prefix value objects."""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class KeyvEntry:
    """One item of a ``set_many`` call.

    Attributes:
        key: Cache key.
        value: Value to store.
        ttl: Time to live in milliseconds (None = default TTL).
    """

    key: str
    value: Any
    ttl: int | None = None

    @classmethod
    def coerce(cls, entry: "KeyvEntry | Mapping[str, Any]") -> "KeyvEntry":
        """Accept either a KeyvEntry or a ``{key, value, ttl}`` mapping."""
        if isinstance(entry, KeyvEntry):
            return entry
        return cls(key=entry["key"], value=entry.get("value"), ttl=entry.get("ttl"))


@dataclass(frozen=True, slots=True)
class KeyPrefixData:
    """Result of splitting a physical key.

    Attributes:
        key: Key without the namespace prefix.
        namespace: Namespace found in the key, if any.
    """

    key: str
    namespace: str | None = None
