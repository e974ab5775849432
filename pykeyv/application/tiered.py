"""Two-level cache: fast local tier in front of an authoritative remote tier.

Reads try the local tier first. A local miss, or a local value the
validator rejects as stale, falls through to the remote tier, and a remote
hit is written back to the local tier. Writes, deletes and clears go to
both tiers unless ``local_only`` is set.

This is a coherence policy, not a consistency protocol: staleness is
bounded only by the local tier's TTL and by the validator.

Usage:
    cache = TieredKeyv(
        local=Keyv(namespace="users", ttl=5_000),
        remote=create_redis_keyv("redis://localhost:6379", namespace="users"),
        validator=lambda value, key: value.get("version") == CURRENT_VERSION,
    )
    await cache.get("user:1")
"""

import asyncio
from collections.abc import AsyncIterator, Callable, Mapping, Sequence
from typing import Any, TypeAlias

from pykeyv.application.keyv import Keyv
from pykeyv.domain.protocols import LoggerProtocol, PagedIterableStore
from pykeyv.domain.value_objects import KeyvEntry
from pykeyv.infrastructure.events.event_manager import EventManager

Validator: TypeAlias = Callable[[Any, str], bool]

DEFAULT_ITERATION_LIMIT = 10


def accept_all(value: Any, key: str) -> bool:
    return True


class TieredKeyv(EventManager):
    """Local/remote tiered cache.

    Args:
        local: Local tier (default: in-memory Keyv).
        remote: Remote tier (default: in-memory Keyv).
        validator: ``validator(value, key)``; False marks a local value stale.
        local_only: Leave the remote tier untouched on writes and deletes.
        iteration_limit: Page size forwarded to a paging remote store.
        logger: Logger override.
    """

    def __init__(
        self,
        *,
        local: Keyv | None = None,
        remote: Keyv | None = None,
        validator: Validator = accept_all,
        local_only: bool = False,
        iteration_limit: int = DEFAULT_ITERATION_LIMIT,
        logger: LoggerProtocol | None = None,
    ) -> None:
        super().__init__(logger=logger)
        self.local = local if local is not None else Keyv(logger=logger)
        self.remote = remote if remote is not None else Keyv(logger=logger)
        self.validator = validator
        self.local_only = local_only
        self.iteration_limit = iteration_limit
        self.local.on("error", self._forward_error)
        self.remote.on("error", self._forward_error)

    @property
    def opts(self) -> dict[str, Any]:
        return {
            "validator": self.validator,
            "local_only": self.local_only,
            "iteration_limit": self.iteration_limit,
            "dialect": "tiered",
        }

    def _forward_error(self, error: Any) -> None:
        self.emit("error", error)

    def _tiers(self) -> list[Keyv]:
        return [self.local] if self.local_only else [self.local, self.remote]

    async def get(self, key: str) -> Any:
        """Local value if present and valid, otherwise the remote value."""
        local_value = await self.local.get(key)
        if local_value is not None and self.validator(local_value, key):
            return local_value

        remote_value = await self.remote.get(key)
        if remote_value is not None:
            await self.local.set(key, remote_value)
            self.logger.debug("local_tier_backfilled", key=key)
        return remote_value

    async def get_many(self, keys: Sequence[str]) -> list[Any]:
        return list(await asyncio.gather(*(self.get(key) for key in keys)))

    async def has(self, key: str) -> bool:
        local_value = await self.local.get(key)
        if local_value is not None and self.validator(local_value, key):
            return True
        return await self.remote.has(key)

    async def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        """Write to every active tier; True when all writes succeeded."""
        results = await asyncio.gather(*(tier.set(key, value, ttl) for tier in self._tiers()))
        return all(results)

    async def set_many(self, entries: Sequence[KeyvEntry | Mapping[str, Any]]) -> list[bool]:
        """Write entries to every active tier; one flag per entry."""
        items = [KeyvEntry.coerce(entry) for entry in entries]
        per_tier = await asyncio.gather(*(tier.set_many(items) for tier in self._tiers()))
        return [all(flags) for flags in zip(*per_tier, strict=True)] if items else []

    async def delete(self, key: str) -> bool:
        results = await asyncio.gather(*(tier.delete(key) for tier in self._tiers()))
        return all(results)

    async def delete_many(self, keys: Sequence[str]) -> bool:
        results = await asyncio.gather(*(self.delete(key) for key in keys))
        return all(results)

    async def clear(self) -> None:
        await asyncio.gather(*(tier.clear() for tier in self._tiers()))

    async def iterator(self, namespace: str | None = None) -> AsyncIterator[tuple[str, Any]]:
        """Iterate the remote tier, the authoritative copy."""
        store = self.remote.store
        if isinstance(store, PagedIterableStore):
            store.iteration_limit = self.iteration_limit
        async for entry in self.remote.iterator(namespace):
            yield entry

    async def disconnect(self) -> None:
        await asyncio.gather(self.local.disconnect(), self.remote.disconnect())
