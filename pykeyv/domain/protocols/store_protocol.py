"""Storage adapter contracts.

Adapters satisfy these protocols structurally (PEP 544): no inheritance is
required. The orchestrator decides which optional operations to use with
``isinstance`` checks against the runtime-checkable protocols, see
``pykeyv.domain.capabilities``.

Hierarchy:
    BasicStore          get / set / delete / clear (required)
    SupportsHas         has
    SupportsGetMany     get_many
    SupportsSetMany     set_many
    SupportsDeleteMany  delete_many
    SupportsHasMany     has_many
    BatchStore          all four batch operations
    IterableStore       iterator(namespace)
    DisconnectableStore disconnect
    NamespacedStore     store prefixes keys itself (``namespace`` attribute)
    ErrorEmitter        on / off for the ``error`` channel

Usage:
    from pykeyv.domain.protocols import BasicStore, SupportsGetMany

    if isinstance(store, SupportsGetMany):
        values = await store.get_many(keys)
"""

from collections.abc import AsyncIterator, Callable, Sequence
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class BasicStore(Protocol):
    """Minimal store contract every adapter satisfies."""

    async def get(self, key: str) -> Any:
        """Return the stored value (envelope, serialized text, raw) or None."""
        ...

    async def set(self, key: str, value: Any, ttl: int | None = None) -> Any:
        """Store a value; ``ttl`` in milliseconds."""
        ...

    async def delete(self, key: str) -> bool:
        """Delete a key; True if it existed."""
        ...

    async def clear(self) -> None:
        """Delete every key of the active namespace."""
        ...


@runtime_checkable
class SupportsHas(Protocol):
    async def has(self, key: str) -> bool: ...


@runtime_checkable
class SupportsGetMany(Protocol):
    async def get_many(self, keys: Sequence[str]) -> list[Any]:
        """Values in input order, None for misses."""
        ...


@runtime_checkable
class SupportsSetMany(Protocol):
    async def set_many(self, entries: Sequence[Any]) -> list[bool] | None:
        """Store ``KeyvEntry`` items; per-entry results or None."""
        ...


@runtime_checkable
class SupportsDeleteMany(Protocol):
    async def delete_many(self, keys: Sequence[str]) -> bool: ...


@runtime_checkable
class SupportsHasMany(Protocol):
    async def has_many(self, keys: Sequence[str]) -> list[bool]:
        """Existence flags in input order."""
        ...


@runtime_checkable
class BatchStore(
    BasicStore,
    SupportsGetMany,
    SupportsSetMany,
    SupportsDeleteMany,
    SupportsHasMany,
    Protocol,
):
    """Store offering every batch operation natively."""


@runtime_checkable
class IterableStore(Protocol):
    def iterator(self, namespace: str | None = None) -> AsyncIterator[tuple[str, Any]]:
        """Async generator of ``(key, value)`` pairs."""
        ...


@runtime_checkable
class PagedIterableStore(IterableStore, Protocol):
    """Iterable store that reads its keys in pages of ``iteration_limit``."""

    iteration_limit: int | None


@runtime_checkable
class DisconnectableStore(Protocol):
    async def disconnect(self) -> None: ...


@runtime_checkable
class NamespacedStore(Protocol):
    """Store that applies the namespace prefix itself.

    The orchestrator pushes its namespace into ``namespace`` and stops
    prefixing keys on its own.
    """

    namespace: str | None


@runtime_checkable
class ErrorEmitter(Protocol):
    """Store reporting background failures on an ``error`` channel."""

    def on(self, event: str, listener: Callable[..., Any]) -> Any: ...

    def off(self, event: str, listener: Callable[..., Any]) -> Any: ...
