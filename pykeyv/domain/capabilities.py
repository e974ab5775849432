"""Capability descriptor for storage adapters.

Computed once when the orchestrator is built and again on every store
swap. Detection goes through the runtime-checkable protocols in
``pykeyv.domain.protocols`` rather than ad-hoc attribute probing.
"""

from dataclasses import asdict, dataclass
from typing import Any

from pykeyv.domain.protocols import (
    DisconnectableStore,
    IterableStore,
    SupportsDeleteMany,
    SupportsGetMany,
    SupportsHas,
    SupportsHasMany,
    SupportsSetMany,
)


@dataclass(frozen=True, slots=True, kw_only=True)
class StoreCapabilities:
    """Which optional operations a store instance offers."""

    has: bool = False
    get_many: bool = False
    set_many: bool = False
    delete_many: bool = False
    has_many: bool = False
    iterator: bool = False
    disconnect: bool = False

    def to_dict(self) -> dict[str, bool]:
        return asdict(self)


def detect_capabilities(store: Any) -> StoreCapabilities:
    """Inspect a store instance.

    Args:
        store: Any object satisfying BasicStore.

    Returns:
        StoreCapabilities for the instance.
    """
    return StoreCapabilities(
        has=isinstance(store, SupportsHas),
        get_many=isinstance(store, SupportsGetMany),
        set_many=isinstance(store, SupportsSetMany),
        delete_many=isinstance(store, SupportsDeleteMany),
        has_many=isinstance(store, SupportsHasMany),
        iterator=isinstance(store, IterableStore),
        disconnect=isinstance(store, DisconnectableStore),
    )
