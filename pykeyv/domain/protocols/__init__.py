"""Domain protocols package."""

from pykeyv.domain.protocols.compression_protocol import CompressionAdapter
from pykeyv.domain.protocols.logger_protocol import LoggerProtocol
from pykeyv.domain.protocols.store_protocol import (
    BasicStore,
    BatchStore,
    DisconnectableStore,
    ErrorEmitter,
    IterableStore,
    NamespacedStore,
    PagedIterableStore,
    SupportsDeleteMany,
    SupportsGetMany,
    SupportsHas,
    SupportsHasMany,
    SupportsSetMany,
)

__all__ = [
    "BasicStore",
    "BatchStore",
    "CompressionAdapter",
    "DisconnectableStore",
    "ErrorEmitter",
    "IterableStore",
    "LoggerProtocol",
    "NamespacedStore",
    "PagedIterableStore",
    "SupportsDeleteMany",
    "SupportsGetMany",
    "SupportsHas",
    "SupportsHasMany",
    "SupportsSetMany",
]
