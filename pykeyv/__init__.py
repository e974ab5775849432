"""pykeyv: storage-agnostic key-value caching.

Usage:
    from pykeyv import Keyv, RedisStore

    keyv = Keyv(store=RedisStore("redis://localhost:6379"), namespace="users")
    await keyv.set("user:1", {"name": "Ada"}, ttl=60_000)
"""

from pykeyv.application import (
    Keyv,
    TieredKeyv,
    create_keyv,
    create_redis_keyv,
    create_redis_keyv_non_blocking,
)
from pykeyv.core.errors import (
    ConfigurationException,
    KeyvError,
    KeyvException,
    SerializationException,
    StoreConnectionException,
    StoreOperationException,
    UnsupportedOperationException,
)
from pykeyv.domain.enums import KeyvHook
from pykeyv.domain.value_objects import KeyvEntry, StoredEnvelope
from pykeyv.infrastructure.compression import GzipCompression
from pykeyv.infrastructure.storage import (
    GenericStore,
    RedisStore,
    StoreRegistry,
    build_default_registry,
)

__all__ = [
    "ConfigurationException",
    "GenericStore",
    "GzipCompression",
    "Keyv",
    "KeyvEntry",
    "KeyvError",
    "KeyvException",
    "KeyvHook",
    "RedisStore",
    "SerializationException",
    "StoreConnectionException",
    "StoreOperationException",
    "StoreRegistry",
    "StoredEnvelope",
    "TieredKeyv",
    "UnsupportedOperationException",
    "build_default_registry",
    "create_keyv",
    "create_redis_keyv",
    "create_redis_keyv_non_blocking",
]
