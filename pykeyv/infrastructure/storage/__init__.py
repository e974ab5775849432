"""Store adapters and the store registry."""

from pykeyv.infrastructure.storage.generic_store import GenericStore
from pykeyv.infrastructure.storage.redis_store import RedisStore
from pykeyv.infrastructure.storage.registry import StoreRegistry, build_default_registry

__all__ = ["GenericStore", "RedisStore", "StoreRegistry", "build_default_registry"]
