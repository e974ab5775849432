"""Store registry.

Maps a configuration tag (``memory``, ``redis``, ...) to a factory that
builds a store. Tags are resolved when the cache is configured; an unknown
tag fails immediately with a ConfigurationException instead of surfacing
at the first cache call.

Usage:
    registry = build_default_registry()
    store = registry.create("memory", namespace="sessions")
    store = registry.create_from_uri("redis://localhost:6379/0", namespace="jobs")

    # Third-party adapters plug in the same way
    registry.register("sqlite", lambda uri=None, **options: SqliteStore(uri, **options))
"""

from collections.abc import Callable
from typing import Any, TypeAlias

from pykeyv.core.enums import ErrorCode
from pykeyv.core.errors import ConfigurationError, ConfigurationException
from pykeyv.infrastructure.storage.generic_store import GenericStore
from pykeyv.infrastructure.storage.redis_store import RedisStore

StoreFactory: TypeAlias = Callable[..., Any]


class StoreRegistry:
    """Tag to store factory mapping.

    Factories are called as ``factory(uri=<uri or None>, **options)``.
    """

    def __init__(self) -> None:
        self._factories: dict[str, StoreFactory] = {}

    @property
    def tags(self) -> list[str]:
        return sorted(self._factories)

    def register(self, tag: str, factory: StoreFactory) -> None:
        """Register (or replace) the factory for a tag."""
        self._factories[tag.lower()] = factory

    def is_registered(self, tag: str) -> bool:
        return tag.lower() in self._factories

    def _factory(self, tag: str) -> StoreFactory:
        factory = self._factories.get(tag.lower())
        if factory is None:
            raise ConfigurationException(
                ConfigurationError(
                    code=ErrorCode.INVALID_CONFIGURATION,
                    message=(
                        f"Unknown store {tag!r}; registered stores: "
                        f"{', '.join(self.tags) or 'none'}"
                    ),
                    option="store",
                    details={"tag": tag},
                )
            )
        return factory

    def create(self, tag: str, **options: Any) -> Any:
        """Build a store from its tag.

        Raises:
            ConfigurationException: Tag is not registered.
        """
        return self._factory(tag)(uri=None, **options)

    def create_from_uri(self, uri: str, **options: Any) -> Any:
        """Build a store from a connection URI; the scheme is the tag.

        Raises:
            ConfigurationException: URI has no scheme or the scheme is not
                registered.
        """
        scheme, separator, _ = uri.partition("://")
        if not separator or not scheme:
            raise ConfigurationException(
                ConfigurationError(
                    code=ErrorCode.INVALID_CONFIGURATION,
                    message=f"Store URI {uri!r} has no scheme",
                    option="store",
                )
            )
        return self._factory(scheme)(uri=uri, **options)

    def resolve(self, store: str, **options: Any) -> Any:
        """Build a store from either a tag or a URI."""
        if "://" in store:
            return self.create_from_uri(store, **options)
        return self.create(store, **options)


def _memory_store(uri: str | None = None, **options: Any) -> GenericStore:
    return GenericStore(**options)


def _redis_store(uri: str | None = None, **options: Any) -> RedisStore:
    return RedisStore(uri, **options)


def _redis_cluster_store(uri: str | None = None, **options: Any) -> RedisStore:
    url = (uri or "redis://localhost:6379").replace("redis+cluster://", "redis://", 1)
    options.pop("cluster", None)
    return RedisStore.from_cluster_url(url, **options)


def build_default_registry() -> StoreRegistry:
    """Registry with the built-in stores.

    Tags: ``memory``, ``redis``, ``rediss``, ``redis+cluster``.
    """
    registry = StoreRegistry()
    registry.register("memory", _memory_store)
    registry.register("redis", _redis_store)
    registry.register("rediss", _redis_store)
    registry.register("redis+cluster", _redis_cluster_store)
    return registry
