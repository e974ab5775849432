"""Generic store adapter over any mutable mapping.

Turns a ``MutableMapping`` (dict, cachetools caches, ...) into a full store:
namespace key prefixing, TTL-stamped entries with lazy eviction, and
sequential fallbacks for the batch operations.

Physical layout:
    "<namespace><separator><key>" -> {"value": <stored value>, "expires": <ms | None>}

Usage:
    store = GenericStore({}, namespace="cache")
    await store.set("user:1", {"name": "Ada"}, ttl=60_000)
    await store.get("user:1")  # {"name": "Ada"}

    # Per-tenant namespace, evaluated on every call
    store = GenericStore(cachetools.LRUCache(1024), namespace=lambda: tenant.get())
"""

from collections.abc import AsyncIterator, Callable, MutableMapping, Sequence
from typing import Any, TypeAlias

from pykeyv.core.enums import ErrorCode
from pykeyv.core.errors import ConfigurationError, ConfigurationException
from pykeyv.domain.protocols.logger_protocol import LoggerProtocol
from pykeyv.domain.value_objects import KeyPrefixData, KeyvEntry, now_ms
from pykeyv.infrastructure.enums import InfrastructureErrorCode
from pykeyv.infrastructure.errors import StoreError
from pykeyv.infrastructure.events.event_manager import EventManager

Namespace: TypeAlias = str | Callable[[], str | None] | None

DEFAULT_KEY_SEPARATOR = "::"

_MISSING = object()


class GenericStore(EventManager):
    """Store adapter wrapping a mutable mapping.

    Args:
        store: Backing mapping (default: new dict).
        namespace: Static namespace or zero-argument callable.
        key_separator: Separator between namespace and key (default "::").
        logger: Logger override.

    Raises:
        ConfigurationException: Static namespace contains the separator.
    """

    def __init__(
        self,
        store: MutableMapping[str, Any] | None = None,
        *,
        namespace: Namespace = None,
        key_separator: str = DEFAULT_KEY_SEPARATOR,
        logger: LoggerProtocol | None = None,
    ) -> None:
        super().__init__(logger=logger)
        if not key_separator:
            raise ConfigurationException(
                ConfigurationError(
                    code=ErrorCode.INVALID_CONFIGURATION,
                    message="key_separator must not be empty",
                    option="key_separator",
                )
            )
        self._store: MutableMapping[str, Any] = {} if store is None else store
        self._key_separator = key_separator
        self._namespace: Namespace = None
        self._options = {"namespace": namespace, "key_separator": key_separator}
        self.set_namespace(namespace)

    @property
    def store(self) -> MutableMapping[str, Any]:
        return self._store

    @store.setter
    def store(self, store: MutableMapping[str, Any]) -> None:
        self._store = store

    @property
    def key_separator(self) -> str:
        return self._key_separator

    @property
    def opts(self) -> dict[str, Any]:
        return dict(self._options)

    @property
    def namespace(self) -> str | None:
        """Current namespace (resolved when it is a callable)."""
        return self.get_namespace()

    @namespace.setter
    def namespace(self, namespace: Namespace) -> None:
        self.set_namespace(namespace)

    def get_namespace(self) -> str | None:
        if callable(self._namespace):
            return self._namespace()
        return self._namespace

    def set_namespace(self, namespace: Namespace) -> None:
        """Set a static namespace, a callable, or None.

        Raises:
            ConfigurationException: Static namespace contains the separator,
                which would make prefixed keys ambiguous.
        """
        if isinstance(namespace, str) and self._key_separator in namespace:
            raise ConfigurationException(
                ConfigurationError(
                    code=ErrorCode.INVALID_NAMESPACE,
                    message=(
                        f"Namespace {namespace!r} must not contain the key "
                        f"separator {self._key_separator!r}"
                    ),
                    option="namespace",
                )
            )
        self._namespace = namespace or None

    def get_key_prefix(self, key: str, namespace: str | None = None) -> str:
        """Join namespace and key; the bare key when there is no namespace."""
        if namespace:
            return f"{namespace}{self._key_separator}{key}"
        return key

    def get_key_prefix_data(self, key: str) -> KeyPrefixData:
        """Split a physical key on the first separator."""
        namespace, separator, rest = key.partition(self._key_separator)
        if not separator:
            return KeyPrefixData(key=key)
        return KeyPrefixData(key=rest, namespace=namespace)

    def _prefixed(self, key: str) -> str:
        return self.get_key_prefix(key, self.get_namespace())

    def _read(self, physical_key: str) -> Any:
        """Return the stored value, evicting the entry when expired."""
        data = self._store.get(physical_key)
        if data is None:
            return None
        if isinstance(data, dict) and "value" in data:
            expires = data.get("expires")
            if expires is not None and now_ms() > expires:
                self._store.pop(physical_key, None)
                self.logger.debug("expired_entry_evicted", key=physical_key)
                return None
            return data["value"]
        return data

    async def get(self, key: str) -> Any:
        return self._read(self._prefixed(key))

    async def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        """Store a value; ``ttl`` in milliseconds (None or 0 = never expires)."""
        expires = now_ms() + ttl if ttl else None
        self._store[self._prefixed(key)] = {"value": value, "expires": expires}
        return True

    async def set_many(self, entries: Sequence[KeyvEntry | dict[str, Any]]) -> list[bool]:
        results = []
        for entry in map(KeyvEntry.coerce, entries):
            results.append(await self.set(entry.key, entry.value, entry.ttl))
        return results

    async def delete(self, key: str) -> bool:
        return self._store.pop(self._prefixed(key), _MISSING) is not _MISSING

    async def delete_many(self, keys: Sequence[str]) -> bool:
        """Delete keys one by one.

        Returns:
            True when every delete ran, False when the mapping raised. The
            failure is emitted on the ``error`` channel, never raised.
        """
        try:
            for key in keys:
                self._store.pop(self._prefixed(key), None)
        except Exception as e:
            self.emit(
                "error",
                StoreError(
                    code=ErrorCode.STORE_OPERATION_FAILED,
                    message=f"Failed to delete keys: {e}",
                    infrastructure_code=InfrastructureErrorCode.STORE_DELETE_ERROR,
                    details={"operation": "delete_many", "key_count": len(keys)},
                    cause=e,
                ),
            )
            return False
        return True

    async def has(self, key: str) -> bool:
        return await self.get(key) is not None

    async def get_many(self, keys: Sequence[str]) -> list[Any]:
        return [await self.get(key) for key in keys]

    async def clear(self) -> None:
        """Delete the active namespace's keys, or everything without one."""
        namespace = self.get_namespace()
        if not namespace:
            self._store.clear()
            return
        prefix = f"{namespace}{self._key_separator}"
        for physical_key in [k for k in list(self._store.keys()) if k.startswith(prefix)]:
            self._store.pop(physical_key, None)
        self.logger.debug("namespace_cleared", namespace=namespace)

    async def iterator(self, namespace: str | None = None) -> AsyncIterator[tuple[str, Any]]:
        """Yield ``(key, value)`` pairs of one namespace.

        Without a namespace only unprefixed keys are yielded. Expired entries
        are evicted and skipped.

        Args:
            namespace: Namespace to scan (default: the store's namespace).
        """
        namespace = namespace if namespace is not None else self.get_namespace()
        prefix = f"{namespace}{self._key_separator}" if namespace else None
        for physical_key in list(self._store.keys()):
            if prefix is not None:
                if not physical_key.startswith(prefix):
                    continue
                key = physical_key[len(prefix) :]
            elif self._key_separator in physical_key:
                continue
            else:
                key = physical_key
            value = self._read(physical_key)
            if value is None:
                continue
            yield key, value
