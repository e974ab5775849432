"""Keyv orchestrator.

The facade applications use. It composes the pieces around the active store:

    caller -> PRE hooks -> key prefixing -> codec -> store
           <- POST hooks <- expiry check (lazy eviction) <- codec <-

Responsibilities:
- Namespace scoping, either by prefixing keys itself (``namespace:key``)
  or by pushing the namespace into a namespace-aware store
- TTL policy: absolute ``expires`` deadline in epoch milliseconds,
  ``ttl=0`` meaning never, expired entries deleted by the read that finds them
- Codec: default JSON serializer, custom (sync or async) callables, or a
  compression adapter
- Batch fan-out when the store lacks a native batch operation
- Fail-open store access: store failures are emitted on ``error`` and
  turned into safe defaults unless ``throw_on_errors`` is set

Usage:
    keyv = Keyv(namespace="users", ttl=60_000)
    keyv.on("error", lambda error: print(error))

    await keyv.set("user:1", {"name": "Ada"})
    await keyv.get("user:1")            # {"name": "Ada"}
    await keyv.get(["user:1", "nope"])  # [{"name": "Ada"}, None]
"""

import asyncio
import inspect
import types
from collections.abc import AsyncIterator, Callable, Mapping, MutableMapping, Sequence
from typing import Any, TypeAlias

from pykeyv.core.enums import ErrorCode
from pykeyv.core.errors import (
    ConfigurationError,
    ConfigurationException,
    KeyvError,
    KeyvException,
    SerializationError,
    SerializationException,
    UnsupportedOperationError,
    UnsupportedOperationException,
)
from pykeyv.domain.capabilities import StoreCapabilities, detect_capabilities
from pykeyv.domain.enums import KeyvHook
from pykeyv.domain.protocols import (
    BasicStore,
    CompressionAdapter,
    ErrorEmitter,
    LoggerProtocol,
    NamespacedStore,
)
from pykeyv.domain.value_objects import KeyvEntry, StoredEnvelope, now_ms
from pykeyv.infrastructure.errors import StoreError
from pykeyv.infrastructure.events.event_manager import EventManager
from pykeyv.infrastructure.hooks import HooksManager
from pykeyv.infrastructure.serialization import json_serializer
from pykeyv.infrastructure.stats import StatsManager
from pykeyv.infrastructure.storage.generic_store import GenericStore

Serializer: TypeAlias = Callable[[dict[str, Any]], Any]
Deserializer: TypeAlias = Callable[[Any], Any]
Namespace: TypeAlias = str | Callable[[], str | None] | None

DEFAULT_NAMESPACE = "keyv"
KEY_PREFIX_SEPARATOR = ":"

# Values no generic codec can represent.
_UNREPRESENTABLE = (
    types.FunctionType,
    types.BuiltinFunctionType,
    types.MethodType,
    types.ModuleType,
    types.GeneratorType,
    types.CoroutineType,
    types.AsyncGeneratorType,
)


async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class Keyv(EventManager):
    """Storage-agnostic key-value cache.

    Args:
        store: Store adapter or mutable mapping (default: new in-memory store).
        namespace: Static namespace, zero-argument callable, or None.
        ttl: Default time to live in milliseconds (None = never expires).
        serialize: Envelope encoder (None stores envelopes as-is).
        deserialize: Envelope decoder (None expects envelopes as-is).
        compression: Compression adapter; replaces serialize/deserialize.
        stats: Enable hit/miss/set/delete counters.
        emit_errors: Forward store errors on the ``error`` channel.
        throw_on_errors: Re-raise store failures instead of returning defaults.
        use_key_prefix: Prefix keys here (True), in the store (False), or
            pick by store type (None).
        logger: Logger override.

    Raises:
        ConfigurationException: ``store`` does not satisfy BasicStore.
    """

    def __init__(
        self,
        store: BasicStore | MutableMapping[str, Any] | None = None,
        *,
        namespace: Namespace = DEFAULT_NAMESPACE,
        ttl: int | None = None,
        serialize: Serializer | None = json_serializer.serialize,
        deserialize: Deserializer | None = json_serializer.deserialize,
        compression: CompressionAdapter | None = None,
        stats: bool = False,
        emit_errors: bool = True,
        throw_on_errors: bool = False,
        use_key_prefix: bool | None = None,
        logger: LoggerProtocol | None = None,
    ) -> None:
        super().__init__(logger=logger)
        self._namespace: Namespace = namespace
        self._ttl = ttl
        self._serialize = serialize
        self._deserialize = deserialize
        self._compression = compression
        self._emit_errors = emit_errors
        self._throw_on_errors = throw_on_errors
        self._use_key_prefix_option = use_key_prefix
        self._use_key_prefix = bool(use_key_prefix)
        self._hooks = HooksManager(logger=logger)
        self._hooks.on("error", self._on_hook_error)
        self._stats = StatsManager(enabled=stats, logger=logger)
        self._store: Any = None
        self._capabilities = StoreCapabilities()
        self.store = GenericStore() if store is None else store

    # Properties

    @property
    def store(self) -> Any:
        return self._store

    @store.setter
    def store(self, store: BasicStore | MutableMapping[str, Any]) -> None:
        """Swap the active store.

        Rewires error forwarding, pushes the namespace and recomputes the
        capability descriptor.
        """
        if isinstance(store, MutableMapping):
            store = GenericStore(store, logger=self._logger_override)
        if not isinstance(store, BasicStore):
            raise ConfigurationException(
                ConfigurationError(
                    code=ErrorCode.INVALID_CONFIGURATION,
                    message=(
                        f"{type(store).__name__} is not a store: get, set, delete "
                        "and clear coroutines are required"
                    ),
                    option="store",
                )
            )
        if isinstance(self._store, ErrorEmitter):
            self._store.off("error", self._on_store_error)
        self._store = store
        if isinstance(store, ErrorEmitter):
            store.on("error", self._on_store_error)
        if self._use_key_prefix_option is None:
            self._use_key_prefix = not isinstance(store, NamespacedStore)
        self._push_namespace()
        self._capabilities = detect_capabilities(store)

    @property
    def namespace(self) -> str | None:
        """Current namespace (resolved when it is a callable)."""
        if callable(self._namespace):
            return self._namespace()
        return self._namespace

    @namespace.setter
    def namespace(self, namespace: Namespace) -> None:
        self._namespace = namespace
        self._push_namespace()

    @property
    def ttl(self) -> int | None:
        return self._ttl

    @ttl.setter
    def ttl(self, ttl: int | None) -> None:
        self._ttl = ttl

    @property
    def serialize(self) -> Serializer | None:
        return self._serialize

    @serialize.setter
    def serialize(self, serialize: Serializer | None) -> None:
        self._serialize = serialize

    @property
    def deserialize(self) -> Deserializer | None:
        return self._deserialize

    @deserialize.setter
    def deserialize(self, deserialize: Deserializer | None) -> None:
        self._deserialize = deserialize

    @property
    def compression(self) -> CompressionAdapter | None:
        return self._compression

    @compression.setter
    def compression(self, compression: CompressionAdapter | None) -> None:
        self._compression = compression

    @property
    def use_key_prefix(self) -> bool:
        return self._use_key_prefix

    @use_key_prefix.setter
    def use_key_prefix(self, value: bool) -> None:
        self._use_key_prefix_option = value
        self._use_key_prefix = value
        self._push_namespace()

    @property
    def emit_errors(self) -> bool:
        return self._emit_errors

    @emit_errors.setter
    def emit_errors(self, value: bool) -> None:
        self._emit_errors = value

    @property
    def throw_on_errors(self) -> bool:
        return self._throw_on_errors

    @throw_on_errors.setter
    def throw_on_errors(self, value: bool) -> None:
        self._throw_on_errors = value

    @property
    def capabilities(self) -> StoreCapabilities:
        return self._capabilities

    @property
    def hooks(self) -> HooksManager:
        return self._hooks

    @property
    def stats(self) -> StatsManager:
        return self._stats

    @property
    def opts(self) -> dict[str, Any]:
        return {
            "namespace": self.namespace,
            "ttl": self._ttl,
            "serialize": self._serialize,
            "deserialize": self._deserialize,
            "compression": self._compression,
            "stats": self._stats.enabled,
            "emit_errors": self._emit_errors,
            "throw_on_errors": self._throw_on_errors,
            "use_key_prefix": self._use_key_prefix,
            "store": self._store,
        }

    # Namespace and keys

    def _push_namespace(self) -> None:
        if self._store is None or self._use_key_prefix:
            return
        if isinstance(self._store, GenericStore):
            self._store.set_namespace(self._namespace)
        elif isinstance(self._store, NamespacedStore):
            self._store.namespace = self.namespace

    def _store_key(self, key: str) -> str:
        """Key handed to the store."""
        if not self._use_key_prefix:
            return key
        namespace = self.namespace
        return f"{namespace}{KEY_PREFIX_SEPARATOR}{key}" if namespace else key

    # Error channel

    def _on_store_error(self, error: KeyvError) -> None:
        self._stats.error()
        if self._emit_errors:
            self.emit("error", error)

    def _on_hook_error(self, error: KeyvError) -> None:
        self.emit("error", error)

    def _report(self, operation: str, e: Exception) -> None:
        """Emit a store exception unless the store already did."""
        if isinstance(e, KeyvException):
            if e.reported:
                return
            error = e.error
        else:
            error = StoreError(
                code=ErrorCode.STORE_OPERATION_FAILED,
                message=f"Store {operation} failed: {e}",
                details={"operation": operation},
                cause=e,
            )
        self.logger.error("store_operation_failed", error=e, operation=operation)
        self._on_store_error(error)

    def _serialization_failure(self, key: str, cause: BaseException) -> SerializationException:
        error = SerializationError(
            code=ErrorCode.SERIALIZATION_FAILED,
            message=f"Value for key {key!r} cannot be serialized: {cause}",
            key=key,
            cause=cause,
        )
        self.logger.error("serialization_failed", error=cause, key=key)
        self.emit("error", error)
        return SerializationException(error, reported=True)

    # Codec

    async def _encode(self, key: str, envelope: StoredEnvelope) -> Any:
        data = envelope.to_dict()
        try:
            if self._compression is not None:
                return await self._compression.serialize(data)
            if self._serialize is None:
                return data
            return await _resolve(self._serialize(data))
        except (TypeError, ValueError) as e:
            raise self._serialization_failure(key, e) from e

    async def _decode(self, key: str, raw: Any) -> StoredEnvelope | None:
        """Turn whatever the store returned into an envelope."""
        if raw is None or isinstance(raw, StoredEnvelope):
            return raw
        data = raw
        if isinstance(raw, (str, bytes)) and (self._compression or self._deserialize):
            try:
                if self._compression is not None:
                    data = await self._compression.deserialize(raw)
                else:
                    data = await _resolve(self._deserialize(raw))
            except (TypeError, ValueError) as e:
                # Unreadable entries count as misses.
                self.logger.error("deserialization_failed", error=e, key=key)
                self.emit(
                    "error",
                    SerializationError(
                        code=ErrorCode.SERIALIZATION_FAILED,
                        message=f"Stored value for key {key!r} cannot be decoded: {e}",
                        key=key,
                        cause=e,
                    ),
                )
                return None
        if data is None:
            return None
        if isinstance(data, StoredEnvelope):
            return data
        if isinstance(data, Mapping) and "value" in data:
            return StoredEnvelope.from_mapping(data)
        return StoredEnvelope(value=data)

    def _resolve_ttl(self, ttl: int | None) -> int | None:
        """Apply the default TTL; 0 means never expires."""
        if ttl is None:
            ttl = self._ttl
        return ttl or None

    # Store access

    async def _fetch_raw(self, store_key: str) -> Any:
        try:
            return await self._store.get(store_key)
        except Exception as e:
            self._report("get", e)
            if self._throw_on_errors:
                raise
            return None

    async def _evict(self, store_key: str) -> None:
        """Delete an entry found expired by a read."""
        try:
            await self._store.delete(store_key)
        except Exception as e:
            self._report("delete", e)
            if self._throw_on_errors:
                raise
        self.logger.debug("expired_entry_evicted", key=store_key)

    async def _live(
        self, store_key: str, raw: Any, *, evict: bool = True
    ) -> StoredEnvelope | None:
        envelope = await self._decode(store_key, raw)
        if envelope is not None and envelope.is_expired(now_ms()):
            if evict:
                await self._evict(store_key)
            return None
        return envelope

    async def _fetch_envelope(self, store_key: str) -> StoredEnvelope | None:
        return await self._live(store_key, await self._fetch_raw(store_key))

    @staticmethod
    def _as_envelope(value: Any) -> StoredEnvelope | None:
        if value is None or isinstance(value, StoredEnvelope):
            return value
        if isinstance(value, Mapping) and "value" in value:
            return StoredEnvelope.from_mapping(value)
        return StoredEnvelope(value=value)

    # Reads

    async def get(self, key: str | Sequence[str], *, raw: bool = False) -> Any:
        """Get a value, or a list of values when ``key`` is a list.

        Args:
            key: Key or list of keys.
            raw: Return the StoredEnvelope instead of the value.

        Returns:
            The value (or envelope), None when absent or expired.
        """
        if not isinstance(key, str):
            return await self.get_many(key, raw=raw)

        payload: dict[str, Any] = {"key": key}
        await self._hooks.trigger(KeyvHook.PRE_GET, payload)
        store_key = self._store_key(payload["key"])

        envelope = await self._fetch_envelope(store_key)

        result = {"key": store_key, "value": envelope}
        await self._hooks.trigger(KeyvHook.POST_GET, result)
        envelope = self._as_envelope(result["value"])

        if envelope is None:
            self._stats.miss()
            return None
        self._stats.hit()
        return envelope if raw else envelope.value

    async def get_raw(self, key: str) -> StoredEnvelope | None:
        return await self.get(key, raw=True)

    async def get_many(self, keys: Sequence[str], *, raw: bool = False) -> list[Any]:
        """Get values in input order, None for misses and expired entries.

        Uses the store's native batch read when available, otherwise one
        concurrent read per key.
        """
        payload: dict[str, Any] = {"keys": list(keys)}
        await self._hooks.trigger(KeyvHook.PRE_GET_MANY, payload)
        store_keys = [self._store_key(key) for key in payload["keys"]]
        if not store_keys:
            return []

        if self._capabilities.get_many:
            try:
                raw_values = list(await self._store.get_many(store_keys))
            except Exception as e:
                self._report("get_many", e)
                if self._throw_on_errors:
                    raise
                raw_values = [None] * len(store_keys)
        else:
            raw_values = await asyncio.gather(*(self._fetch_raw(k) for k in store_keys))

        envelopes = await asyncio.gather(
            *(self._live(k, v) for k, v in zip(store_keys, raw_values, strict=True))
        )

        result = {"keys": store_keys, "values": list(envelopes)}
        await self._hooks.trigger(KeyvHook.POST_GET_MANY, result)

        values = []
        for item in result["values"]:
            envelope = self._as_envelope(item)
            if envelope is None:
                self._stats.miss()
                values.append(None)
            else:
                self._stats.hit()
                values.append(envelope if raw else envelope.value)
        return values

    async def get_many_raw(self, keys: Sequence[str]) -> list[StoredEnvelope | None]:
        return await self.get_many(keys, raw=True)

    async def has(self, key: str) -> bool:
        """Check whether a live entry exists.

        The in-memory store answers through a read so ``has`` and ``get``
        agree on expiry.
        """
        store_key = self._store_key(key)
        if self._capabilities.has and not isinstance(self._store, GenericStore):
            try:
                return bool(await self._store.has(store_key))
            except Exception as e:
                self._report("has", e)
                if self._throw_on_errors:
                    raise
                return False
        return await self._fetch_envelope(store_key) is not None

    async def has_many(self, keys: Sequence[str]) -> list[bool]:
        """Existence flags in input order."""
        if not keys:
            return []
        if self._capabilities.has_many and not isinstance(self._store, GenericStore):
            store_keys = [self._store_key(key) for key in keys]
            try:
                return [bool(found) for found in await self._store.has_many(store_keys)]
            except Exception as e:
                self._report("has_many", e)
                if self._throw_on_errors:
                    raise
                return [False] * len(keys)
        return list(await asyncio.gather(*(self.has(key) for key in keys)))

    # Writes

    async def _prepare_set(
        self, key: str, value: Any, ttl: int | None
    ) -> tuple[str, Any, int | None]:
        """Run PRE_SET and encode; returns (store_key, serialized, ttl)."""
        payload: dict[str, Any] = {"key": key, "value": value, "ttl": ttl}
        await self._hooks.trigger(KeyvHook.PRE_SET, payload)
        key, value = payload["key"], payload["value"]
        ttl = self._resolve_ttl(payload.get("ttl"))

        store_key = self._store_key(key)
        if isinstance(value, _UNREPRESENTABLE):
            cause = TypeError(f"{type(value).__name__} values are not supported")
            raise self._serialization_failure(store_key, cause)

        expires = now_ms() + ttl if ttl else None
        serialized = await self._encode(store_key, StoredEnvelope(value=value, expires=expires))
        return store_key, serialized, ttl

    async def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        """Store a value.

        Args:
            key: Cache key.
            value: Any value the codec can represent.
            ttl: Milliseconds to live; None uses the default TTL, 0 never expires.

        Returns:
            True when stored, False when the store failed.

        Raises:
            SerializationException: The value cannot be represented.
        """
        store_key, serialized, ttl = await self._prepare_set(key, value, ttl)
        try:
            stored = await self._store.set(store_key, serialized, ttl)
        except Exception as e:
            self._report("set", e)
            if self._throw_on_errors:
                raise
            return False
        ok = stored is not False
        if ok:
            self._stats.set()
        await self._hooks.trigger(
            KeyvHook.POST_SET, {"key": store_key, "value": serialized, "ttl": ttl}
        )
        return ok

    async def set_many(self, entries: Sequence[KeyvEntry | Mapping[str, Any]]) -> list[bool]:
        """Store several entries; one flag per entry in input order."""
        items = [KeyvEntry.coerce(entry) for entry in entries]
        if not items:
            return []
        if not self._capabilities.set_many:
            return list(
                await asyncio.gather(*(self.set(item.key, item.value, item.ttl) for item in items))
            )

        prepared = [await self._prepare_set(item.key, item.value, item.ttl) for item in items]
        store_entries = [
            KeyvEntry(key=store_key, value=serialized, ttl=ttl)
            for store_key, serialized, ttl in prepared
        ]
        try:
            stored = await self._store.set_many(store_entries)
        except Exception as e:
            self._report("set_many", e)
            if self._throw_on_errors:
                raise
            return [False] * len(items)

        results = [True] * len(items) if stored is None else [bool(flag) for flag in stored]
        for ok, (store_key, serialized, ttl) in zip(results, prepared, strict=True):
            if ok:
                self._stats.set()
            await self._hooks.trigger(
                KeyvHook.POST_SET, {"key": store_key, "value": serialized, "ttl": ttl}
            )
        return results

    async def delete(self, key: str | Sequence[str]) -> bool:
        """Delete a key, or several keys when ``key`` is a list."""
        if not isinstance(key, str):
            return await self.delete_many(key)

        payload: dict[str, Any] = {"key": key}
        await self._hooks.trigger(KeyvHook.PRE_DELETE, payload)
        store_key = self._store_key(payload["key"])
        try:
            deleted = bool(await self._store.delete(store_key))
        except Exception as e:
            self._report("delete", e)
            if self._throw_on_errors:
                raise
            deleted = False
        if deleted:
            self._stats.delete()
        await self._hooks.trigger(KeyvHook.POST_DELETE, {"key": store_key, "value": deleted})
        return deleted

    async def _delete_one(self, store_key: str) -> bool:
        try:
            return bool(await self._store.delete(store_key))
        except Exception as e:
            self._report("delete", e)
            if self._throw_on_errors:
                raise
            return False

    async def delete_many(self, keys: Sequence[str]) -> bool:
        """Delete several keys.

        Native batch deletes report whether the store removed anything;
        the per-key fallback is True only when every key was deleted.
        Stats count every key of a successful native batch, and only the
        keys actually removed on the fallback path.
        """
        payload: dict[str, Any] = {"key": list(keys)}
        await self._hooks.trigger(KeyvHook.PRE_DELETE, payload)
        store_keys = [self._store_key(key) for key in payload["key"]]
        if not store_keys:
            return False

        if self._capabilities.delete_many:
            try:
                deleted = bool(await self._store.delete_many(store_keys))
            except Exception as e:
                self._report("delete_many", e)
                if self._throw_on_errors:
                    raise
                deleted = False
            removed = len(store_keys) if deleted else 0
        else:
            results = await asyncio.gather(*(self._delete_one(k) for k in store_keys))
            deleted = all(results)
            removed = sum(results)

        for _ in range(removed):
            self._stats.delete()
        await self._hooks.trigger(KeyvHook.POST_DELETE, {"key": store_keys, "value": deleted})
        return deleted

    async def clear(self) -> None:
        """Delete every entry of the namespace."""
        try:
            await self._store.clear()
        except Exception as e:
            self._report("clear", e)
            if self._throw_on_errors:
                raise
        self.emit("clear")

    # Iteration and lifecycle

    async def iterator(self, namespace: str | None = None) -> AsyncIterator[tuple[str, Any]]:
        """Yield ``(key, value)`` pairs of the namespace.

        Expired entries are skipped without stopping the scan. They are
        also deleted, unless the namespace is a foreign one held by a
        namespace-aware store: its delete only reaches the active namespace.

        Raises:
            UnsupportedOperationException: The store cannot iterate.
        """
        if not self._capabilities.iterator:
            raise UnsupportedOperationException(
                UnsupportedOperationError(
                    code=ErrorCode.UNSUPPORTED_OPERATION,
                    message=f"{type(self._store).__name__} does not support iteration",
                    operation="iterator",
                )
            )
        namespace = namespace if namespace is not None else self.namespace

        if self._use_key_prefix:
            prefix = f"{namespace}{KEY_PREFIX_SEPARATOR}" if namespace else ""
            source = self._store.iterator()
        else:
            prefix = ""
            source = self._store.iterator(namespace)
        evict = self._use_key_prefix or namespace == self.namespace

        async for store_key, raw in source:
            if prefix and not store_key.startswith(prefix):
                continue
            envelope = await self._live(store_key, raw, evict=evict)
            if envelope is None:
                continue
            yield store_key.removeprefix(prefix), envelope.value

    async def disconnect(self) -> None:
        """Release the store's connections."""
        if self._capabilities.disconnect:
            try:
                await self._store.disconnect()
            except Exception as e:
                self._report("disconnect", e)
                if self._throw_on_errors:
                    raise
        self.emit("disconnect")
