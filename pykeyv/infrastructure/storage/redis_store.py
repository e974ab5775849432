"""Redis store adapter (single node, cluster, sentinel).

Wraps a ``redis.asyncio`` client and implements the full store contract:
single-key commands, slot-aware batch commands, namespace-scoped SCAN
clearing and iteration.

Architecture:
- Satisfies the store protocols without inheritance (structural typing)
- Every client call goes through ``_run`` and comes back as a Result
- Redis exceptions map to StoreError (domain ErrorCode + infrastructure code)
- Failures are emitted on the ``error`` channel, then either raised or
  turned into a safe default according to the two throw switches:

      connection failure (ConnectionError, TimeoutError, OSError)
          -> raises StoreConnectionException when throw_on_connect_error
      command failure (any other RedisError)
          -> raises StoreOperationException when throw_on_errors

Cluster mode:
    Multi-key commands (MGET, UNLINK/DEL, pipelines) are split by hash slot,
    one command per slot group, groups dispatched concurrently, results put
    back in input order. ``iterator`` is refused on a cluster client since
    SCAN cursors are node-local.

Usage:
    store = RedisStore("redis://localhost:6379/0", namespace="sessions")
    keyv = Keyv(store=store)

    cluster = RedisStore.from_cluster_url("redis://node-1:7000")
    primary = RedisStore.from_sentinel([("sentinel", 26379)], "mymaster")
"""

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from dataclasses import replace
from functools import partial
from typing import Any, TypeAlias, TypeVar

from redis.asyncio import Redis
from redis.asyncio.cluster import RedisCluster
from redis.asyncio.retry import Retry
from redis.asyncio.sentinel import Sentinel
from redis.backoff import EqualJitterBackoff
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError

from pykeyv.core.enums import ErrorCode
from pykeyv.core.errors import (
    ConfigurationError,
    ConfigurationException,
    StoreConnectionException,
    StoreOperationException,
    UnsupportedOperationError,
    UnsupportedOperationException,
)
from pykeyv.core.result import Failure, Result, Success
from pykeyv.domain.protocols.logger_protocol import LoggerProtocol
from pykeyv.domain.value_objects import KeyvEntry
from pykeyv.infrastructure.enums import InfrastructureErrorCode
from pykeyv.infrastructure.errors import StoreError
from pykeyv.infrastructure.events.event_manager import EventManager
from pykeyv.infrastructure.storage.redis_slots import group_by_slot, reassemble

RedisClient: TypeAlias = Redis | RedisCluster

T = TypeVar("T")

DEFAULT_URL = "redis://localhost:6379"
DEFAULT_SEPARATOR = "::"
DEFAULT_CLEAR_BATCH_SIZE = 1000

_GLOB_SPECIAL = frozenset("*?[]\\")


def default_retry() -> Retry:
    """Capped, jittered exponential backoff (3 retries, 2 s cap)."""
    return Retry(EqualJitterBackoff(cap=2.0, base=0.1), 3)


def _glob_escape(text: str) -> str:
    return "".join(f"\\{char}" if char in _GLOB_SPECIAL else char for char in text)


def _decode(value: Any) -> Any:
    return value.decode("utf-8") if isinstance(value, bytes) else value


def _connect_options(connection_timeout: int | None, retry: Retry | None) -> dict[str, Any]:
    options: dict[str, Any] = {"retry": retry or default_retry()}
    if connection_timeout is not None:
        options["socket_connect_timeout"] = connection_timeout / 1000
    return options


class RedisStore(EventManager):
    """Redis implementation of the store contract.

    Args:
        client: Redis or RedisCluster instance, connection URL, or None for
            ``redis://localhost:6379``.
        namespace: Key namespace (None = unprefixed keys).
        key_prefix_separator: Separator between namespace and key.
        clear_batch_size: Keys scanned and deleted per ``clear`` batch.
        use_unlink: UNLINK (non-blocking) instead of DEL.
        no_namespace_affects_all: Without a namespace, ``clear`` flushes the
            database and ``iterator`` yields every key.
        throw_on_connect_error: Raise when Redis is unreachable.
        throw_on_errors: Raise when a command fails.
        connection_timeout: Connect/PING timeout in milliseconds.
        iteration_limit: SCAN COUNT hint per ``iterator`` page (None = server
            default).
        cluster: Force cluster mode (None = RedisCluster instance check).
        logger: Logger override.
    """

    def __init__(
        self,
        client: RedisClient | str | None = None,
        *,
        namespace: str | None = None,
        key_prefix_separator: str = DEFAULT_SEPARATOR,
        clear_batch_size: int = DEFAULT_CLEAR_BATCH_SIZE,
        use_unlink: bool = True,
        no_namespace_affects_all: bool = False,
        throw_on_connect_error: bool = True,
        throw_on_errors: bool = False,
        connection_timeout: int | None = None,
        iteration_limit: int | None = None,
        cluster: bool | None = None,
        logger: LoggerProtocol | None = None,
    ) -> None:
        super().__init__(logger=logger)
        if client is None or isinstance(client, str):
            self._url = client or DEFAULT_URL
            client = Redis.from_url(
                self._url, **_connect_options(connection_timeout, None)
            )
        else:
            self._url = None
        self._client: RedisClient = client
        self._cluster = cluster
        self._connected = False
        self._key_prefix_separator = key_prefix_separator
        self._clear_batch_size = DEFAULT_CLEAR_BATCH_SIZE
        self._use_unlink = use_unlink
        self._no_namespace_affects_all = no_namespace_affects_all
        self._throw_on_connect_error = throw_on_connect_error
        self._throw_on_errors = throw_on_errors
        self._connection_timeout = connection_timeout
        self.iteration_limit = iteration_limit
        self._namespace: str | None = None
        self.namespace = namespace
        self.clear_batch_size = clear_batch_size

    @classmethod
    def from_url(cls, url: str, **options: Any) -> "RedisStore":
        """Single-node store from a ``redis://`` or ``rediss://`` URL."""
        return cls(url, **options)

    @classmethod
    def from_cluster_url(
        cls, url: str, *, retry: Retry | None = None, **options: Any
    ) -> "RedisStore":
        """Cluster store bootstrapped from one node's URL."""
        client = RedisCluster.from_url(
            url, **_connect_options(options.get("connection_timeout"), retry)
        )
        store = cls(client, cluster=True, **options)
        store._url = url
        return store

    @classmethod
    def from_sentinel(
        cls,
        sentinels: Sequence[tuple[str, int]],
        service_name: str,
        *,
        sentinel_kwargs: dict[str, Any] | None = None,
        **options: Any,
    ) -> "RedisStore":
        """Store bound to the primary of a sentinel-managed service.

        The client follows failovers: it asks the sentinels for the current
        primary whenever it reconnects.
        """
        sentinel = Sentinel(
            list(sentinels),
            sentinel_kwargs=sentinel_kwargs,
            **_connect_options(options.get("connection_timeout"), None),
        )
        return cls(sentinel.master_for(service_name), **options)

    # Properties

    @property
    def client(self) -> RedisClient:
        return self._client

    @client.setter
    def client(self, client: RedisClient) -> None:
        self._client = client
        self._connected = False

    @property
    def namespace(self) -> str | None:
        return self._namespace

    @namespace.setter
    def namespace(self, namespace: str | None) -> None:
        if namespace and self._key_prefix_separator in namespace:
            raise ConfigurationException(
                ConfigurationError(
                    code=ErrorCode.INVALID_NAMESPACE,
                    message=(
                        f"Namespace {namespace!r} must not contain the key "
                        f"separator {self._key_prefix_separator!r}"
                    ),
                    option="namespace",
                )
            )
        self._namespace = namespace or None

    @property
    def key_prefix_separator(self) -> str:
        return self._key_prefix_separator

    @key_prefix_separator.setter
    def key_prefix_separator(self, separator: str) -> None:
        self._key_prefix_separator = separator

    @property
    def clear_batch_size(self) -> int:
        return self._clear_batch_size

    @clear_batch_size.setter
    def clear_batch_size(self, size: int) -> None:
        """Set the clear batch size; values <= 0 are reported and ignored."""
        if size <= 0:
            self.logger.warning("invalid_clear_batch_size", value=size)
            self.emit(
                "error",
                ConfigurationError(
                    code=ErrorCode.INVALID_CONFIGURATION,
                    message="clear_batch_size must be greater than 0",
                    option="clear_batch_size",
                    details={"value": size},
                ),
            )
            return
        self._clear_batch_size = size

    @property
    def use_unlink(self) -> bool:
        return self._use_unlink

    @use_unlink.setter
    def use_unlink(self, value: bool) -> None:
        self._use_unlink = value

    @property
    def no_namespace_affects_all(self) -> bool:
        return self._no_namespace_affects_all

    @no_namespace_affects_all.setter
    def no_namespace_affects_all(self, value: bool) -> None:
        self._no_namespace_affects_all = value

    @property
    def throw_on_connect_error(self) -> bool:
        return self._throw_on_connect_error

    @throw_on_connect_error.setter
    def throw_on_connect_error(self, value: bool) -> None:
        self._throw_on_connect_error = value

    @property
    def throw_on_errors(self) -> bool:
        return self._throw_on_errors

    @throw_on_errors.setter
    def throw_on_errors(self, value: bool) -> None:
        self._throw_on_errors = value

    @property
    def connection_timeout(self) -> int | None:
        return self._connection_timeout

    @connection_timeout.setter
    def connection_timeout(self, value: int | None) -> None:
        self._connection_timeout = value

    @property
    def is_cluster(self) -> bool:
        if self._cluster is not None:
            return self._cluster
        return isinstance(self._client, RedisCluster)

    @property
    def opts(self) -> dict[str, Any]:
        return {
            "namespace": self._namespace,
            "key_prefix_separator": self._key_prefix_separator,
            "clear_batch_size": self._clear_batch_size,
            "use_unlink": self._use_unlink,
            "no_namespace_affects_all": self._no_namespace_affects_all,
            "throw_on_connect_error": self._throw_on_connect_error,
            "throw_on_errors": self._throw_on_errors,
            "connection_timeout": self._connection_timeout,
            "iteration_limit": self.iteration_limit,
            "dialect": "redis",
            "url": self._url or "",
        }

    # Key helpers

    def create_key_prefix(self, key: str, namespace: str | None = None) -> str:
        """Return ``namespace<separator>key``, or the bare key."""
        if namespace:
            return f"{namespace}{self._key_prefix_separator}{key}"
        return key

    def get_key_without_prefix(self, key: str, namespace: str | None = None) -> str:
        """Inverse of ``create_key_prefix``."""
        if namespace:
            return key.removeprefix(f"{namespace}{self._key_prefix_separator}")
        return key

    def _prefixed(self, keys: Sequence[str]) -> list[str]:
        return [self.create_key_prefix(key, self._namespace) for key in keys]

    def _scan_pattern(self, namespace: str | None) -> str:
        if namespace:
            return f"{_glob_escape(namespace)}{_glob_escape(self._key_prefix_separator)}*"
        return "*"

    def _filter_unprefixed(self, keys: Sequence[Any], namespace: str | None) -> list[str]:
        decoded = [_decode(key) for key in keys]
        if namespace:
            return decoded
        return [key for key in decoded if self._key_prefix_separator not in key]

    # Result seam

    async def _run(
        self,
        operation: str,
        call: Callable[[], Awaitable[T]],
        infrastructure_code: InfrastructureErrorCode,
        **details: Any,
    ) -> Result[T, StoreError]:
        """Execute one client call and map exceptions to StoreError."""
        try:
            return Success(value=await call())
        except (RedisConnectionError, RedisTimeoutError, OSError) as e:
            self._connected = False
            timed_out = isinstance(e, (RedisTimeoutError, TimeoutError))
            return Failure(
                error=StoreError(
                    code=ErrorCode.STORE_UNAVAILABLE,
                    message=f"Redis unavailable during {operation}: {e}",
                    infrastructure_code=(
                        InfrastructureErrorCode.STORE_TIMEOUT
                        if timed_out
                        else InfrastructureErrorCode.STORE_CONNECTION_ERROR
                    ),
                    details={"operation": operation, **details},
                    cause=e,
                )
            )
        except RedisError as e:
            return Failure(
                error=StoreError(
                    code=ErrorCode.STORE_OPERATION_FAILED,
                    message=f"Redis {operation} failed: {e}",
                    infrastructure_code=infrastructure_code,
                    details={"operation": operation, **details},
                    cause=e,
                )
            )

    def _fail(self, error: StoreError, default: T) -> T:
        """Report a failure, then raise or return the safe default."""
        self.logger.error(
            "store_operation_failed",
            error=error.cause,
            store="redis",
            code=error.code.value,
            **(error.details or {}),
        )
        self.emit("error", error)
        if error.is_connection_error:
            if self._throw_on_connect_error:
                raise StoreConnectionException(error, reported=True)
        elif self._throw_on_errors:
            raise StoreOperationException(error, reported=True)
        return default

    # Connection

    async def _ping(self) -> Any:
        if self._connection_timeout is None:
            return await self._client.ping()
        return await asyncio.wait_for(
            self._client.ping(), timeout=self._connection_timeout / 1000
        )

    async def connect(self) -> bool:
        """Check connectivity with one PING.

        Returns:
            True when Redis answered, False when it did not and
            ``throw_on_connect_error`` is off.

        Raises:
            StoreConnectionException: Redis unreachable and
                ``throw_on_connect_error`` is on.
        """
        result = await self._run(
            "connect", self._ping, InfrastructureErrorCode.STORE_CONNECTION_ERROR
        )
        match result:
            case Success():
                self._connected = True
                self.logger.info("store_connected", store="redis", cluster=self.is_cluster)
                self.emit("connect", self._client)
                return True
            case Failure(error=error):
                if not error.is_connection_error:
                    error = replace(
                        error,
                        code=ErrorCode.STORE_UNAVAILABLE,
                        infrastructure_code=InfrastructureErrorCode.STORE_CONNECTION_ERROR,
                    )
                return self._fail(error, False)

    async def _ensure_connected(self) -> bool:
        if self._connected:
            return True
        return await self.connect()

    async def disconnect(self) -> None:
        """Close the client's connections."""
        result = await self._run(
            "disconnect", self._client.aclose, InfrastructureErrorCode.STORE_CONNECTION_ERROR
        )
        match result:
            case Success():
                self._connected = False
                self.logger.info("store_disconnected", store="redis")
                self.emit("disconnect", self._client)
            case Failure(error=error):
                self._fail(error, None)

    # Single-key operations

    async def get(self, key: str) -> Any:
        if not await self._ensure_connected():
            return None
        physical_key = self.create_key_prefix(key, self._namespace)
        result = await self._run(
            "get",
            partial(self._client.get, physical_key),
            InfrastructureErrorCode.STORE_GET_ERROR,
            key=physical_key,
        )
        match result:
            case Success(value=value):
                return _decode(value)
            case Failure(error=error):
                return self._fail(error, None)

    async def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        """SET with PX when ``ttl`` (milliseconds) is positive."""
        if not await self._ensure_connected():
            return False
        physical_key = self.create_key_prefix(key, self._namespace)
        result = await self._run(
            "set",
            partial(self._client.set, physical_key, value, px=ttl or None),
            InfrastructureErrorCode.STORE_SET_ERROR,
            key=physical_key,
        )
        match result:
            case Success():
                return True
            case Failure(error=error):
                return self._fail(error, False)

    async def delete(self, key: str) -> bool:
        if not await self._ensure_connected():
            return False
        physical_key = self.create_key_prefix(key, self._namespace)
        command = self._client.unlink if self._use_unlink else self._client.delete
        result = await self._run(
            "delete",
            partial(command, physical_key),
            InfrastructureErrorCode.STORE_DELETE_ERROR,
            key=physical_key,
        )
        match result:
            case Success(value=deleted):
                return deleted > 0
            case Failure(error=error):
                return self._fail(error, False)

    async def has(self, key: str) -> bool:
        if not await self._ensure_connected():
            return False
        physical_key = self.create_key_prefix(key, self._namespace)
        result = await self._run(
            "has",
            partial(self._client.exists, physical_key),
            InfrastructureErrorCode.STORE_GET_ERROR,
            key=physical_key,
        )
        match result:
            case Success(value=count):
                return count > 0
            case Failure(error=error):
                return self._fail(error, False)

    # Slot-aware batch primitives

    async def _mget(self, physical_keys: Sequence[str]) -> list[Any]:
        """MGET per slot group, values in input order."""
        groups = group_by_slot(physical_keys, cluster=self.is_cluster)

        async def fetch(positions: list[int]) -> tuple[list[int], list[Any]]:
            values = await self._client.mget([physical_keys[p] for p in positions])
            return positions, values

        results = await asyncio.gather(*(fetch(p) for p in groups.values()))
        return reassemble(len(physical_keys), dict(zip(groups, results, strict=True)))

    async def _pipelined(
        self, size: int, slot_keys: Sequence[str], queue: Callable[[Any, int], Any]
    ) -> list[Any]:
        """One pipeline per slot group, replies in input order.

        Single node: one MULTI/EXEC pipeline. Cluster: non-transactional
        pipelines whose keys all share one slot.

        Args:
            size: Number of queued commands.
            slot_keys: Physical key of each command (slot routing).
            queue: Adds the command for a position to a pipeline.
        """
        cluster = self.is_cluster
        groups = group_by_slot(slot_keys, cluster=cluster)

        async def run(positions: list[int]) -> tuple[list[int], list[Any]]:
            async with self._client.pipeline(transaction=not cluster) as pipe:
                for position in positions:
                    queue(pipe, position)
                return positions, await pipe.execute()

        results = await asyncio.gather(*(run(p) for p in groups.values()))
        return reassemble(size, dict(zip(groups, results, strict=True)))

    async def _delete_keys(self, physical_keys: Sequence[str]) -> int:
        """UNLINK/DEL per slot group; number of keys removed."""
        if not physical_keys:
            return 0
        command = self._client.unlink if self._use_unlink else self._client.delete
        groups = group_by_slot(physical_keys, cluster=self.is_cluster)
        counts = await asyncio.gather(
            *(command(*[physical_keys[p] for p in positions]) for positions in groups.values())
        )
        return sum(counts)

    # Batch operations

    async def get_many(self, keys: Sequence[str]) -> list[Any]:
        """Values in input order, None for misses."""
        if not keys:
            return []
        misses: list[Any] = [None] * len(keys)
        if not await self._ensure_connected():
            return misses
        physical_keys = self._prefixed(keys)
        result = await self._run(
            "get_many",
            partial(self._mget, physical_keys),
            InfrastructureErrorCode.STORE_GET_ERROR,
            key_count=len(keys),
        )
        match result:
            case Success(value=values):
                return [_decode(value) for value in values]
            case Failure(error=error):
                return self._fail(error, misses)

    async def set_many(self, entries: Sequence[KeyvEntry | dict[str, Any]]) -> list[bool]:
        """Store entries; one flag per entry in input order."""
        items = [KeyvEntry.coerce(entry) for entry in entries]
        if not items:
            return []
        if not await self._ensure_connected():
            return [False] * len(items)
        physical_keys = self._prefixed([item.key for item in items])

        def queue(pipe: Any, position: int) -> None:
            item = items[position]
            pipe.set(physical_keys[position], item.value, px=item.ttl or None)

        result = await self._run(
            "set_many",
            partial(self._pipelined, len(items), physical_keys, queue),
            InfrastructureErrorCode.STORE_SET_ERROR,
            key_count=len(items),
        )
        match result:
            case Success():
                return [True] * len(items)
            case Failure(error=error):
                return self._fail(error, [False] * len(items))

    async def has_many(self, keys: Sequence[str]) -> list[bool]:
        """Existence flags in input order."""
        if not keys:
            return []
        if not await self._ensure_connected():
            return [False] * len(keys)
        physical_keys = self._prefixed(keys)
        result = await self._run(
            "has_many",
            partial(
                self._pipelined,
                len(keys),
                physical_keys,
                lambda pipe, position: pipe.exists(physical_keys[position]),
            ),
            InfrastructureErrorCode.STORE_GET_ERROR,
            key_count=len(keys),
        )
        match result:
            case Success(value=counts):
                return [bool(count) for count in counts]
            case Failure(error=error):
                return self._fail(error, [False] * len(keys))

    async def delete_many(self, keys: Sequence[str]) -> bool:
        """Delete keys; True when at least one key was removed."""
        if not keys:
            return False
        if not await self._ensure_connected():
            return False
        physical_keys = self._prefixed(keys)
        use_unlink = self._use_unlink

        def queue(pipe: Any, position: int) -> None:
            if use_unlink:
                pipe.unlink(physical_keys[position])
            else:
                pipe.delete(physical_keys[position])

        result = await self._run(
            "delete_many",
            partial(self._pipelined, len(keys), physical_keys, queue),
            InfrastructureErrorCode.STORE_DELETE_ERROR,
            key_count=len(keys),
        )
        match result:
            case Success(value=counts):
                return any(count > 0 for count in counts)
            case Failure(error=error):
                return self._fail(error, False)

    # Namespace-scoped SCAN

    async def _clear_namespace(self) -> int:
        """SCAN the namespace and delete each batch before advancing."""
        namespace = self._namespace
        pattern = self._scan_pattern(namespace)
        deleted = 0
        if self.is_cluster:
            # scan_iter walks every primary until each node cursor returns to 0.
            batch: list[str] = []
            async for key in self._client.scan_iter(
                match=pattern, count=self._clear_batch_size, _type="string"
            ):
                batch.append(key)
                if len(batch) >= self._clear_batch_size:
                    deleted += await self._delete_keys(self._filter_unprefixed(batch, namespace))
                    batch = []
            return deleted + await self._delete_keys(self._filter_unprefixed(batch, namespace))

        cursor = 0
        while True:
            cursor, keys = await self._client.scan(
                cursor=cursor, match=pattern, count=self._clear_batch_size, _type="string"
            )
            deleted += await self._delete_keys(self._filter_unprefixed(keys, namespace))
            if int(cursor) == 0:
                return deleted

    async def clear(self) -> None:
        """Delete every key of the namespace.

        Without a namespace only unprefixed keys are deleted, unless
        ``no_namespace_affects_all`` is set, which flushes the database.
        """
        if not await self._ensure_connected():
            return
        if not self._namespace and self._no_namespace_affects_all:
            result = await self._run(
                "clear", self._client.flushdb, InfrastructureErrorCode.STORE_CLEAR_ERROR
            )
        else:
            result = await self._run(
                "clear",
                self._clear_namespace,
                InfrastructureErrorCode.STORE_CLEAR_ERROR,
                namespace=self._namespace,
            )
        match result:
            case Success(value=deleted):
                self.logger.info(
                    "namespace_cleared",
                    store="redis",
                    namespace=self._namespace,
                    deleted=deleted if isinstance(deleted, int) else None,
                )
            case Failure(error=error):
                self._fail(error, None)

    async def iterator(self, namespace: str | None = None) -> AsyncIterator[tuple[str, Any]]:
        """Yield ``(key, value)`` pairs of one namespace.

        Args:
            namespace: Namespace to scan (default: the store's namespace).

        Raises:
            UnsupportedOperationException: The client is a cluster.
        """
        if self.is_cluster:
            raise UnsupportedOperationException(
                UnsupportedOperationError(
                    code=ErrorCode.UNSUPPORTED_OPERATION,
                    message="Iteration is not supported on a Redis cluster client",
                    operation="iterator",
                )
            )
        if not await self._ensure_connected():
            return
        namespace = namespace if namespace is not None else self._namespace
        pattern = self._scan_pattern(namespace)
        cursor = 0
        while True:
            page = await self._run(
                "iterator",
                partial(
                    self._client.scan,
                    cursor=cursor,
                    match=pattern,
                    count=self.iteration_limit,
                    _type="string",
                ),
                InfrastructureErrorCode.STORE_SCAN_ERROR,
                namespace=namespace,
            )
            match page:
                case Success(value=(next_cursor, raw_keys)):
                    cursor = int(next_cursor)
                case Failure(error=error):
                    self._fail(error, None)
                    return
            keys = [_decode(key) for key in raw_keys]
            if not namespace and not self._no_namespace_affects_all:
                keys = self._filter_unprefixed(keys, namespace)
            if keys:
                values = await self._run(
                    "iterator",
                    partial(self._mget, keys),
                    InfrastructureErrorCode.STORE_GET_ERROR,
                    namespace=namespace,
                )
                match values:
                    case Success(value=found):
                        for key, value in zip(keys, found, strict=True):
                            yield self.get_key_without_prefix(key, namespace), _decode(value)
                    case Failure(error=error):
                        self._fail(error, None)
                        return
            if cursor == 0:
                return
