"""Unit tests for RedisStore with fakeredis.

Test Strategy:
    - fakeredis for real command semantics without a Redis server
    - Small client doubles for unreachable servers and cluster slot rules
    - Error policy: emit first, then raise or return the safe default

Cluster double:
    CrossSlotGuard forwards to fakeredis but rejects multi-key commands
    whose keys span hash slots, the way a real cluster answers CROSSSLOT.
"""

import asyncio
from unittest.mock import MagicMock, patch

import fakeredis.aioredis
import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import ResponseError
from redis.exceptions import TimeoutError as RedisTimeoutError

from pykeyv.core.enums import ErrorCode
from pykeyv.core.errors import (
    ConfigurationError,
    ConfigurationException,
    StoreConnectionException,
    StoreOperationException,
    UnsupportedOperationException,
)
from pykeyv.domain.value_objects import KeyvEntry
from pykeyv.infrastructure.enums import InfrastructureErrorCode
from pykeyv.infrastructure.errors import StoreError
from pykeyv.infrastructure.storage import RedisStore
from pykeyv.infrastructure.storage.redis_slots import calculate_slot

# Hash tags pin these keys to two different slots.
FOO_KEYS = ["{foo}:1", "{foo}:2"]
BAR_KEYS = ["{bar}:1"]


class UnreachableClient:
    """Client whose server never answers."""

    def __init__(self, error=None):
        self.error = error or RedisConnectionError("Connection refused")

    async def ping(self):
        raise self.error

    async def get(self, key):
        raise self.error

    async def aclose(self):
        return None


class SlowClient(UnreachableClient):
    async def ping(self):
        await asyncio.sleep(1)


class GuardedPipeline:
    def __init__(self, pipe, check):
        self._pipe = pipe
        self._check = check
        self._keys = []

    async def __aenter__(self):
        await self._pipe.__aenter__()
        return self

    async def __aexit__(self, *exc_info):
        return await self._pipe.__aexit__(*exc_info)

    def _queue(self, command, key, *args, **kwargs):
        self._keys.append(key)
        getattr(self._pipe, command)(key, *args, **kwargs)
        return self

    def set(self, key, *args, **kwargs):
        return self._queue("set", key, *args, **kwargs)

    def exists(self, key):
        return self._queue("exists", key)

    def unlink(self, key):
        return self._queue("unlink", key)

    def delete(self, key):
        return self._queue("delete", key)

    async def execute(self):
        self._check(self._keys)
        return await self._pipe.execute()


class CrossSlotGuard:
    """Cluster stand-in over fakeredis."""

    def __init__(self, backend):
        self.backend = backend

    def __getattr__(self, name):
        return getattr(self.backend, name)

    @staticmethod
    def _check(keys):
        if len({calculate_slot(key) for key in keys}) > 1:
            raise ResponseError("CROSSSLOT Keys in request don't hash to the same slot")

    async def mget(self, keys):
        self._check(keys)
        return await self.backend.mget(keys)

    async def unlink(self, *keys):
        self._check(keys)
        return await self.backend.unlink(*keys)

    async def delete(self, *keys):
        self._check(keys)
        return await self.backend.delete(*keys)

    def pipeline(self, transaction=True):
        return GuardedPipeline(self.backend.pipeline(transaction=transaction), self._check)


@pytest.fixture
def store(redis_client, mock_logger):
    return RedisStore(redis_client, namespace="ns", logger=mock_logger)


@pytest.fixture
def cluster_store(redis_client, mock_logger):
    return RedisStore(
        CrossSlotGuard(redis_client), namespace="ns", cluster=True, logger=mock_logger
    )


async def collect(iterator):
    return [entry async for entry in iterator]


@pytest.mark.unit
class TestConfiguration:
    @pytest.mark.asyncio
    async def test_defaults(self, redis_client, mock_logger):
        store = RedisStore(redis_client, logger=mock_logger)

        assert store.namespace is None
        assert store.key_prefix_separator == "::"
        assert store.clear_batch_size == 1000
        assert store.use_unlink is True
        assert store.no_namespace_affects_all is False
        assert store.throw_on_connect_error is True
        assert store.throw_on_errors is False
        assert store.is_cluster is False
        assert store.iteration_limit is None
        assert store.opts["dialect"] == "redis"

    @pytest.mark.asyncio
    async def test_namespace_with_separator_rejected(self, redis_client, mock_logger):
        with pytest.raises(ConfigurationException) as exc_info:
            RedisStore(redis_client, namespace="a::b", logger=mock_logger)

        assert exc_info.value.error.code == ErrorCode.INVALID_NAMESPACE

    @pytest.mark.asyncio
    async def test_invalid_clear_batch_size_is_reported_and_ignored(self, store, mock_logger):
        errors = []
        store.on("error", errors.append)

        store.clear_batch_size = 0

        assert store.clear_batch_size == 1000
        assert isinstance(errors[0], ConfigurationError)
        assert errors[0].option == "clear_batch_size"
        mock_logger.warning.assert_called_once_with("invalid_clear_batch_size", value=0)

    @pytest.mark.asyncio
    async def test_key_prefix_helpers(self, store):
        assert store.create_key_prefix("a", "ns") == "ns::a"
        assert store.create_key_prefix("a") == "a"
        assert store.get_key_without_prefix("ns::a", "ns") == "a"
        assert store.get_key_without_prefix("a") == "a"

    def test_from_url(self, mock_logger):
        store = RedisStore.from_url(
            "redis://cache:6380/3", namespace="x", connection_timeout=250, logger=mock_logger
        )

        kwargs = store.client.connection_pool.connection_kwargs
        assert kwargs["db"] == 3
        assert kwargs["socket_connect_timeout"] == 0.25
        assert kwargs["retry"] is not None
        assert store.opts["url"] == "redis://cache:6380/3"

    def test_from_sentinel(self, mock_logger):
        with patch("pykeyv.infrastructure.storage.redis_store.Sentinel") as sentinel_cls:
            store = RedisStore.from_sentinel(
                [("sentinel-1", 26379)], "mymaster", namespace="x", logger=mock_logger
            )

        sentinel = sentinel_cls.return_value
        sentinel.master_for.assert_called_once_with("mymaster")
        assert store.client is sentinel.master_for.return_value
        assert sentinel_cls.call_args.args[0] == [("sentinel-1", 26379)]

    def test_from_cluster_url(self, mock_logger):
        with patch(
            "pykeyv.infrastructure.storage.redis_store.RedisCluster.from_url"
        ) as from_url:
            from_url.return_value = MagicMock()
            store = RedisStore.from_cluster_url("redis://node-1:7000", logger=mock_logger)

        assert store.is_cluster is True
        assert store.opts["url"] == "redis://node-1:7000"
        assert "retry" in from_url.call_args.kwargs


@pytest.mark.unit
class TestSingleKeyOperations:
    @pytest.mark.asyncio
    async def test_set_get(self, store, redis_client):
        assert await store.set("a", "value") is True

        assert await store.get("a") == "value"
        assert await redis_client.get("ns::a") == "value"

    @pytest.mark.asyncio
    async def test_set_with_ttl_uses_px(self, store, redis_client):
        await store.set("a", "value", ttl=5000)

        assert 0 < await redis_client.pttl("ns::a") <= 5000

    @pytest.mark.asyncio
    async def test_set_without_ttl_never_expires(self, store, redis_client):
        await store.set("a", "value", ttl=0)

        assert await redis_client.pttl("ns::a") == -1

    @pytest.mark.asyncio
    async def test_get_missing(self, store):
        assert await store.get("missing") is None

    @pytest.mark.asyncio
    async def test_delete(self, store):
        await store.set("a", "value")

        assert await store.delete("a") is True
        assert await store.delete("a") is False

    @pytest.mark.asyncio
    async def test_delete_with_del_command(self, store):
        store.use_unlink = False
        await store.set("a", "value")

        assert await store.delete("a") is True

    @pytest.mark.asyncio
    async def test_has(self, store):
        await store.set("a", "value")

        assert await store.has("a") is True
        assert await store.has("b") is False

    @pytest.mark.asyncio
    async def test_connect_emits_once(self, store, mock_logger):
        events = []
        store.on("connect", events.append)

        await store.get("a")
        await store.get("b")

        assert len(events) == 1
        mock_logger.info.assert_any_call("store_connected", store="redis", cluster=False)

    @pytest.mark.asyncio
    async def test_disconnect(self, mock_logger):
        client = fakeredis.aioredis.FakeRedis(decode_responses=True)
        store = RedisStore(client, logger=mock_logger)
        events = []
        store.on("disconnect", events.append)

        await store.disconnect()

        assert events == [client]


@pytest.mark.unit
class TestBatchOperations:
    @pytest.mark.asyncio
    async def test_set_many_get_many(self, store):
        flags = await store.set_many(
            [KeyvEntry("a", "1"), {"key": "b", "value": "2", "ttl": 1000}]
        )

        assert flags == [True, True]
        assert await store.get_many(["b", "missing", "a"]) == ["2", None, "1"]

    @pytest.mark.asyncio
    async def test_empty_batches(self, store):
        assert await store.get_many([]) == []
        assert await store.set_many([]) == []
        assert await store.has_many([]) == []
        assert await store.delete_many([]) is False

    @pytest.mark.asyncio
    async def test_has_many(self, store):
        await store.set("a", "1")

        assert await store.has_many(["a", "b"]) == [True, False]

    @pytest.mark.asyncio
    async def test_delete_many_true_when_any_deleted(self, store):
        await store.set("a", "1")

        assert await store.delete_many(["a", "missing"]) is True
        assert await store.delete_many(["a", "missing"]) is False


@pytest.mark.unit
class TestClear:
    @pytest.mark.asyncio
    async def test_clear_only_namespace(self, store, redis_client):
        await store.set("a", "1")
        await redis_client.set("other::a", "x")
        await redis_client.set("bare", "y")

        await store.clear()

        assert sorted(await redis_client.keys("*")) == ["bare", "other::a"]
        assert await store.get("a") is None

    @pytest.mark.asyncio
    async def test_clear_in_small_batches(self, redis_client, mock_logger):
        store = RedisStore(redis_client, namespace="ns", clear_batch_size=2, logger=mock_logger)
        for i in range(7):
            await store.set(f"k{i}", str(i))

        await store.clear()

        assert await redis_client.keys("ns::*") == []

    @pytest.mark.asyncio
    async def test_clear_without_namespace_keeps_prefixed_keys(self, redis_client, mock_logger):
        store = RedisStore(redis_client, logger=mock_logger)
        await redis_client.set("bare", "1")
        await redis_client.set("ns::a", "2")

        await store.clear()

        assert await redis_client.keys("*") == ["ns::a"]

    @pytest.mark.asyncio
    async def test_clear_without_namespace_affects_all(self, redis_client, mock_logger):
        store = RedisStore(redis_client, no_namespace_affects_all=True, logger=mock_logger)
        await redis_client.set("bare", "1")
        await redis_client.set("ns::a", "2")

        await store.clear()

        assert await redis_client.keys("*") == []

    @pytest.mark.asyncio
    async def test_namespace_glob_characters_are_escaped(self, redis_client, mock_logger):
        store = RedisStore(redis_client, namespace="a*", logger=mock_logger)
        await store.set("k", "1")
        await redis_client.set("ab::k", "2")

        await store.clear()

        assert await redis_client.keys("*") == ["ab::k"]


@pytest.mark.unit
class TestIterator:
    @pytest.mark.asyncio
    async def test_yields_unprefixed_keys_of_namespace(self, store, redis_client):
        await store.set("a", "1")
        await store.set("b", "2")
        await redis_client.set("other::c", "3")

        assert sorted(await collect(store.iterator())) == [("a", "1"), ("b", "2")]

    @pytest.mark.asyncio
    async def test_explicit_namespace(self, store, redis_client):
        await redis_client.set("other::c", "3")

        assert await collect(store.iterator("other")) == [("c", "3")]

    @pytest.mark.asyncio
    async def test_without_namespace_skips_prefixed_keys(self, redis_client, mock_logger):
        store = RedisStore(redis_client, logger=mock_logger)
        await redis_client.set("bare", "1")
        await redis_client.set("ns::a", "2")

        assert await collect(store.iterator()) == [("bare", "1")]

    @pytest.mark.asyncio
    async def test_iteration_limit_is_scan_count(self, redis_client, mock_logger):
        store = RedisStore(
            redis_client, namespace="ns", iteration_limit=2, logger=mock_logger
        )
        for key in "abcde":
            await store.set(key, key)

        with patch.object(redis_client, "scan", wraps=redis_client.scan) as scan:
            entries = await collect(store.iterator())

        assert sorted(entries) == [(key, key) for key in "abcde"]
        assert {call.kwargs["count"] for call in scan.call_args_list} == {2}
        assert store.opts["iteration_limit"] == 2


@pytest.mark.unit
class TestErrorPolicy:
    @pytest.mark.asyncio
    async def test_unreachable_server_raises_by_default(self, mock_logger):
        store = RedisStore(UnreachableClient(), logger=mock_logger)
        errors = []
        store.on("error", errors.append)

        with pytest.raises(StoreConnectionException) as exc_info:
            await store.get("a")

        assert exc_info.value.reported is True
        assert len(errors) == 1
        assert errors[0].code == ErrorCode.STORE_UNAVAILABLE
        assert errors[0].infrastructure_code == InfrastructureErrorCode.STORE_CONNECTION_ERROR

    @pytest.mark.asyncio
    async def test_unreachable_server_fails_open_when_configured(self, mock_logger):
        store = RedisStore(UnreachableClient(), throw_on_connect_error=False, logger=mock_logger)
        errors = []
        store.on("error", errors.append)

        assert await store.connect() is False
        assert await store.get("a") is None
        assert await store.set("a", "1") is False
        assert await store.get_many(["a", "b"]) == [None, None]
        assert len(errors) == 4

    @pytest.mark.asyncio
    async def test_redis_timeout_is_a_connection_error(self, mock_logger):
        store = RedisStore(
            UnreachableClient(RedisTimeoutError("Timeout")),
            throw_on_connect_error=False,
            logger=mock_logger,
        )
        errors = []
        store.on("error", errors.append)

        await store.connect()

        assert errors[0].infrastructure_code == InfrastructureErrorCode.STORE_TIMEOUT
        assert errors[0].is_connection_error

    @pytest.mark.asyncio
    async def test_connection_timeout_bounds_ping(self, mock_logger):
        store = RedisStore(
            SlowClient(),
            connection_timeout=10,
            throw_on_connect_error=False,
            logger=mock_logger,
        )
        errors = []
        store.on("error", errors.append)

        assert await store.connect() is False
        assert errors[0].infrastructure_code == InfrastructureErrorCode.STORE_TIMEOUT

    @pytest.mark.asyncio
    async def test_command_error_returns_default(self, store, redis_client, mock_logger):
        await redis_client.rpush("ns::list", "x")
        errors = []
        store.on("error", errors.append)

        assert await store.get("list") is None

        assert isinstance(errors[0], StoreError)
        assert errors[0].code == ErrorCode.STORE_OPERATION_FAILED
        assert errors[0].infrastructure_code == InfrastructureErrorCode.STORE_GET_ERROR
        assert errors[0].details["key"] == "ns::list"
        assert mock_logger.error.call_args.args[0] == "store_operation_failed"

    @pytest.mark.asyncio
    async def test_command_error_raises_when_configured(self, store, redis_client):
        store.throw_on_errors = True
        await redis_client.rpush("ns::list", "x")

        with pytest.raises(StoreOperationException):
            await store.get("list")


@pytest.mark.unit
class TestClusterMode:
    @pytest.mark.asyncio
    async def test_guard_rejects_cross_slot_commands(self, redis_client):
        guard = CrossSlotGuard(redis_client)

        with pytest.raises(ResponseError, match="CROSSSLOT"):
            await guard.mget(FOO_KEYS + BAR_KEYS)

    @pytest.mark.asyncio
    async def test_batch_operations_split_by_slot(self, cluster_store):
        keys = [FOO_KEYS[0], BAR_KEYS[0], FOO_KEYS[1]]
        errors = []
        cluster_store.on("error", errors.append)

        flags = await cluster_store.set_many([KeyvEntry(key, key) for key in keys])
        values = await cluster_store.get_many(keys + ["{bar}:missing"])
        existing = await cluster_store.has_many(keys)
        deleted = await cluster_store.delete_many(keys)

        assert errors == []
        assert flags == [True, True, True]
        assert values == keys + [None]
        assert existing == [True, True, True]
        assert deleted is True
        assert await cluster_store.get_many(keys) == [None, None, None]

    @pytest.mark.asyncio
    async def test_clear_uses_scan_iter(self, cluster_store, redis_client):
        cluster_store.clear_batch_size = 2
        for key in FOO_KEYS + BAR_KEYS + ["{baz}:1"]:
            await cluster_store.set(key, "v")
        await redis_client.set("other::x", "kept")

        await cluster_store.clear()

        assert await redis_client.keys("*") == ["other::x"]

    @pytest.mark.asyncio
    async def test_iterator_unsupported(self, cluster_store):
        with pytest.raises(UnsupportedOperationException):
            await collect(cluster_store.iterator())
