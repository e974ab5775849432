"""Unit tests for GenericStore (mapping-backed store adapter).

Tests cover:
- Namespace prefixing (static and callable namespaces)
- TTL stamping and lazy eviction
- Batch fallbacks
- Namespace-scoped clear and iteration
- Failures emitted on the error channel
"""

import pytest
from freezegun import freeze_time

from pykeyv.core.enums import ErrorCode
from pykeyv.core.errors import ConfigurationException
from pykeyv.domain.value_objects import KeyvEntry
from pykeyv.infrastructure.enums import InfrastructureErrorCode
from pykeyv.infrastructure.errors import StoreError
from pykeyv.infrastructure.storage import GenericStore


class ExplodingDict(dict):
    """Mapping whose pop always fails."""

    def pop(self, *args):
        raise RuntimeError("pop failed")


@pytest.fixture
def backing():
    return {}


@pytest.fixture
def store(backing, mock_logger):
    return GenericStore(backing, namespace="ns", logger=mock_logger)


async def collect(iterator):
    return [entry async for entry in iterator]


@pytest.mark.unit
class TestConfiguration:
    def test_defaults(self, mock_logger):
        store = GenericStore(logger=mock_logger)

        assert store.namespace is None
        assert store.key_separator == "::"
        assert store.opts == {"namespace": None, "key_separator": "::"}
        assert store.store == {}

    def test_empty_separator_rejected(self, mock_logger):
        with pytest.raises(ConfigurationException):
            GenericStore(key_separator="", logger=mock_logger)

    def test_namespace_with_separator_rejected(self, mock_logger):
        with pytest.raises(ConfigurationException) as exc_info:
            GenericStore(namespace="a::b", logger=mock_logger)

        assert exc_info.value.error.code == ErrorCode.INVALID_NAMESPACE

    def test_callable_namespace_is_evaluated_per_call(self, mock_logger):
        current = {"tenant": "t1"}
        store = GenericStore(namespace=lambda: current["tenant"], logger=mock_logger)

        assert store.namespace == "t1"
        current["tenant"] = "t2"
        assert store.get_namespace() == "t2"

    def test_key_prefix_helpers(self, store):
        assert store.get_key_prefix("k", "ns") == "ns::k"
        assert store.get_key_prefix("k") == "k"
        assert store.get_key_prefix_data("ns::a::b").namespace == "ns"
        assert store.get_key_prefix_data("ns::a::b").key == "a::b"
        assert store.get_key_prefix_data("plain").namespace is None


@pytest.mark.unit
class TestSingleKeyOperations:
    @pytest.mark.asyncio
    async def test_set_writes_prefixed_entry(self, store, backing):
        assert await store.set("user", {"id": 1}) is True

        assert backing == {"ns::user": {"value": {"id": 1}, "expires": None}}
        assert await store.get("user") == {"id": 1}

    @pytest.mark.asyncio
    async def test_get_missing_key(self, store):
        assert await store.get("nope") is None

    @pytest.mark.asyncio
    async def test_delete_reports_existence(self, store):
        await store.set("a", 1)

        assert await store.delete("a") is True
        assert await store.delete("a") is False

    @pytest.mark.asyncio
    async def test_has(self, store):
        await store.set("a", 1)

        assert await store.has("a") is True
        assert await store.has("b") is False

    @pytest.mark.asyncio
    async def test_raw_values_are_returned_as_is(self, store, backing):
        backing["ns::legacy"] = "plain-value"

        assert await store.get("legacy") == "plain-value"

    @pytest.mark.asyncio
    async def test_expired_entry_is_evicted_on_read(self, store, backing, mock_logger):
        with freeze_time("2024-01-01 00:00:00") as frozen:
            await store.set("a", 1, ttl=100)
            frozen.tick(0.05)
            assert await store.get("a") == 1

            frozen.tick(0.1)
            assert await store.get("a") is None

        assert "ns::a" not in backing
        mock_logger.debug.assert_any_call("expired_entry_evicted", key="ns::a")

    @pytest.mark.asyncio
    async def test_zero_ttl_never_expires(self, store, backing):
        await store.set("a", 1, ttl=0)

        assert backing["ns::a"]["expires"] is None


@pytest.mark.unit
class TestBatchOperations:
    @pytest.mark.asyncio
    async def test_set_many_and_get_many(self, store):
        results = await store.set_many(
            [KeyvEntry("a", 1), {"key": "b", "value": 2, "ttl": 1000}]
        )

        assert results == [True, True]
        assert await store.get_many(["a", "missing", "b"]) == [1, None, 2]

    @pytest.mark.asyncio
    async def test_delete_many(self, store, backing):
        await store.set("a", 1)
        await store.set("b", 2)

        assert await store.delete_many(["a", "b", "c"]) is True
        assert backing == {}

    @pytest.mark.asyncio
    async def test_delete_many_failure_is_emitted_once(self, mock_logger):
        store = GenericStore(ExplodingDict(), namespace="ns", logger=mock_logger)
        errors = []
        store.on("error", errors.append)

        result = await store.delete_many(["a", "b"])

        assert result is False
        assert len(errors) == 1
        assert isinstance(errors[0], StoreError)
        assert errors[0].code == ErrorCode.STORE_OPERATION_FAILED
        assert errors[0].infrastructure_code == InfrastructureErrorCode.STORE_DELETE_ERROR
        assert isinstance(errors[0].cause, RuntimeError)


@pytest.mark.unit
class TestClear:
    @pytest.mark.asyncio
    async def test_clear_only_touches_namespace(self, store, backing):
        backing["other::a"] = {"value": 1, "expires": None}
        backing["bare"] = {"value": 2, "expires": None}
        await store.set("a", 3)

        await store.clear()

        assert backing == {
            "other::a": {"value": 1, "expires": None},
            "bare": {"value": 2, "expires": None},
        }

    @pytest.mark.asyncio
    async def test_clear_without_namespace_empties_mapping(self, backing, mock_logger):
        store = GenericStore(backing, logger=mock_logger)
        backing["ns::a"] = {"value": 1, "expires": None}

        await store.clear()

        assert backing == {}


@pytest.mark.unit
class TestIterator:
    @pytest.mark.asyncio
    async def test_iterates_store_namespace(self, store, backing):
        await store.set("a", 1)
        await store.set("b", 2)
        backing["other::c"] = {"value": 3, "expires": None}

        assert sorted(await collect(store.iterator())) == [("a", 1), ("b", 2)]

    @pytest.mark.asyncio
    async def test_iterates_explicit_namespace(self, store, backing):
        backing["other::c"] = {"value": 3, "expires": None}

        assert await collect(store.iterator("other")) == [("c", 3)]

    @pytest.mark.asyncio
    async def test_without_namespace_only_unprefixed_keys(self, backing, mock_logger):
        store = GenericStore(backing, logger=mock_logger)
        backing["ns::a"] = {"value": 1, "expires": None}
        backing["bare"] = {"value": 2, "expires": None}

        assert await collect(store.iterator()) == [("bare", 2)]

    @pytest.mark.asyncio
    async def test_expired_entries_are_skipped(self, store, backing):
        with freeze_time("2024-01-01 00:00:00") as frozen:
            await store.set("short", 1, ttl=10)
            await store.set("long", 2, ttl=10_000)
            frozen.tick(1)

            entries = await collect(store.iterator())

        assert entries == [("long", 2)]
        assert "ns::short" not in backing
