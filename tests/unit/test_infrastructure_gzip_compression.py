"""Unit tests for GzipCompression."""

import base64
import gzip
import json

import pytest

from pykeyv.domain.protocols import CompressionAdapter
from pykeyv.infrastructure.compression import GzipCompression


@pytest.mark.unit
class TestGzipCompression:
    def test_satisfies_compression_protocol(self):
        assert isinstance(GzipCompression(), CompressionAdapter)

    def test_default_level(self):
        assert GzipCompression().opts == {"level": 6}

    @pytest.mark.parametrize("level", [-1, 10])
    def test_rejects_invalid_level(self, level):
        with pytest.raises(ValueError):
            GzipCompression(level=level)

    @pytest.mark.asyncio
    async def test_compress_produces_base64_gzip(self):
        adapter = GzipCompression(level=9)

        compressed = await adapter.compress("hello " * 100)

        assert gzip.decompress(base64.b64decode(compressed)) == b"hello " * 100
        assert len(compressed) < len("hello " * 100)

    @pytest.mark.asyncio
    async def test_decompress_reverses_compress(self):
        adapter = GzipCompression()

        assert await adapter.decompress(await adapter.compress("héllo")) == "héllo"

    @pytest.mark.asyncio
    async def test_serialize_keeps_expires_readable(self):
        adapter = GzipCompression()

        text = await adapter.serialize({"value": {"a": [1, 2]}, "expires": 1234})

        outer = json.loads(text)
        assert outer["expires"] == 1234
        assert outer["value"] != {"a": [1, 2]}

    @pytest.mark.asyncio
    async def test_deserialize_restores_envelope(self):
        adapter = GzipCompression()
        text = await adapter.serialize({"value": {"a": b"\x01"}, "expires": None})

        assert await adapter.deserialize(text) == {"value": {"a": b"\x01"}, "expires": None}

    @pytest.mark.asyncio
    async def test_deserialize_none(self):
        assert await GzipCompression().deserialize(None) is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "text",
        [
            '{"value":"abcd","expires":null}',
            json.dumps(
                {"value": base64.b64encode(gzip.compress(b'"x"'))[:12].decode(), "expires": None}
            ),
            '{"expires":null}',
        ],
        ids=["not-gzip", "truncated", "missing-value"],
    )
    async def test_deserialize_rejects_foreign_payload(self, text):
        with pytest.raises(ValueError):
            await GzipCompression().deserialize(text)
