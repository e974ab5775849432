"""Gzip compression adapter.

Compressed payloads are base64 text so they travel through text-only
stores. ``serialize`` JSON-encodes the caller's value before compressing
it, so any value the default codec accepts is accepted here too.

Usage:
    keyv = Keyv(store=RedisStore(url), compression=GzipCompression(level=9))
"""

import base64
import gzip
from typing import Any

from pykeyv.infrastructure.serialization import json_serializer


class GzipCompression:
    """CompressionAdapter over stdlib gzip.

    Args:
        level: Compression level 0-9 (default 6).
    """

    def __init__(self, *, level: int = 6) -> None:
        if not 0 <= level <= 9:
            raise ValueError("gzip level must be between 0 and 9")
        self.opts: dict[str, Any] = {"level": level}

    async def compress(self, value: str | bytes, **options: Any) -> str:
        """Compress text or bytes, returning base64 text."""
        raw = value.encode("utf-8") if isinstance(value, str) else bytes(value)
        level = options.get("level", self.opts["level"])
        return base64.b64encode(gzip.compress(raw, compresslevel=level)).decode("ascii")

    async def decompress(self, value: str | bytes, **options: Any) -> str:
        """Reverse ``compress``, returning text."""
        return gzip.decompress(base64.b64decode(value)).decode("utf-8")

    async def serialize(self, data: dict[str, Any]) -> str:
        compressed = await self.compress(json_serializer.serialize(data.get("value")))
        return json_serializer.serialize(
            {"value": compressed, "expires": data.get("expires")}
        )

    async def deserialize(self, data: str) -> dict[str, Any] | None:
        """Reverse ``serialize``.

        Raises:
            ValueError: ``data`` is not a compressed envelope (bad gzip
                stream, truncated payload or missing ``value`` field).
        """
        if data is None:
            return None
        decoded = json_serializer.deserialize(data)
        try:
            value = json_serializer.deserialize(await self.decompress(decoded["value"]))
        except (OSError, EOFError, KeyError) as e:
            raise ValueError(f"not a gzip envelope: {e!r}") from e
        return {"value": value, "expires": decoded.get("expires")}
