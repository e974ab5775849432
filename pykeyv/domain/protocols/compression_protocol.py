"""CompressionAdapter protocol.

A compression adapter replaces the orchestrator's codec: ``serialize``
turns an envelope mapping into stored text, ``deserialize`` reverses it.
``compress``/``decompress`` operate on a single value.
"""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class CompressionAdapter(Protocol):
    """Pluggable compress/decompress/serialize/deserialize pipeline."""

    async def compress(self, value: Any, **options: Any) -> Any:
        """Compress a value."""
        ...

    async def decompress(self, value: Any, **options: Any) -> Any:
        """Decompress a value produced by ``compress``."""
        ...

    async def serialize(self, data: dict[str, Any]) -> str:
        """Encode a ``{value, expires}`` mapping, compressing the value."""
        ...

    async def deserialize(self, data: str) -> dict[str, Any] | None:
        """Decode text produced by ``serialize``."""
        ...
