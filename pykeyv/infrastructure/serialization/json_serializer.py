"""Default codec for stored envelopes.

JSON with two text conventions so binary values survive the round trip:

    b"hi"     -> ":base64:aGk="
    ":colon"  -> "::colon"   (leading colon escaped with one extra colon)

Output uses compact separators. Values json cannot represent (sets,
arbitrary objects, NaN) raise TypeError or ValueError; the orchestrator
turns those into a SerializationError.

Usage:
    text = serialize({"value": b"\\x00", "expires": None})
    deserialize(text)  # {"value": b"\\x00", "expires": None}
"""

import base64
import json
from typing import Any

BASE64_PREFIX = ":base64:"


def _encode(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return BASE64_PREFIX + base64.b64encode(bytes(value)).decode("ascii")
    if isinstance(value, str):
        return ":" + value if value.startswith(":") else value
    if isinstance(value, dict):
        return {key: _encode(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_encode(item) for item in value]
    return value


def _decode(value: Any) -> Any:
    if isinstance(value, str):
        if value.startswith(BASE64_PREFIX):
            return base64.b64decode(value[len(BASE64_PREFIX) :])
        if value.startswith(":"):
            return value[1:]
        return value
    if isinstance(value, dict):
        return {key: _decode(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_decode(item) for item in value]
    return value


def serialize(data: Any) -> str:
    """Encode data as compact JSON.

    Raises:
        TypeError: A value has no JSON representation.
        ValueError: A float is NaN or infinite, or the data is circular.
    """
    return json.dumps(_encode(data), separators=(",", ":"), allow_nan=False)


def deserialize(data: str | bytes | None) -> Any:
    """Decode text produced by ``serialize``. None passes through."""
    if data is None:
        return None
    return _decode(json.loads(data))
