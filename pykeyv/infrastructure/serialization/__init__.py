"""Serialization codecs."""

from pykeyv.infrastructure.serialization.json_serializer import deserialize, serialize

__all__ = ["deserialize", "serialize"]
