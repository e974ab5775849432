"""Compression adapters."""

from pykeyv.infrastructure.compression.gzip_adapter import GzipCompression

__all__ = ["GzipCompression"]
