"""Infrastructure errors package.

Usage:
    from pykeyv.infrastructure.errors import StoreError
"""

from pykeyv.infrastructure.errors.store_error import StoreError

__all__ = ["StoreError"]
