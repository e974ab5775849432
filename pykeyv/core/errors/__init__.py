"""Core errors package.

Exports error dataclasses (emitted) and exceptions (raised).

Usage:
    from pykeyv.core.errors import KeyvError, SerializationException
"""

from pykeyv.core.errors.common_errors import (
    ConfigurationError,
    HookError,
    SerializationError,
    UnsupportedOperationError,
)
from pykeyv.core.errors.domain_error import KeyvError
from pykeyv.core.errors.exceptions import (
    ConfigurationException,
    KeyvException,
    SerializationException,
    StoreConnectionException,
    StoreOperationException,
    UnsupportedOperationException,
)

__all__ = [
    "KeyvError",
    "SerializationError",
    "HookError",
    "ConfigurationError",
    "UnsupportedOperationError",
    "KeyvException",
    "StoreOperationException",
    "StoreConnectionException",
    "SerializationException",
    "UnsupportedOperationException",
    "ConfigurationException",
]
