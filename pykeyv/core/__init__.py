"""Core shared kernel.

Foundational pieces used across all layers:
- Result types for the store command layer
- Error dataclasses (emitted) and exceptions (raised)
- Error codes and runtime environment enum

The core module has NO dependencies on other package layers.
"""

from pykeyv.core.enums import Environment, ErrorCode
from pykeyv.core.errors import KeyvError, KeyvException
from pykeyv.core.result import Failure, Result, Success

__all__ = [
    "Environment",
    "ErrorCode",
    "Failure",
    "KeyvError",
    "KeyvException",
    "Result",
    "Success",
]
