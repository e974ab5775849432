"""Base error class for the error channel.

KeyvError is the base class for every error the cache reports. Errors are
data: they are emitted on the ``error`` event channel and carried inside
KeyvException when a failure has to be raised.

Architecture:
- Does NOT inherit from Exception (emitted, not raised)
- Uses dataclass inheritance
- ``cause`` keeps the original exception for listeners that need it

Usage:
    from pykeyv.core.errors import KeyvError
    from pykeyv.core.enums import ErrorCode

    @dataclass(frozen=True, slots=True, kw_only=True)
    class MyError(KeyvError):
        pass  # Inherits code, message, details, cause
"""

from dataclasses import dataclass
from typing import Any

from pykeyv.core.enums import ErrorCode


@dataclass(frozen=True, slots=True, kw_only=True)
class KeyvError:
    """Base cache error (does NOT inherit from Exception).

    Attributes:
        code: Machine-readable error code (enum).
        message: Human-readable error message.
        details: Optional context for debugging (key, operation, ...).
        cause: Original exception, if the error wraps one.
    """

    code: ErrorCode
    message: str
    details: dict[str, Any] | None = None
    cause: BaseException | None = None

    def __str__(self) -> str:
        """String representation of error."""
        return f"{self.code.value}: {self.message}"
