"""Result types for store calls that can fail.

The Redis adapter wraps every client call into a Result so that the
decision between returning a value and applying the error policy
(emit, swallow, raise) is made in one place with pattern matching.

Usage:
    match await self._run("get", lambda: client.get(key), key=key):
        case Success(value=value):
            return value
        case Failure(error=error):
            return self._fail(error, default=None)
"""

from dataclasses import dataclass
from typing import Generic, TypeAlias, TypeVar

T = TypeVar("T")  # Success type
E = TypeVar("E")  # Error type


@dataclass(frozen=True, slots=True, kw_only=True)
class Success(Generic[T]):
    """Represents a successful store call.

    Attributes:
        value: The value returned by the store.
    """

    value: T


@dataclass(frozen=True, slots=True, kw_only=True)
class Failure(Generic[E]):
    """Represents a failed store call.

    Attributes:
        error: The error describing the failure.
    """

    error: E


Result: TypeAlias = Success[T] | Failure[E]
