"""Common error classes used across the orchestrator and adapters.

Error Types:
- SerializationError: value cannot be represented by the active codec
- HookError: a user hook handler raised
- ConfigurationError: invalid option or unknown store tag
- UnsupportedOperationError: operation not offered by the active store
"""

from dataclasses import dataclass

from pykeyv.core.errors.domain_error import KeyvError


@dataclass(frozen=True, slots=True, kw_only=True)
class SerializationError(KeyvError):
    """Value could not be serialized or deserialized.

    Attributes:
        key: Key of the value being encoded, when known.
    """

    key: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class HookError(KeyvError):
    """Hook handler failure.

    Attributes:
        event: Hook event whose handler raised.
    """

    event: str


@dataclass(frozen=True, slots=True, kw_only=True)
class ConfigurationError(KeyvError):
    """Invalid configuration.

    Attributes:
        option: Name of the offending option.
    """

    option: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class UnsupportedOperationError(KeyvError):
    """Operation is not available for the active store.

    Attributes:
        operation: Name of the rejected operation.
    """

    operation: str
