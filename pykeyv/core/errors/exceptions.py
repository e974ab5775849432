"""Exceptions raised when a failure must reach the caller.

Every exception wraps the KeyvError that describes it. ``reported`` is set
by components that already emitted the error on their own channel, so an
orchestrator catching the exception does not emit it a second time.
"""

from pykeyv.core.errors.domain_error import KeyvError


class KeyvException(Exception):
    """Base exception for cache operations.

    Attributes:
        error: The error describing the failure.
        reported: True when the error was already emitted.
    """

    def __init__(self, error: KeyvError, *, reported: bool = False) -> None:
        super().__init__(str(error))
        self.error = error
        self.reported = reported


class StoreOperationException(KeyvException):
    """A store command failed (bad argument, transient failure)."""


class StoreConnectionException(KeyvException):
    """The backing store could not be reached."""


class SerializationException(KeyvException):
    """A value is not representable by the active codec."""


class UnsupportedOperationException(KeyvException):
    """The active store does not offer the requested operation."""


class ConfigurationException(KeyvException):
    """Invalid configuration (option value, namespace, store tag)."""
