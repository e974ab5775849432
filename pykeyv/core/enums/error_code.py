"""Error codes carried by every KeyvError (machine-readable).

Codes follow the SUBJECT_REASON naming convention and are stable: listeners
on the ``error`` channel may branch on them.
"""

from enum import Enum


class ErrorCode(Enum):
    """Error codes for cache failures."""

    # Store errors
    STORE_OPERATION_FAILED = "store_operation_failed"
    STORE_UNAVAILABLE = "store_unavailable"

    # Value errors
    SERIALIZATION_FAILED = "serialization_failed"

    # Extension point errors
    HOOK_FAILED = "hook_failed"

    # Usage errors
    UNSUPPORTED_OPERATION = "unsupported_operation"
    INVALID_CONFIGURATION = "invalid_configuration"
    INVALID_NAMESPACE = "invalid_namespace"
