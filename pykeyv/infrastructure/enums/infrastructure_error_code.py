"""Infrastructure-specific error codes.

Internal codes for tracking which store command failed. They are carried
next to the domain ErrorCode on every StoreError.

Categories:
- Command errors (STORE_*_ERROR)
- Connectivity errors (STORE_CONNECTION_ERROR, STORE_TIMEOUT)
"""

from enum import Enum


class InfrastructureErrorCode(Enum):
    """Infrastructure-specific error codes."""

    # Command errors
    STORE_GET_ERROR = "store_get_error"
    STORE_SET_ERROR = "store_set_error"
    STORE_DELETE_ERROR = "store_delete_error"
    STORE_CLEAR_ERROR = "store_clear_error"
    STORE_SCAN_ERROR = "store_scan_error"

    # Connectivity errors
    STORE_CONNECTION_ERROR = "store_connection_error"
    STORE_TIMEOUT = "store_timeout"
