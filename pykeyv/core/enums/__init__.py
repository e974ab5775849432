"""Core enums package.

Usage:
    from pykeyv.core.enums import ErrorCode, Environment
"""

from pykeyv.core.enums.environment import Environment
from pykeyv.core.enums.error_code import ErrorCode

__all__ = ["Environment", "ErrorCode"]
