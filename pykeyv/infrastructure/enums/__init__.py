"""Infrastructure enums package.

Usage:
    from pykeyv.infrastructure.enums import InfrastructureErrorCode
"""

from pykeyv.infrastructure.enums.infrastructure_error_code import (
    InfrastructureErrorCode,
)

__all__ = ["InfrastructureErrorCode"]
