"""Store error type.

Adapters catch client exceptions and map them to StoreError, which is
emitted on the adapter's ``error`` channel and forwarded by the
orchestrator.

Architecture:
- StoreError inherits from KeyvError (not Exception)
- ``code`` is the domain ErrorCode (STORE_OPERATION_FAILED or STORE_UNAVAILABLE)
- ``infrastructure_code`` records the failing command
- Used with Result types inside the Redis adapter
"""

from dataclasses import dataclass

from pykeyv.core.errors import KeyvError
from pykeyv.infrastructure.enums import InfrastructureErrorCode


@dataclass(frozen=True, slots=True, kw_only=True)
class StoreError(KeyvError):
    """Store command or connectivity failure.

    Attributes:
        code: Domain ErrorCode.
        message: Human-readable message.
        infrastructure_code: Store-specific error code.
        details: Additional context (operation, key, store).
        cause: Client exception.
    """

    infrastructure_code: InfrastructureErrorCode | None = None

    @property
    def is_connection_error(self) -> bool:
        """Whether the store was unreachable rather than the command rejected."""
        return self.infrastructure_code in (
            InfrastructureErrorCode.STORE_CONNECTION_ERROR,
            InfrastructureErrorCode.STORE_TIMEOUT,
        )
