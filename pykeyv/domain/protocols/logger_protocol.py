"""LoggerProtocol definition for structured logging.

Every component that reports background failures (event listeners, hook
handlers, store commands, lazy eviction) logs through this protocol. Calls
are structured: a snake_case event name plus key-value context.

Log Levels:
    - DEBUG: Lazy eviction, listener bookkeeping
    - INFO: Store connected/disconnected, namespace cleared
    - WARNING: Listener limit exceeded, degraded store
    - ERROR: Store command or hook failure, the cache continues

Usage:
    from pykeyv.core.container import get_logger
    from pykeyv.domain.protocols.logger_protocol import LoggerProtocol

    logger: LoggerProtocol = get_logger()
    logger.info("store_connected", store="redis", url=url)

    store_logger = logger.bind(store="redis", namespace="users")
    store_logger.debug("expired_entry_evicted", key=key)
"""

from __future__ import annotations

from typing import Any, Protocol


class LoggerProtocol(Protocol):
    """Protocol for structured logging adapters.

    Implementations render the event name and context; they never raise.
    """

    def debug(self, message: str, /, **context: Any) -> None:
        """Log a debug-level message.

        Args:
            message: Event name (snake_case).
            **context: Structured key-value context fields.
        """
        ...

    def info(self, message: str, /, **context: Any) -> None:
        """Log an info-level message.

        Args:
            message: Event name (snake_case).
            **context: Structured key-value context fields.
        """
        ...

    def warning(self, message: str, /, **context: Any) -> None:
        """Log a warning-level message.

        Args:
            message: Event name (snake_case).
            **context: Structured key-value context fields.
        """
        ...

    def error(
        self, message: str, /, *, error: BaseException | None = None, **context: Any
    ) -> None:
        """Log an error-level message with optional exception details.

        Args:
            message: Event name (snake_case).
            error: Optional exception; implementations add error_type and
                error_message fields.
            **context: Structured key-value context fields.
        """
        ...

    def bind(self, **context: Any) -> "LoggerProtocol":
        """Return new logger with permanently bound context.

        The original logger is unchanged.

        Args:
            **context: Context to bind to all future logs.

        Returns:
            New logger instance with bound context.
        """
        ...
