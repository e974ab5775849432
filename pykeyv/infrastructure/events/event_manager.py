"""In-process event manager.

Base class for every component that reports asynchronous failures without
raising: stores, the orchestrator, hooks and stats all inherit from it and
publish on named channels (``error``, ``connect``, ``disconnect``, ``clear``).

Architecture:
    - Dictionary-based listener registry (event name -> list of listeners)
    - Listeners run synchronously in registration order
    - Fail-open: a listener exception is logged and later listeners still run
    - Soft listener limit: exceeding it logs a warning, never rejects

Usage:
    >>> store = GenericStore({})
    >>> store.on("error", lambda error: print(error.message))
    >>> store.emit("error", StoreError(...))
"""

from collections.abc import Callable
from typing import Any, Self, TypeAlias

from pykeyv.domain.protocols.logger_protocol import LoggerProtocol

EventListener: TypeAlias = Callable[..., Any]

DEFAULT_MAX_LISTENERS = 100


class EventManager:
    """Listener registry with fail-open emission.

    Not thread-safe (single event loop design).

    Attributes:
        _event_listeners: Event name to ordered list of listeners.
        _max_listeners: Per-event listener count that triggers a warning.
    """

    def __init__(self, *, logger: LoggerProtocol | None = None) -> None:
        """Initialize the registry.

        Args:
            logger: Logger for listener failures. Defaults to the container
                logger, resolved on first use.
        """
        self._event_listeners: dict[str, list[EventListener]] = {}
        self._max_listeners = DEFAULT_MAX_LISTENERS
        self._logger_override = logger

    @property
    def logger(self) -> LoggerProtocol:
        """Logger used by this component."""
        if self._logger_override is None:
            # Deferred: the container builds stores that inherit from this class.
            from pykeyv.core.container import get_logger

            self._logger_override = get_logger()
        return self._logger_override

    def max_listeners(self) -> int:
        return self._max_listeners

    def set_max_listeners(self, n: int) -> None:
        """Set the per-event listener count above which a warning is logged."""
        self._max_listeners = n

    def on(self, event: str, listener: EventListener) -> Self:
        """Register a listener.

        The same listener may be registered more than once; it then runs
        once per registration.

        Args:
            event: Event name.
            listener: Callable receiving the emitted arguments.

        Returns:
            self, for chaining.
        """
        listeners = self._event_listeners.setdefault(event, [])
        if len(listeners) >= self._max_listeners:
            self.logger.warning(
                "max_listeners_exceeded",
                event=event,
                listener_count=len(listeners) + 1,
                max_listeners=self._max_listeners,
            )
        listeners.append(listener)
        return self

    def off(self, event: str, listener: EventListener) -> None:
        """Remove the first registration of a listener (no-op if absent)."""
        listeners = self._event_listeners.get(event, [])
        if listener in listeners:
            listeners.remove(listener)
        if not listeners:
            self._event_listeners.pop(event, None)

    def once(self, event: str, listener: EventListener) -> None:
        """Register a listener removed after its first call."""

        def once_listener(*args: Any) -> None:
            self.off(event, once_listener)
            listener(*args)

        self.on(event, once_listener)

    def emit(self, event: str, *args: Any) -> None:
        """Call every listener of ``event`` with ``args``.

        Iterates over a snapshot so listeners may unregister themselves.
        Never raises.
        """
        for listener in list(self._event_listeners.get(event, ())):
            try:
                listener(*args)
            except Exception as e:
                self.logger.error(
                    "event_listener_failed",
                    error=e,
                    event=event,
                    listener=getattr(listener, "__name__", repr(listener)),
                )

    def listeners(self, event: str) -> list[EventListener]:
        """Return a copy of the listeners registered for ``event``."""
        return list(self._event_listeners.get(event, ()))

    def remove_all_listeners(self, event: str | None = None) -> None:
        """Remove the listeners of one event, or of every event."""
        if event is None:
            self._event_listeners.clear()
        else:
            self._event_listeners.pop(event, None)
