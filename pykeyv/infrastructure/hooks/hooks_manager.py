"""Hook handler registry.

Lets external code observe or mutate orchestrator payloads at the
extension points named by ``KeyvHook``. A payload is a plain dict; a
handler rewrites it in place (e.g. ``payload["key"] = "b"`` in PRE_SET)
and the orchestrator reads the mutated dict back.

Handlers may be plain functions or coroutine functions. A handler that
raises never reaches the caller: the exception is wrapped in a HookError
and emitted on the ``error`` channel, then the remaining handlers run.
"""

import inspect
from typing import Any

from pykeyv.core.enums import ErrorCode
from pykeyv.core.errors import HookError
from pykeyv.infrastructure.events.event_manager import EventListener, EventManager


class HooksManager(EventManager):
    """Named-event handler registry used by the orchestrator."""

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._handlers: dict[str, list[EventListener]] = {}

    @property
    def handlers(self) -> dict[str, list[EventListener]]:
        """Copy of the registry, safe to mutate."""
        return {event: list(handlers) for event, handlers in self._handlers.items()}

    def add_handler(self, event: str, handler: EventListener) -> None:
        """Register a handler for a hook event."""
        self._handlers.setdefault(event, []).append(handler)

    def remove_handler(self, event: str, handler: EventListener) -> None:
        """Remove the first registration of a handler (no-op if absent)."""
        handlers = self._handlers.get(event)
        if handlers and handler in handlers:
            handlers.remove(handler)

    async def trigger(self, event: str, data: Any) -> None:
        """Run every handler of ``event`` with ``data``.

        Args:
            event: Hook event name.
            data: Mutable payload shared by all handlers.
        """
        for handler in list(self._handlers.get(event, ())):
            try:
                result = handler(data)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                self.logger.error(
                    "hook_handler_failed",
                    error=e,
                    hook=event,
                    handler=getattr(handler, "__name__", repr(handler)),
                )
                self.emit(
                    "error",
                    HookError(
                        code=ErrorCode.HOOK_FAILED,
                        message=f"Hook handler for {event} failed: {e}",
                        event=str(event),
                        cause=e,
                    ),
                )
