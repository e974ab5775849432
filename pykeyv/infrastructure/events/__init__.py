"""Event infrastructure."""

from pykeyv.infrastructure.events.event_manager import EventListener, EventManager

__all__ = ["EventListener", "EventManager"]
