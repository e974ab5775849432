"""Domain enums package."""

from pykeyv.domain.enums.hook_event import KeyvHook

__all__ = ["KeyvHook"]
