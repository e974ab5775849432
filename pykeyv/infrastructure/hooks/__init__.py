"""Hook infrastructure."""

from pykeyv.infrastructure.hooks.hooks_manager import HooksManager

__all__ = ["HooksManager"]
