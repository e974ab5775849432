"""Application layer: the Keyv orchestrator, tiered cache and factories."""

from pykeyv.application.factories import (
    create_keyv,
    create_redis_keyv,
    create_redis_keyv_non_blocking,
)
from pykeyv.application.keyv import Keyv
from pykeyv.application.tiered import TieredKeyv

__all__ = [
    "Keyv",
    "TieredKeyv",
    "create_keyv",
    "create_redis_keyv",
    "create_redis_keyv_non_blocking",
]
