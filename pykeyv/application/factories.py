"""Ready-made Keyv configurations.

- ``create_keyv``: in-process cache over a mutable mapping, no codec
- ``create_redis_keyv``: Redis-backed cache, namespace handled by Redis
- ``create_redis_keyv_non_blocking``: best-effort Redis tier that never
  raises and never waits on reconnects (suited to an L2 behind a local tier)
"""

from collections.abc import MutableMapping
from typing import Any

from redis.asyncio import Redis
from redis.asyncio.retry import Retry
from redis.backoff import NoBackoff

from pykeyv.application.keyv import Keyv
from pykeyv.infrastructure.storage.generic_store import (
    DEFAULT_KEY_SEPARATOR,
    GenericStore,
    Namespace,
)
from pykeyv.infrastructure.storage.redis_store import DEFAULT_URL, RedisClient, RedisStore


def create_keyv(
    mapping: MutableMapping[str, Any] | None = None,
    *,
    namespace: Namespace = None,
    key_separator: str = DEFAULT_KEY_SEPARATOR,
) -> Keyv:
    """Keyv over a mapping with serialization disabled.

    Values are kept as Python objects; the store prefixes keys with
    ``namespace<key_separator>``.
    """
    store = GenericStore(mapping, namespace=namespace, key_separator=key_separator)
    return Keyv(
        store=store,
        namespace=namespace,
        use_key_prefix=False,
        serialize=None,
        deserialize=None,
    )


def create_redis_keyv(
    connect: RedisStore | RedisClient | str | None = None,
    **options: Any,
) -> Keyv:
    """Keyv over Redis with the namespace applied by the store.

    Passing ``throw_on_errors=True`` or ``throw_on_connect_error=True``
    also makes the Keyv raise, so failures reach the caller.

    Args:
        connect: RedisStore, client instance, URL, or None for localhost.
        **options: RedisStore options (namespace, clear_batch_size, ...).
    """
    store = connect if isinstance(connect, RedisStore) else RedisStore(connect, **options)
    throws = options.get("throw_on_errors") is True or options.get("throw_on_connect_error") is True
    return Keyv(
        store=store,
        namespace=store.namespace,
        use_key_prefix=False,
        throw_on_errors=throws,
    )


def create_redis_keyv_non_blocking(
    connect: RedisClient | str | None = None,
    **options: Any,
) -> Keyv:
    """Best-effort Redis Keyv: no retries, no raising.

    Failures are emitted on ``error`` and reads degrade to misses.
    """
    options |= {"throw_on_connect_error": False, "throw_on_errors": False}
    if connect is None or isinstance(connect, str):
        connect = Redis.from_url(
            connect or DEFAULT_URL,
            retry=Retry(NoBackoff(), 0),
            retry_on_timeout=False,
        )
    return create_redis_keyv(RedisStore(connect, **options))
