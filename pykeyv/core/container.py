"""Composition root.

Application-scoped singletons are ``@lru_cache`` decorated factories.
Adapters are imported inside the factories: stores inherit from
EventManager, which asks this module for the default logger, so importing
them at module level would be circular.

Usage:
    from pykeyv.core.container import create_keyv_from_settings, get_logger

    keyv = create_keyv_from_settings()  # KEYV_* environment variables
    get_logger().info("cache_ready", namespace=keyv.namespace)
"""

from functools import lru_cache
from typing import TYPE_CHECKING, Any

from pykeyv.core.config import Settings, get_settings

if TYPE_CHECKING:
    from pykeyv.application.keyv import Keyv
    from pykeyv.domain.protocols.logger_protocol import LoggerProtocol
    from pykeyv.infrastructure.storage.registry import StoreRegistry


@lru_cache
def get_logger() -> "LoggerProtocol":
    """Structured console logger (JSON in testing and CI)."""
    from pykeyv.infrastructure.logging.console_adapter import ConsoleAdapter

    settings = get_settings()
    return ConsoleAdapter(
        use_json=settings.is_structured_logging,
        log_level=settings.log_level,
    )


@lru_cache
def get_store_registry() -> "StoreRegistry":
    """Registry with the built-in stores; register custom adapters on it."""
    from pykeyv.infrastructure.storage.registry import build_default_registry

    return build_default_registry()


def _redis_options(settings: Settings) -> dict[str, Any]:
    return {
        "key_prefix_separator": settings.redis_key_prefix_separator,
        "clear_batch_size": settings.redis_clear_batch_size,
        "use_unlink": settings.redis_use_unlink,
        "no_namespace_affects_all": settings.redis_no_namespace_affects_all,
        "throw_on_connect_error": settings.redis_throw_on_connect_error,
        "throw_on_errors": settings.throw_on_errors,
        "connection_timeout": settings.redis_connection_timeout,
        "cluster": settings.redis_cluster,
    }


def create_keyv_from_settings(settings: Settings | None = None) -> "Keyv":
    """Build a Keyv from settings.

    Args:
        settings: Settings to use (default: ``get_settings()``).

    Returns:
        Keyv wired to the configured store.

    Raises:
        ConfigurationException: The configured store tag is unknown.
    """
    from pykeyv.application.keyv import Keyv
    from pykeyv.infrastructure.compression import GzipCompression

    settings = settings or get_settings()
    tag = settings.store.partition("://")[0].lower()
    options = _redis_options(settings) if tag.startswith("redis") else {}
    store = get_store_registry().resolve(settings.store, **options)

    return Keyv(
        store=store,
        namespace=settings.namespace,
        ttl=settings.ttl,
        compression=GzipCompression() if settings.compression == "gzip" else None,
        stats=settings.stats,
        emit_errors=settings.emit_errors,
        throw_on_errors=settings.throw_on_errors,
        use_key_prefix=settings.use_key_prefix,
        logger=get_logger(),
    )
