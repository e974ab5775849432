"""Pytest configuration.

Provides:
1. A mock logger so tests can assert structured log events
2. fakeredis clients (in-memory Redis emulation, no server needed)
3. Settings cache isolation between tests

Errors are collected in tests with ``component.on("error", errors.append)``.
"""

from unittest.mock import MagicMock

import fakeredis.aioredis
import pytest
import pytest_asyncio

from pykeyv.core.config import get_settings
from pykeyv.core.container import get_logger, get_store_registry

pytest_plugins = ("pytest_asyncio",)


@pytest.fixture(autouse=True)
def clear_container_caches():
    """Reset cached singletons so environment patches take effect."""
    get_settings.cache_clear()
    get_logger.cache_clear()
    get_store_registry.cache_clear()
    yield
    get_settings.cache_clear()
    get_logger.cache_clear()
    get_store_registry.cache_clear()


@pytest.fixture
def mock_logger():
    """Create mock logger."""
    logger = MagicMock()
    logger.debug = MagicMock()
    logger.info = MagicMock()
    logger.warning = MagicMock()
    logger.error = MagicMock()
    return logger


@pytest_asyncio.fixture
async def redis_client():
    """Create fakeredis client for testing.

    Returns:
        fakeredis.aioredis.FakeRedis instance that emulates Redis behavior.
    """
    client = fakeredis.aioredis.FakeRedis(decode_responses=True)
    yield client
    await client.flushall()
    await client.aclose()
