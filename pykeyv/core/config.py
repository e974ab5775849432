"""
Configuration management using Pydantic Settings.

Type-safe, validated configuration loaded from ``KEYV_``-prefixed
environment variables (and an optional ``.env`` file).

Architecture:
- Flat Settings structure (no nesting)
- Orchestrator options and Redis adapter options side by side
- Type validation via Pydantic

Usage:
    from pykeyv.core.config import get_settings

    settings = get_settings()
    if settings.stats:
        ...
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from pykeyv.core.enums import Environment


class Settings(BaseSettings):
    """
    Cache settings (flat structure).

    Configuration precedence:
        1. Environment variables (KEYV_*)
        2. .env file
        3. Default values

    Returns:
        Settings: Cache configuration loaded from environment.
    """

    model_config = SettingsConfigDict(
        env_prefix="KEYV_",
        env_file=".env",
        extra="ignore",
    )

    # Environment detection
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Runtime environment (development, testing, ci, production)",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    # Store selection
    store: str = Field(
        default="memory",
        description="Store registry tag (memory, redis) or connection URI "
        "(e.g., redis://localhost:6379/0)",
    )

    # Orchestrator options
    namespace: str | None = Field(
        default="keyv",
        description="Namespace applied to every key of the cache instance",
    )
    ttl: int | None = Field(
        default=None,
        description="Default time to live in milliseconds (None = never expires)",
    )
    stats: bool = Field(
        default=False,
        description="Enable hit/miss/set/delete counters",
    )
    emit_errors: bool = Field(
        default=True,
        description="Emit store errors on the error event channel",
    )
    throw_on_errors: bool = Field(
        default=False,
        description="Re-raise store command failures instead of returning defaults",
    )
    use_key_prefix: bool | None = Field(
        default=None,
        description="Prefix keys in the orchestrator (None = auto by store type)",
    )
    compression: Literal["none", "gzip"] = Field(
        default="none",
        description="Compression adapter applied to stored values",
    )

    # Redis adapter options
    redis_key_prefix_separator: str = Field(
        default="::",
        description="Separator between namespace and key in Redis",
    )
    redis_clear_batch_size: int = Field(
        default=1000,
        description="Number of keys scanned and unlinked per clear() batch",
    )
    redis_use_unlink: bool = Field(
        default=True,
        description="Use UNLINK (non-blocking) instead of DEL",
    )
    redis_no_namespace_affects_all: bool = Field(
        default=False,
        description="Without a namespace, clear() affects every key in the database",
    )
    redis_throw_on_connect_error: bool = Field(
        default=True,
        description="Raise when the Redis server cannot be reached",
    )
    redis_connection_timeout: int | None = Field(
        default=None,
        description="Connection timeout in milliseconds (None = client default)",
    )
    redis_cluster: bool | None = Field(
        default=None,
        description="Force cluster mode on or off (None = detect from client type)",
    )

    @field_validator("ttl", "redis_connection_timeout")
    @classmethod
    def validate_non_negative(cls, v: int | None) -> int | None:
        """Validate millisecond durations are not negative.

        Args:
            v: Duration in milliseconds.

        Returns:
            int | None: The validated duration.

        Raises:
            ValueError: If the duration is negative.
        """
        if v is not None and v < 0:
            raise ValueError("duration must be >= 0 milliseconds")
        return v

    @field_validator("redis_clear_batch_size")
    @classmethod
    def validate_clear_batch_size(cls, v: int) -> int:
        """Validate clear batch size is positive.

        Args:
            v: Batch size.

        Returns:
            int: The validated batch size.

        Raises:
            ValueError: If batch size is not greater than 0.
        """
        if v <= 0:
            raise ValueError("redis_clear_batch_size must be greater than 0")
        return v

    @field_validator("redis_key_prefix_separator")
    @classmethod
    def validate_separator(cls, v: str) -> str:
        """Validate the key separator is not empty.

        Args:
            v: Separator string.

        Returns:
            str: The validated separator.

        Raises:
            ValueError: If separator is empty.
        """
        if not v:
            raise ValueError("redis_key_prefix_separator must not be empty")
        return v

    @property
    def is_structured_logging(self) -> bool:
        """Whether logs should be rendered as JSON."""
        return self.environment in (Environment.TESTING, Environment.CI)


@lru_cache
def get_settings() -> Settings:
    """Return cached Settings loaded from the environment.

    Call ``get_settings.cache_clear()`` after changing the environment.

    Returns:
        Settings: Singleton settings instance.
    """
    return Settings()
