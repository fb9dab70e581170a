"""
Pydantic Settings Implementation for the lifecycle HTTP service.

Settings are loaded once at process start from keyword overrides, environment
variables and an optional ``.env`` file. The resulting record is frozen: no
component may mutate configuration after construction.
"""

import logging
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings as PydanticBaseSettings
from pydantic_settings import SettingsConfigDict

from lifecycle_http.core.constants import (
    DEFAULT_ENVIRONMENT,
    DEFAULT_LISTEN_ADDRESS,
    DEFAULT_SERVICE_NAME,
    DEFAULT_SHUTDOWN_TIMEOUT_SECONDS,
    DEFAULT_START_TIMEOUT_SECONDS,
)
from lifecycle_http.server.domain.value_objects.listen_address import ListenAddress


class Settings(PydanticBaseSettings):
    """
    Application settings using Pydantic for validation and environment loading.

    The record is immutable once built (``frozen=True``).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="",
        extra="ignore",
        frozen=True,
    )

    environment: str = Field(
        default=DEFAULT_ENVIRONMENT,
        description="Deployment environment name (e.g. development, production)",
        min_length=1,
    )

    listen_address: str = Field(
        default=DEFAULT_LISTEN_ADDRESS,
        description="TCP address the HTTP server binds, as host:port (':8098')",
    )

    start_timeout_seconds: float = Field(
        default=DEFAULT_START_TIMEOUT_SECONDS,
        description="Deadline for running every start hook (in seconds)",
        gt=0,
    )

    shutdown_timeout_seconds: float = Field(
        default=DEFAULT_SHUTDOWN_TIMEOUT_SECONDS,
        description="Deadline for in-flight requests during shutdown (in seconds)",
        gt=0,
    )

    service_name: str = Field(
        default=DEFAULT_SERVICE_NAME, description="Name of the service and its logger."
    )

    debug_logs_enabled: bool = Field(
        default=False, description="Enable debug logging output"
    )

    log_level: str = Field(default="INFO", description="Base logging level name")

    @field_validator("debug_logs_enabled", mode="before")
    def parse_debug_logs(cls, v: object) -> bool:
        """Parse debug logs from various string formats with strict validation"""
        if isinstance(v, str):
            lower_v = v.lower()
            if lower_v in ("true", "1", "yes", "on"):
                return True
            elif lower_v in ("false", "0", "no", "off"):
                return False
            else:
                raise ValueError(
                    f"Invalid boolean value: '{v}'. Must be one of: true, false, 1, "
                    "0, yes, no, on, off"
                )
        return bool(v)

    @field_validator("log_level")
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: '{v}'")
        return level

    @field_validator("listen_address")
    def validate_listen_address(cls, v: str) -> str:
        # Raises ValueError with a precise reason for malformed addresses
        ListenAddress.parse(v)
        return v

    @property
    def address(self) -> ListenAddress:
        """Parsed listen address."""
        return ListenAddress.parse(self.listen_address)

    @property
    def effective_log_level(self) -> int:
        """Logging level after applying the debug switch."""
        if self.debug_logs_enabled:
            return logging.DEBUG
        return logging.getLevelName(self.log_level)


# Singleton pattern for global settings access
@lru_cache()
def get_settings() -> Settings:
    """
    Get the application settings instance (singleton pattern).

    Returns:
        Settings: The application settings instance
    """
    return Settings()


def reload_settings():
    """
    Reload settings by clearing the cache.
    Useful for testing and dynamic configuration changes.
    """
    get_settings.cache_clear()
