"""
FullFeed Configuration System
============================

Configuration management with environment variables and Pydantic models.
Environment variables override Field defaults with clear precedence.
"""

import os
from pathlib import Path
from typing import Optional
from enum import Enum

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings

from ..recovery.retry_logic import RetryStrategy
from ..utils.exceptions import ConfigurationError, ErrorCode


class LogLevel(str, Enum):
    """Available log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class ServerSettings(BaseModel):
    """HTTP listener configuration."""
    host: str = Field(default="0.0.0.0", description="Interface to bind")
    port: int = Field(default=3000, ge=1, le=65535, description="Listening port")


class CacheSettings(BaseModel):
    """Content and response cache configuration."""
    directory: str = Field(default="cache", description="Directory holding extracted article content")
    response_cache_enabled: bool = Field(default=False, description="Cache whole rendered feeds in memory")
    response_cache_ttl_seconds: int = Field(default=36000, ge=1, description="Lifetime of a cached rendered feed")


class FetchSettings(BaseModel):
    """Outbound HTTP configuration."""
    request_timeout: int = Field(default=30, ge=1, le=300, description="Request timeout in seconds")
    max_attempts: int = Field(default=1, ge=1, le=5, description="Attempts per fetch (1 = no retry)")
    retry_base_delay: float = Field(default=1.0, ge=0.0, le=30.0, description="Base delay between attempts")
    retry_strategy: RetryStrategy = Field(
        default=RetryStrategy.EXPONENTIAL_BACKOFF,
        description="Delay growth between attempts: fixed_delay, exponential or linear",
    )
    user_agent: str = Field(
        default="FullFeed/1.0 (+https://github.com/fullfeed/fullfeed)",
        description="User-Agent header for outbound requests",
    )

    @field_validator("user_agent")
    @classmethod
    def validate_user_agent(cls, v):
        """Reject blank user agents."""
        if not v or not v.strip():
            raise ValueError("user_agent cannot be empty")
        return v.strip()


class ProcessingSettings(BaseModel):
    """Item enrichment configuration."""
    parallel_items: int = Field(default=5, ge=1, le=50, description="Items enriched concurrently per request")


class ExtractionSettings(BaseModel):
    """Readability extraction configuration."""
    min_text_length: int = Field(default=1, ge=0, description="Minimum visible text for a usable extraction")


class LoggingSettings(BaseModel):
    """Logging configuration."""
    level: LogLevel = Field(default=LogLevel.INFO, description="Global log level")
    file_path: Optional[str] = Field(default="logs/fullfeed.log", description="Log file path")
    max_file_size_mb: int = Field(default=10, ge=1, le=100, description="Max log file size in MB")
    backup_count: int = Field(default=5, ge=1, le=20, description="Number of log backup files")
    structured_logging: bool = Field(default=False, description="Use structured JSON logging")
    console_logging: bool = Field(default=True, description="Enable console logging")


class FullFeedSettings(BaseSettings):
    """Main application settings."""

    server: ServerSettings = Field(default_factory=ServerSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    fetch: FetchSettings = Field(default_factory=FetchSettings)
    processing: ProcessingSettings = Field(default_factory=ProcessingSettings)
    extraction: ExtractionSettings = Field(default_factory=ExtractionSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    # Application metadata
    app_name: str = Field(default="FullFeed", description="Application name")
    version: str = Field(default="1.0.0", description="Application version")
    debug: bool = Field(default=False, description="Enable debug mode")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "env_nested_delimiter": "__",
        "env_prefix": "FULLFEED_",
        "extra": "ignore",
    }

    def validate_configuration(self) -> None:
        """Validate complete configuration."""
        errors = []

        try:
            Path(self.cache.directory).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            errors.append(f"Invalid cache directory: {e}")

        if self.logging.file_path:
            try:
                Path(self.logging.file_path).parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                errors.append(f"Invalid log file path: {e}")

        if errors:
            raise ConfigurationError(
                f"Configuration validation failed: {'; '.join(errors)}",
                error_code=ErrorCode.CONFIG_INVALID
            )

    def get_effective_log_level(self) -> str:
        """Get effective log level considering debug mode."""
        if self.debug:
            return "DEBUG"
        return self.logging.level.value


def _apply_port_override(settings: FullFeedSettings) -> FullFeedSettings:
    """Honour the bare PORT variable used by hosting platforms.

    FULLFEED_SERVER__PORT wins when both are set.
    """
    port = os.getenv("PORT")
    if not port or os.getenv("FULLFEED_SERVER__PORT"):
        return settings

    try:
        server = ServerSettings(host=settings.server.host, port=int(port))
    except ValueError as e:
        raise ConfigurationError(
            f"Invalid PORT value {port!r}: {e}",
            config_key="PORT",
            error_code=ErrorCode.CONFIG_INVALID
        )

    settings.server = server
    return settings


def load_settings() -> FullFeedSettings:
    """Load settings from environment variables and defaults.

    Returns:
        Loaded and validated settings

    Raises:
        ConfigurationError: If configuration is invalid
    """
    from dotenv import load_dotenv
    load_dotenv()

    try:
        # Precedence: environment, then .env, then Field defaults
        settings = _apply_port_override(FullFeedSettings())
        settings.validate_configuration()
        return settings

    except Exception as e:
        if isinstance(e, ConfigurationError):
            raise
        raise ConfigurationError(
            f"Failed to initialize settings: {e}",
            error_code=ErrorCode.CONFIG_INVALID
        )


# Global settings instance
_settings: Optional[FullFeedSettings] = None


def get_settings(reload: bool = False) -> FullFeedSettings:
    """Get global settings instance (singleton pattern).

    Args:
        reload: Force reload of settings

    Returns:
        Global settings instance
    """
    global _settings

    if _settings is None or reload:
        _settings = load_settings()

    return _settings
