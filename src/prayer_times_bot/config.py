"""
Configuration management for the Prayer Times Bot.

This module handles all configuration loading from environment variables,
validation, and provides typed configuration objects for use throughout
the application.

Configuration is read from the process environment, optionally seeded from
``.env`` and ``.env.local`` files. Every setting except the Discord token
has a default, so a bare deployment only needs ``DISCORD_TOKEN``.
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from prayer_times_bot.utils.exceptions import ConfigurationError


DEFAULT_CHANNEL_ID = "1062755334223052931"
DEFAULT_CITY = "Amman"
DEFAULT_COUNTRY = "Jordan"
DEFAULT_CALCULATION_METHOD = 2

ENV_FILES = (".env", ".env.local")


class DiscordConfig(BaseSettings):
    """Discord bot configuration settings."""

    token: str = Field(
        ...,
        description="Discord bot token from Developer Portal"
    )
    channel_id: str = Field(
        default=DEFAULT_CHANNEL_ID,
        description="Channel that receives prayer time broadcasts"
    )
    client_id: Optional[int] = Field(
        default=None,
        description="Application ID used to register slash commands"
    )

    model_config = SettingsConfigDict(env_prefix="DISCORD_", env_ignore_empty=True)

    @field_validator("token")
    @classmethod
    def validate_token(cls, v: str) -> str:
        """Reject blank tokens."""
        if not v or not v.strip():
            raise ValueError("Discord token must not be empty")
        return v.strip()


class LocationConfig(BaseSettings):
    """Default location monitored by the notifier."""

    city: str = Field(
        default=DEFAULT_CITY,
        min_length=1,
        description="City whose prayer times are broadcast"
    )
    country: str = Field(
        default=DEFAULT_COUNTRY,
        min_length=1,
        description="Country of the monitored city"
    )
    calculation_method: int = Field(
        default=DEFAULT_CALCULATION_METHOD,
        ge=0,
        description="Aladhan calculation method identifier"
    )

    model_config = SettingsConfigDict(env_prefix="", env_ignore_empty=True)

    def matches(self, city: str, country: str) -> bool:
        """Return True if (city, country) is the configured default location."""
        return city == self.city and country == self.country


class AladhanConfig(BaseSettings):
    """Upstream prayer time API settings."""

    base_url: str = Field(
        default="http://api.aladhan.com/v1",
        description="Aladhan API base URL"
    )
    timeout: float = Field(
        default=10.0,
        gt=0,
        description="Request timeout in seconds"
    )

    model_config = SettingsConfigDict(env_prefix="ALADHAN_", env_ignore_empty=True)


class SchedulerConfig(BaseSettings):
    """Timer periods used by the notifier and dispatcher."""

    tick_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Period of the prayer time matcher and midnight refresh check"
    )
    startup_retry_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Delay before retrying a failed initial fetch"
    )
    send_retry_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Delay before the degraded notification retry"
    )

    model_config = SettingsConfigDict(env_prefix="SCHEDULER_", env_ignore_empty=True)


class LoggingConfig(BaseSettings):
    """Logging configuration settings."""

    level: str = Field(
        default="INFO",
        description="Logging level"
    )
    format: str = Field(
        default="text",
        description="Log format: 'json' or 'text'"
    )

    model_config = SettingsConfigDict(env_prefix="LOG_", env_ignore_empty=True)

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Validate log format."""
        if v not in {"json", "text"}:
            raise ValueError("Log format must be 'json' or 'text'")
        return v


class AppConfig(BaseSettings):
    """Main application configuration."""

    debug: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Sub-configurations
    discord: DiscordConfig = Field(default_factory=DiscordConfig)
    location: LocationConfig = Field(default_factory=LocationConfig)
    aladhan: AladhanConfig = Field(default_factory=AladhanConfig)
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = SettingsConfigDict(env_prefix="BOT_")


def load_env_files(base_dir: Optional[Path] = None) -> None:
    """Load ``.env`` then ``.env.local`` into the process environment."""
    base = base_dir or Path(os.getcwd())
    for name in ENV_FILES:
        env_file = base / name
        if env_file.exists():
            # .env.local is loaded last and overrides .env
            load_dotenv(env_file, override=name == ".env.local")


def load_config() -> AppConfig:
    """
    Load and validate application configuration.

    Returns:
        AppConfig: Validated application configuration

    Raises:
        ConfigurationError: If the Discord token is missing or any
            setting fails validation

    Example:
        ```python
        config = load_config()
        print(f"Monitoring {config.location.city}, {config.location.country}")
        ```
    """
    load_env_files()

    try:
        return AppConfig()
    except ValidationError as e:
        missing_token = any(
            "token" in err.get("loc", ()) for err in e.errors()
        )
        if missing_token:
            raise ConfigurationError(
                "Missing DISCORD_TOKEN. Set it in .env.local or environment variables.",
                context={"env_var": "DISCORD_TOKEN"},
                original_error=e,
            )
        raise ConfigurationError(
            "Invalid configuration",
            context={"errors": len(e.errors())},
            original_error=e,
        )
