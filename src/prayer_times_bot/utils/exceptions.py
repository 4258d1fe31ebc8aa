"""
Custom exceptions for the Prayer Times Bot.

This module defines a hierarchy of custom exceptions that provide clear
error handling and debugging information throughout the application.
All exceptions inherit from a base PrayerBotError class for easy
catching and handling.
"""

from typing import Optional, Any, Dict


class PrayerBotError(Exception):
    """
    Base exception class for all Prayer Times Bot errors.

    Attributes:
        message: Human-readable error message
        context: Additional context information about the error
        original_error: The original exception that caused this error (if any)
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}
        self.original_error = original_error

    def __str__(self) -> str:
        """Return string representation of the error."""
        error_str = self.message
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            error_str += f" (Context: {context_str})"
        if self.original_error:
            error_str += f" (Caused by: {self.original_error})"
        return error_str


class ConfigurationError(PrayerBotError):
    """
    Raised when there's an error in configuration.

    This exception is raised when:
    - The Discord token is missing
    - Configuration values are invalid

    Example:
        ```python
        if not discord_token:
            raise ConfigurationError(
                "Discord token is required",
                context={"env_var": "DISCORD_TOKEN"}
            )
        ```
    """
    pass


class PrayerTimesAPIError(PrayerBotError):
    """
    Raised when fetching prayer times from the upstream API fails.

    This exception is raised when:
    - The API is unreachable or the request times out
    - The response carries a non-success code
    - The payload is missing the timings or date
    """
    pass


class DiscordAPIError(PrayerBotError):
    """
    Raised when there's an error with Discord API operations.

    Example:
        ```python
        try:
            await channel.send(message)
        except discord.HTTPException as e:
            raise DiscordAPIError(
                "Failed to send message to Discord",
                context={"channel_id": channel.id},
                original_error=e
            )
        ```
    """
    pass
