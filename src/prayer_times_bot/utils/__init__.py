"""Utility modules for the Prayer Times Bot."""

from prayer_times_bot.utils.exceptions import (
    PrayerBotError,
    ConfigurationError,
    PrayerTimesAPIError,
    DiscordAPIError,
)
from prayer_times_bot.utils.logging import setup_logging

__all__ = [
    "PrayerBotError",
    "ConfigurationError",
    "PrayerTimesAPIError",
    "DiscordAPIError",
    "setup_logging",
]
