"""
Discord event handlers for the prayer times bot.

This module contains the handlers for slash command errors that escape a
command's own guard and for errors raised inside other event handlers.
"""

import sys
from typing import Any

import discord
from discord import app_commands

from prayer_times_bot.bot.commands import send_error_response
from prayer_times_bot.utils.logging import get_logger, log_error, log_discord_event


async def on_app_command_error(
    interaction: discord.Interaction,
    error: app_commands.AppCommandError,
) -> None:
    """
    Handle slash command errors.

    Args:
        interaction: The interaction that caused the error
        error: The error that occurred
    """
    if isinstance(error, app_commands.TransformerError):
        await send_error_response(interaction, f"❌ Invalid argument provided: {error}")
        return

    log_error(error, {
        "command": interaction.command.name if interaction.command else "unknown",
        "user_id": interaction.user.id,
        "channel_id": interaction.channel_id,
        "guild_id": interaction.guild_id,
    })
    await send_error_response(interaction)


async def setup_events(bot) -> None:
    """
    Set up event handlers for the bot.

    Args:
        bot: The Discord bot instance
    """
    logger = get_logger(__name__)
    logger.debug("Setting up event handlers")

    bot.tree.on_error = on_app_command_error

    @bot.event
    async def on_error(event: str, *args: Any, **kwargs: Any) -> None:
        """Log errors raised inside any other event handler."""
        exc_type, exc_value, exc_traceback = sys.exc_info()

        if exc_value:
            log_error(exc_value, {
                "event": event,
                "args": str(args)[:500],
            })
        else:
            get_logger(__name__).error("Unknown error in event", event=event)

    @bot.event
    async def on_resumed() -> None:
        log_discord_event("session_resumed")

    logger.info("Event handlers setup complete")
