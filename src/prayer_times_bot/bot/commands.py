"""
Slash commands for the prayer times bot.

This module implements the on-demand commands: looking up prayer times for
any city, showing the next prayer, listing calculation methods and showing
bot status. Handlers only read the shared schedule; a lookup for the
default location refreshes it through the client.
"""

from typing import Optional

import discord
from discord import app_commands
from discord.ext import commands

from prayer_times_bot.bot.embeds import (
    bot_info_embed,
    calculation_methods_embed,
    next_prayer_embed,
    prayer_times_embed,
)
from prayer_times_bot.prayer.models import TimeOfDay
from prayer_times_bot.utils.logging import get_logger, log_command, log_error


ERROR_MESSAGE = "An error occurred while processing your command."
NOT_FETCHED_MESSAGE = "⚠️ Prayer times have not been fetched yet. Please try again later."


async def send_error_response(interaction: discord.Interaction, message: str = ERROR_MESSAGE) -> None:
    """
    Report a failure to the user exactly once.

    Edits the original response when the interaction was already deferred
    or answered, otherwise sends a fresh ephemeral reply.
    """
    logger = get_logger(__name__)
    try:
        if interaction.response.is_done():
            await interaction.edit_original_response(content=message, embed=None)
        else:
            await interaction.response.send_message(message, ephemeral=True)
    except discord.HTTPException as e:
        logger.error("Failed to send error response", error=str(e))


class PrayerCommands(commands.Cog):
    """Prayer time lookup and bot information commands."""

    def __init__(self, bot) -> None:
        self.bot = bot
        self.logger = get_logger(__name__)

    async def _handle_error(self, interaction: discord.Interaction, command: str, error: Exception) -> None:
        log_error(error, {
            "command": command,
            "user_id": interaction.user.id,
            "channel_id": interaction.channel_id,
        })
        await send_error_response(interaction)

    @app_commands.command(name="prayer-times", description="Get today's prayer times")
    @app_commands.describe(city="City name (optional)", country="Country name (optional)")
    async def prayer_times(
        self,
        interaction: discord.Interaction,
        city: Optional[str] = None,
        country: Optional[str] = None,
    ) -> None:
        """
        Look up today's prayer times, for the default location or any other.

        Args:
            interaction: Discord slash command interaction
            city: Optional city override
            country: Optional country override
        """
        log_command("prayer-times", interaction, city=city, country=country)

        try:
            # The upstream call can exceed Discord's 3 second reply window
            await interaction.response.defer(thinking=True)

            location = self.bot.config.location
            result = await self.bot.prayer_client.fetch_times(
                city or location.city,
                country or location.country,
                location.calculation_method,
            )

            if result.success:
                await interaction.edit_original_response(embed=prayer_times_embed(result))
            else:
                await interaction.edit_original_response(content=f"❌ Error: {result.error}")

        except Exception as e:
            await self._handle_error(interaction, "prayer-times", e)

    @app_commands.command(name="next-prayer", description="Get the next upcoming prayer time")
    async def next_prayer(self, interaction: discord.Interaction) -> None:
        """Show the next prayer from the cached schedule."""
        log_command("next-prayer", interaction)

        try:
            schedule = self.bot.cache.schedule
            if schedule is None:
                await interaction.response.send_message(NOT_FETCHED_MESSAGE, ephemeral=True)
                return

            current = TimeOfDay.from_datetime(self.bot.clock.now())
            prayer, time = schedule.next_after(current)

            location = self.bot.config.location
            await interaction.response.send_message(
                embed=next_prayer_embed(prayer, time, location.city, location.country)
            )

        except Exception as e:
            await self._handle_error(interaction, "next-prayer", e)

    @app_commands.command(name="calculation-methods", description="List available prayer calculation methods")
    async def calculation_methods(self, interaction: discord.Interaction) -> None:
        log_command("calculation-methods", interaction)

        try:
            await interaction.response.send_message(
                embed=calculation_methods_embed(self.bot.config.location.calculation_method)
            )
        except Exception as e:
            await self._handle_error(interaction, "calculation-methods", e)

    @app_commands.command(name="bot-info", description="Get information about the prayer bot")
    async def info(self, interaction: discord.Interaction) -> None:
        """Show monitored location, channel, uptime, method and last update."""
        log_command("bot-info", interaction)

        try:
            config = self.bot.config
            embed = bot_info_embed(
                city=config.location.city,
                country=config.location.country,
                channel_id=config.discord.channel_id,
                uptime_seconds=self.bot.uptime_seconds,
                method=config.location.calculation_method,
                last_fetch_date=self.bot.cache.last_fetch_date,
            )
            await interaction.response.send_message(embed=embed)
        except Exception as e:
            await self._handle_error(interaction, "bot-info", e)


async def setup_commands(bot) -> None:
    """
    Set up all bot commands.

    Args:
        bot: The Discord bot instance
    """
    logger = get_logger(__name__)
    logger.debug("Setting up bot commands")

    await bot.add_cog(PrayerCommands(bot))

    for cmd in bot.tree.get_commands():
        logger.info(f"Registered command: {cmd.name} - {cmd.description}")

    logger.info("Bot commands setup complete")
