"""
Discord bot client implementation.

This module contains the bot that owns the shared prayer schedule, the
Aladhan client, the notifier and the notification dispatcher, and starts
the notifier once the gateway connection is ready.
"""

import time
from typing import Optional

import discord
from discord.ext import commands

from prayer_times_bot.bot.notifications import NotificationDispatcher
from prayer_times_bot.config import AppConfig
from prayer_times_bot.prayer.cache import ScheduleCache
from prayer_times_bot.prayer.client import PrayerTimesClient
from prayer_times_bot.prayer.notifier import PrayerNotifier
from prayer_times_bot.scheduling import AsyncioScheduler, Clock, Scheduler
from prayer_times_bot.utils.logging import get_logger, log_discord_event


class PrayerTimesBot(commands.Bot):
    """
    Discord bot broadcasting daily prayer times.

    Attributes:
        config: Application configuration
        cache: Shared schedule and notification ledger
        prayer_client: Aladhan API client
        notifications: Sends broadcasts to the configured channel
        notifier: Per-minute matcher and midnight refresh
        scheduler: Timer backend shared by the notifier and dispatcher
        clock: Wall-clock source
    """

    def __init__(
        self,
        config: AppConfig,
        scheduler: Optional[Scheduler] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        # Guilds and guild messages are all a broadcast-only bot needs
        intents = discord.Intents.default()

        super().__init__(
            command_prefix=commands.when_mentioned,
            intents=intents,
            help_command=None,
            application_id=config.discord.client_id,
        )

        self.config = config
        self.logger = get_logger(__name__)
        self.clock = clock or Clock()
        self.scheduler = scheduler or AsyncioScheduler()

        self.cache = ScheduleCache()
        self.prayer_client = PrayerTimesClient(config.aladhan, config.location, self.cache)
        self.notifications = NotificationDispatcher(
            self,
            config.discord.channel_id,
            config.location,
            self.scheduler,
            retry_seconds=config.scheduler.send_retry_seconds,
        )
        self.notifier = PrayerNotifier(
            cache=self.cache,
            client=self.prayer_client,
            dispatcher=self.notifications,
            scheduler=self.scheduler,
            clock=self.clock,
            tick_seconds=config.scheduler.tick_seconds,
            startup_retry_seconds=config.scheduler.startup_retry_seconds,
        )

        self._started_at = time.monotonic()
        self._setup_complete = False

    @property
    def uptime_seconds(self) -> float:
        return time.monotonic() - self._started_at

    async def setup(self) -> None:
        """Load commands and event handlers. Must be called before starting the bot."""
        if self._setup_complete:
            return

        self.logger.info("Setting up prayer times bot components")

        from prayer_times_bot.bot.commands import setup_commands
        from prayer_times_bot.bot.events import setup_events

        await setup_commands(self)
        await setup_events(self)

        self._setup_complete = True
        self.logger.info("Bot setup completed successfully")

    async def on_ready(self) -> None:
        """Called when the bot is ready; may fire again after reconnects."""
        location = self.config.location

        log_discord_event(
            "bot_ready",
            bot_user=str(self.user),
            guild_count=len(self.guilds),
        )
        self.logger.info(
            "Monitoring prayer times",
            city=location.city,
            country=location.country,
            channel_id=self.config.discord.channel_id,
        )

        try:
            await self.change_presence(
                activity=discord.Activity(
                    type=discord.ActivityType.watching,
                    name=f"prayer times for {location.city}",
                )
            )
        except Exception as e:
            self.logger.warning("Failed to set bot status", error=str(e))

        await self.sync_commands()
        await self.notifier.start()

    async def sync_commands(self) -> None:
        """Register slash commands globally when an application ID is configured."""
        if not self.config.discord.client_id:
            self.logger.warning("DISCORD_CLIENT_ID not set - slash commands will not be registered")
            return

        try:
            synced = await self.tree.sync()
            log_discord_event("commands_synced_global", command_count=len(synced))
        except discord.HTTPException as e:
            self.logger.error("Failed to sync commands globally", error=str(e))

    async def close(self) -> None:
        """Cancel pending timers, close the HTTP session and disconnect."""
        self.logger.info("Shutting down prayer times bot")

        try:
            self.notifier.stop()
            self.scheduler.cancel_all()
            await self.prayer_client.close()
            await super().close()
        finally:
            self.logger.info("Bot shutdown complete")
