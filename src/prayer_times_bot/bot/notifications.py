"""
Prayer time broadcast dispatch.

Sends the ``@everyone`` embed to the configured channel. If that fails, a
single plain-text retry is scheduled; a failed retry is only logged.
"""

from typing import Optional

import discord

from prayer_times_bot.bot.embeds import fallback_notification_text, prayer_notification_embed
from prayer_times_bot.config import LocationConfig
from prayer_times_bot.prayer.models import Prayer, TimeOfDay
from prayer_times_bot.scheduling import JobHandle, Scheduler
from prayer_times_bot.utils.exceptions import DiscordAPIError
from prayer_times_bot.utils.logging import get_logger, log_error, log_prayer_event


class NotificationDispatcher:
    """
    Sends prayer time broadcasts through the Discord client.

    Attributes:
        client: Connected Discord client used to resolve the channel
        channel_id: Target channel identifier
        location: Default location named in the broadcast
        scheduler: Schedules the degraded retry
        retry_seconds: Delay before the degraded retry
    """

    def __init__(
        self,
        client: discord.Client,
        channel_id: str,
        location: LocationConfig,
        scheduler: Scheduler,
        retry_seconds: float = 5.0,
    ) -> None:
        self.client = client
        self.channel_id = channel_id
        self.location = location
        self.scheduler = scheduler
        self.retry_seconds = retry_seconds
        self.logger = get_logger(__name__)

    async def _resolve_channel(self) -> discord.abc.Messageable:
        channel_id = int(self.channel_id)
        channel = self.client.get_channel(channel_id)
        if channel is None:
            channel = await self.client.fetch_channel(channel_id)
        return channel

    async def notify(self, prayer: Prayer, time: TimeOfDay) -> Optional[JobHandle]:
        """
        Broadcast that ``prayer`` has started.

        Returns:
            Handle of the scheduled fallback retry if the send failed, else None
        """
        try:
            channel = await self._resolve_channel()
            await channel.send(
                content="@everyone",
                embed=prayer_notification_embed(
                    prayer, time, self.location.city, self.location.country
                ),
                allowed_mentions=discord.AllowedMentions(everyone=True),
            )
        except Exception as e:
            log_error(
                DiscordAPIError(
                    "Failed to send prayer notification",
                    context={"channel_id": self.channel_id, "prayer": prayer.value},
                    original_error=e,
                ),
                {"retry_in_seconds": self.retry_seconds},
            )
            return self.scheduler.once(
                self.retry_seconds,
                lambda: self._send_fallback(prayer, time),
                name=f"notification-retry-{prayer.value}",
            )

        log_prayer_event("notification_sent", prayer=prayer.value, time=str(time))
        return None

    async def _send_fallback(self, prayer: Prayer, time: TimeOfDay) -> bool:
        """Plain-text retry without mentions or embed."""
        try:
            channel = await self._resolve_channel()
            await channel.send(
                fallback_notification_text(prayer, time),
                allowed_mentions=discord.AllowedMentions.none(),
            )
        except Exception as e:
            log_error(e, {"operation": "notification_retry", "prayer": prayer.value})
            return False

        log_prayer_event("notification_retry_sent", prayer=prayer.value, time=str(time))
        return True
