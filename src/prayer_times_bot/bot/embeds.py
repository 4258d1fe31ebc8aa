"""
Embed builders for broadcasts and command replies.

Kept free of any bot state so the rendering can be checked on its own.
"""

from datetime import datetime, timezone
from typing import Optional

import discord

from prayer_times_bot.prayer.models import (
    CALCULATION_METHODS,
    FetchResult,
    Prayer,
    TimeOfDay,
)


EMBED_COLOR = discord.Color(0x00AE86)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def format_uptime(seconds: float) -> str:
    """Render elapsed seconds as ``<h>h <m>m``."""
    seconds = max(0, int(seconds))
    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    return f"{hours}h {minutes}m"


def prayer_notification_embed(prayer: Prayer, time: TimeOfDay, city: str, country: str) -> discord.Embed:
    """The broadcast announcing that a prayer time has arrived."""
    embed = discord.Embed(
        title=f"🕌 {prayer.display_name} Prayer Time",
        description=f"It's time for **{prayer.display_name}** prayer in {city}, {country}",
        color=EMBED_COLOR,
        timestamp=_now(),
    )
    embed.add_field(name="Time", value=str(time), inline=True)
    embed.add_field(name="Prayer", value=prayer.value, inline=True)
    embed.set_footer(text="May Allah accept your prayers")
    return embed


def fallback_notification_text(prayer: Prayer, time: TimeOfDay) -> str:
    """Plain-text broadcast used when the embed could not be sent."""
    return f"🕌 Prayer time: {prayer.display_name} at {time}"


def prayer_times_embed(result: FetchResult) -> discord.Embed:
    """Listing of a successful lookup."""
    embed = discord.Embed(
        title=f"🕌 Prayer Times for {result.city}, {result.country}",
        description=f"**Date:** {result.date}\n**Method:** {result.method}",
        color=EMBED_COLOR,
        timestamp=_now(),
    )
    if result.times is not None:
        for prayer, time in result.times:
            embed.add_field(name=f"{prayer.emoji} {prayer.value}", value=str(time), inline=True)
    embed.set_footer(text="Prayer times from Aladhan API")
    return embed


def next_prayer_embed(prayer: Prayer, time: TimeOfDay, city: str, country: str) -> discord.Embed:
    embed = discord.Embed(
        title="⏰ Next Prayer",
        description=f"The next prayer is **{prayer.display_name}**",
        color=EMBED_COLOR,
        timestamp=_now(),
    )
    embed.add_field(name="Time", value=str(time), inline=True)
    embed.add_field(name="Location", value=f"{city}, {country}", inline=True)
    return embed


def calculation_methods_embed(current_method: int) -> discord.Embed:
    methods_list = "\n".join(
        f"**{method_id}:** {name}" for method_id, name in CALCULATION_METHODS.items()
    )
    embed = discord.Embed(
        title="📖 Calculation Methods",
        description=methods_list,
        color=EMBED_COLOR,
    )
    embed.add_field(
        name="Current Method",
        value=f"{current_method} - {CALCULATION_METHODS.get(current_method, 'Custom')}",
        inline=False,
    )
    embed.set_footer(text="Set CALCULATION_METHOD in .env.local to change")
    return embed


def bot_info_embed(
    city: str,
    country: str,
    channel_id: str,
    uptime_seconds: float,
    method: int,
    last_fetch_date: Optional[str],
) -> discord.Embed:
    embed = discord.Embed(
        title="🤖 Prayer Bot Information",
        description="Discord bot for Islamic prayer time notifications",
        color=EMBED_COLOR,
        timestamp=_now(),
    )
    embed.add_field(name="📍 Monitoring", value=f"{city}, {country}", inline=True)
    embed.add_field(name="📢 Channel", value=f"<#{channel_id}>", inline=True)
    embed.add_field(name="⏰ Uptime", value=format_uptime(uptime_seconds), inline=True)
    embed.add_field(name="🔢 Method", value=CALCULATION_METHODS.get(method, "Custom"), inline=False)
    embed.add_field(name="📅 Last Update", value=last_fetch_date or "Not fetched yet", inline=True)
    embed.set_footer(text="Made with ❤️ for the Muslim community")
    return embed
