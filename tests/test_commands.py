"""Tests for the slash command handlers."""

from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from prayer_times_bot.bot.commands import ERROR_MESSAGE, NOT_FETCHED_MESSAGE, PrayerCommands
from prayer_times_bot.prayer.cache import ScheduleCache
from prayer_times_bot.prayer.models import FetchResult


@pytest.fixture
def bot(test_config, populated_cache, clock):
    bot = MagicMock()
    bot.config = test_config
    bot.cache = populated_cache
    bot.clock = clock
    bot.uptime_seconds = 2 * 3600 + 5 * 60 + 42
    bot.prayer_client = MagicMock()
    bot.prayer_client.fetch_times = AsyncMock()
    return bot


@pytest.fixture
def cog(bot):
    return PrayerCommands(bot)


class TestPrayerTimes:
    async def test_defaults_to_configured_location(self, cog, bot, interaction, sample_schedule):
        bot.prayer_client.fetch_times.return_value = FetchResult(
            success=True, city="Amman", country="Jordan", times=sample_schedule,
            date="17-10-2026", method="Islamic Society of North America (ISNA)",
        )

        await cog.prayer_times.callback(cog, interaction)

        interaction.response.defer.assert_awaited_once()
        bot.prayer_client.fetch_times.assert_awaited_once_with("Amman", "Jordan", 2)
        embed = interaction.edit_original_response.await_args.kwargs["embed"]
        assert embed.title == "🕌 Prayer Times for Amman, Jordan"
        assert "17-10-2026" in embed.description
        assert [(f.name, f.value) for f in embed.fields] == [
            ("🌅 Fajr", "05:00"),
            ("☀️ Dhuhr", "12:30"),
            ("🌤️ Asr", "15:45"),
            ("🌆 Maghrib", "18:10"),
            ("🌙 Isha", "19:40"),
        ]

    async def test_other_city_is_passed_through(self, cog, bot, interaction, sample_schedule):
        bot.prayer_client.fetch_times.return_value = FetchResult(
            success=True, city="Cairo", country="Egypt", times=sample_schedule,
            date="17-10-2026", method="x",
        )

        await cog.prayer_times.callback(cog, interaction, city="Cairo", country="Egypt")

        bot.prayer_client.fetch_times.assert_awaited_once_with("Cairo", "Egypt", 2)

    async def test_fetch_failure_is_shown(self, cog, bot, interaction):
        bot.prayer_client.fetch_times.return_value = FetchResult.failed("Atlantis", "Jordan", "API returned code 400")

        await cog.prayer_times.callback(cog, interaction, city="Atlantis")

        interaction.edit_original_response.assert_awaited_once_with(content="❌ Error: API returned code 400")

    async def test_unexpected_error_edits_deferred_reply(self, cog, bot, interaction):
        bot.prayer_client.fetch_times.side_effect = RuntimeError("kaboom")

        await cog.prayer_times.callback(cog, interaction)

        interaction.edit_original_response.assert_awaited_once_with(content=ERROR_MESSAGE, embed=None)
        interaction.response.send_message.assert_not_awaited()


class TestNextPrayer:
    async def test_next_prayer_after_now(self, cog, bot, interaction, clock):
        clock.moment = datetime(2026, 10, 17, 13, 0)

        await cog.next_prayer.callback(cog, interaction)

        embed = interaction.response.send_message.await_args.kwargs["embed"]
        assert "Asr (Afternoon)" in embed.description
        assert embed.fields[0].value == "15:45"
        assert embed.fields[1].value == "Amman, Jordan"

    async def test_after_isha_falls_back_to_fajr(self, cog, interaction, clock):
        clock.moment = datetime(2026, 10, 17, 20, 0)

        await cog.next_prayer.callback(cog, interaction)

        embed = interaction.response.send_message.await_args.kwargs["embed"]
        assert "Fajr (Dawn)" in embed.description
        assert embed.fields[0].value == "05:00"

    async def test_exact_prayer_minute_points_to_following_prayer(self, cog, interaction, clock):
        clock.moment = datetime(2026, 10, 17, 12, 30)

        await cog.next_prayer.callback(cog, interaction)

        embed = interaction.response.send_message.await_args.kwargs["embed"]
        assert "Asr" in embed.description

    async def test_without_schedule(self, cog, bot, interaction):
        bot.cache = ScheduleCache()

        await cog.next_prayer.callback(cog, interaction)

        interaction.response.send_message.assert_awaited_once_with(NOT_FETCHED_MESSAGE, ephemeral=True)


async def test_calculation_methods(cog, interaction):
    await cog.calculation_methods.callback(cog, interaction)

    embed = interaction.response.send_message.await_args.kwargs["embed"]
    assert "**2:** Islamic Society of North America (ISNA)" in embed.description
    assert "**14:** Spiritual Administration of Muslims of Russia" in embed.description
    assert embed.fields[0].name == "Current Method"
    assert embed.fields[0].value == "2 - Islamic Society of North America (ISNA)"


async def test_calculation_methods_custom(cog, bot, interaction):
    bot.config = bot.config.model_copy(
        update={"location": bot.config.location.model_copy(update={"calculation_method": 99})}
    )

    await cog.calculation_methods.callback(cog, interaction)

    embed = interaction.response.send_message.await_args.kwargs["embed"]
    assert embed.fields[0].value == "99 - Custom"


class TestBotInfo:
    async def test_renders_status(self, cog, interaction):
        await cog.info.callback(cog, interaction)

        embed = interaction.response.send_message.await_args.kwargs["embed"]
        fields = {f.name: f.value for f in embed.fields}
        assert fields["📍 Monitoring"] == "Amman, Jordan"
        assert fields["📢 Channel"] == "<#1062755334223052931>"
        assert fields["⏰ Uptime"] == "2h 5m"
        assert fields["🔢 Method"] == "Islamic Society of North America (ISNA)"
        assert fields["📅 Last Update"] == "17-10-2026"

    async def test_not_yet_fetched(self, cog, bot, interaction):
        bot.cache = ScheduleCache()

        await cog.info.callback(cog, interaction)

        embed = interaction.response.send_message.await_args.kwargs["embed"]
        fields = {f.name: f.value for f in embed.fields}
        assert fields["📅 Last Update"] == "Not fetched yet"

    async def test_unexpected_error_sends_fresh_reply(self, cog, bot, interaction):
        bot.cache = None

        await cog.info.callback(cog, interaction)

        interaction.response.send_message.assert_awaited_once_with(ERROR_MESSAGE, ephemeral=True)
        interaction.edit_original_response.assert_not_awaited()


def test_cog_registers_all_four_commands(cog):
    names = sorted(command.name for command in cog.get_app_commands())

    assert names == ["bot-info", "calculation-methods", "next-prayer", "prayer-times"]
