"""Test configuration and utilities."""

from datetime import datetime
from typing import List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from prayer_times_bot.config import (
    AladhanConfig,
    AppConfig,
    DiscordConfig,
    LocationConfig,
    LoggingConfig,
    SchedulerConfig,
)
from prayer_times_bot.prayer.cache import ScheduleCache
from prayer_times_bot.prayer.models import PrayerSchedule
from prayer_times_bot.scheduling import Callback, Clock, JobHandle, Scheduler, run_callback


SAMPLE_TIMINGS = {
    "Fajr": "05:00",
    "Dhuhr": "12:30",
    "Asr": "15:45",
    "Maghrib": "18:10",
    "Isha": "19:40",
}

ENV_VARS = (
    "DISCORD_TOKEN",
    "DISCORD_CHANNEL_ID",
    "DISCORD_CLIENT_ID",
    "CITY",
    "COUNTRY",
    "CALCULATION_METHOD",
    "ALADHAN_BASE_URL",
    "ALADHAN_TIMEOUT",
    "LOG_LEVEL",
    "LOG_FORMAT",
)


class FakeClock(Clock):
    """Clock returning a settable moment."""

    def __init__(self, moment: datetime) -> None:
        self.moment = moment

    def now(self) -> datetime:
        return self.moment


class _ManualJob:
    def __init__(self, handle: JobHandle, callback: Callback, due: float, interval: Optional[float]) -> None:
        self.handle = handle
        self.callback = callback
        self.due = due
        self.interval = interval


class ManualScheduler(Scheduler):
    """Scheduler whose time only moves when a test calls ``advance``."""

    def __init__(self) -> None:
        self.time = 0.0
        self.jobs: List[_ManualJob] = []

    def every(self, seconds, callback, name="job"):
        handle = JobHandle(name)
        self.jobs.append(_ManualJob(handle, callback, self.time + seconds, seconds))
        return handle

    def once(self, seconds, callback, name="job"):
        handle = JobHandle(name)
        self.jobs.append(_ManualJob(handle, callback, self.time + seconds, None))
        return handle

    def cancel_all(self):
        for job in self.jobs:
            job.handle.cancel()
        self.jobs.clear()

    def active(self, name: Optional[str] = None) -> List[_ManualJob]:
        return [
            job for job in self.jobs
            if not job.handle.cancelled and (name is None or job.handle.name == name)
        ]

    async def advance(self, seconds: float) -> None:
        """Run every job falling due within the next ``seconds``, in due order."""
        target = self.time + seconds
        while True:
            due = [job for job in self.active() if job.due <= target]
            if not due:
                break
            job = min(due, key=lambda j: j.due)
            self.time = job.due
            if job.interval is None:
                self.jobs.remove(job)
            else:
                job.due += job.interval
            await run_callback(job.callback, job.handle.name)
        self.time = target


class FakeResponse:
    """Stand-in for ``discord.InteractionResponse`` tracking whether it was used."""

    def __init__(self) -> None:
        self._done = False
        self.defer = AsyncMock(side_effect=self._mark_done)
        self.send_message = AsyncMock(side_effect=self._mark_done)

    async def _mark_done(self, *args, **kwargs) -> None:
        self._done = True

    def is_done(self) -> bool:
        return self._done


def make_interaction() -> MagicMock:
    interaction = MagicMock()
    interaction.user.id = 42
    interaction.channel_id = 1234
    interaction.guild_id = 99
    interaction.response = FakeResponse()
    interaction.edit_original_response = AsyncMock()
    return interaction


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Environment without any bot settings and no .env files in cwd."""
    for name in ENV_VARS:
        # setenv first so teardown also undoes values written by load_dotenv
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
    return monkeypatch


@pytest.fixture
def test_config() -> AppConfig:
    """Create a test configuration."""
    return AppConfig(
        discord=DiscordConfig(token="test-token", channel_id="1062755334223052931"),
        location=LocationConfig(city="Amman", country="Jordan", calculation_method=2),
        aladhan=AladhanConfig(base_url="http://aladhan.test/v1", timeout=10),
        scheduler=SchedulerConfig(tick_seconds=60, startup_retry_seconds=60, send_retry_seconds=5),
        logging=LoggingConfig(level="DEBUG", format="text"),
    )


@pytest.fixture
def sample_schedule() -> PrayerSchedule:
    return PrayerSchedule.from_strings(SAMPLE_TIMINGS)


@pytest.fixture
def populated_cache(sample_schedule) -> ScheduleCache:
    cache = ScheduleCache()
    cache.replace_schedule(sample_schedule, "17-10-2026")
    return cache


@pytest.fixture
def aladhan_payload() -> dict:
    """A trimmed ``timingsByCity`` success response."""
    return {
        "code": 200,
        "status": "OK",
        "data": {
            "timings": {
                "Fajr": "05:00",
                "Sunrise": "06:21",
                "Dhuhr": "12:30",
                "Asr": "15:45",
                "Sunset": "18:05",
                "Maghrib": "18:10",
                "Isha": "19:40",
                "Imsak": "04:50",
                "Midnight": "00:20",
            },
            "date": {
                "readable": "17 Oct 2026",
                "timestamp": "1792213200",
                "gregorian": {"date": "17-10-2026", "format": "DD-MM-YYYY"},
                "hijri": {"date": "06-05-1448"},
            },
            "meta": {"method": {"id": 2, "name": "Islamic Society of North America (ISNA)"}},
        },
    }


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 10, 17, 12, 30, 5))


@pytest.fixture
def interaction() -> MagicMock:
    return make_interaction()
