"""Tests for the Aladhan prayer times client."""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from prayer_times_bot.prayer.cache import ScheduleCache
from prayer_times_bot.prayer.client import PrayerTimesClient
from prayer_times_bot.prayer.models import Prayer, TimeOfDay


def make_session(status=200, text="", error=None):
    """Fake aiohttp session whose ``get`` yields one canned response or raises."""
    response = MagicMock()
    response.status = status
    response.text = AsyncMock(return_value=text)

    request_ctx = MagicMock()
    if error is not None:
        request_ctx.__aenter__ = AsyncMock(side_effect=error)
    else:
        request_ctx.__aenter__ = AsyncMock(return_value=response)
    request_ctx.__aexit__ = AsyncMock(return_value=False)

    session = MagicMock()
    session.get = MagicMock(return_value=request_ctx)
    return session


@pytest.fixture
def cache():
    return ScheduleCache()


@pytest.fixture
def client(test_config, cache):
    return PrayerTimesClient(test_config.aladhan, test_config.location, cache)


async def test_fetch_default_location_updates_cache(client, cache, aladhan_payload):
    session = make_session(text=json.dumps(aladhan_payload))
    client._ensure_session = AsyncMock(return_value=session)

    result = await client.fetch_times()

    assert result.success
    assert result.city == "Amman"
    assert result.date == "17-10-2026"
    assert result.method == "Islamic Society of North America (ISNA)"
    assert result.times[Prayer.DHUHR] == TimeOfDay(12, 30)
    assert cache.schedule == result.times
    assert cache.last_fetch_date == "17-10-2026"

    session.get.assert_called_once_with(
        "http://aladhan.test/v1/timingsByCity",
        params={"city": "Amman", "country": "Jordan", "method": 2},
    )


async def test_fetch_other_location_leaves_cache_untouched(client, cache, aladhan_payload, sample_schedule):
    cache.replace_schedule(sample_schedule, "16-10-2026")
    client._request_timings = AsyncMock(return_value=aladhan_payload)

    for _ in range(3):
        result = await client.fetch_times("Cairo", "Egypt", 5)
        assert result.success
        assert result.method == "Egyptian General Authority of Survey"

    assert cache.schedule is sample_schedule
    assert cache.last_fetch_date == "16-10-2026"


async def test_same_city_other_country_is_not_default(client, cache, aladhan_payload):
    client._request_timings = AsyncMock(return_value=aladhan_payload)

    await client.fetch_times("Amman", "Syria")

    assert cache.schedule is None


async def test_unknown_method_passes_through(client, aladhan_payload):
    client._request_timings = AsyncMock(return_value=aladhan_payload)

    result = await client.fetch_times("Cairo", "Egypt", 42)

    assert result.method == "Method 42"
    assert client._request_timings.call_args.args[0]["method"] == 42


async def test_non_success_code_keeps_previous_schedule(client, cache, sample_schedule):
    cache.replace_schedule(sample_schedule, "16-10-2026")
    client._request_timings = AsyncMock(
        return_value={"code": 400, "status": "BAD_REQUEST", "data": "Unable to locate city."}
    )

    result = await client.fetch_times()

    assert not result.success
    assert result.error == "API returned code 400"
    assert result.times is None
    assert cache.schedule is sample_schedule
    assert cache.last_fetch_date == "16-10-2026"


@pytest.mark.parametrize("payload", [
    {"code": 200, "data": {"timings": {"Fajr": "05:00"}, "date": {"gregorian": {"date": "x"}}}},
    {"code": 200, "data": "oops"},
    {"status": "OK"},
    ["not", "an", "object"],
])
async def test_malformed_payload_is_a_failure(client, cache, payload):
    client._request_timings = AsyncMock(return_value=payload)

    result = await client.fetch_times()

    assert not result.success
    assert result.error == "Malformed prayer times response"
    assert cache.schedule is None


async def test_non_json_body_is_a_failure(client, cache):
    client._ensure_session = AsyncMock(return_value=make_session(status=502, text="<html>Bad gateway</html>"))

    result = await client.fetch_times()

    assert not result.success
    assert "HTTP 502" in result.error
    assert cache.schedule is None


async def test_network_error_is_a_failure(client, cache):
    client._ensure_session = AsyncMock(
        return_value=make_session(error=aiohttp.ClientConnectionError("connection refused"))
    )

    result = await client.fetch_times()

    assert not result.success
    assert "connection refused" in result.error
    assert cache.schedule is None


async def test_timeout_is_a_failure(client, cache):
    client._ensure_session = AsyncMock(return_value=make_session(error=asyncio.TimeoutError()))

    result = await client.fetch_times()

    assert not result.success
    assert result.error == "Prayer times API timed out after 10s"


async def test_session_carries_timeout(client):
    session = await client._ensure_session()
    try:
        assert session.timeout.total == 10
    finally:
        await client.close()


async def test_closed_client_reports_failure(client):
    await client.close()

    result = await client.fetch_times()

    assert not result.success
    assert "closed" in result.error
