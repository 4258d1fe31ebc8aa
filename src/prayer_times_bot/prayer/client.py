"""
Aladhan API client for fetching daily prayer times.

This module wraps the ``timingsByCity`` endpoint of the free Aladhan API.
Every request carries a bounded timeout so one slow upstream call cannot
stall the notifier's timers. Failures of any kind are reported back as a
failed ``FetchResult`` rather than raised.
"""

import asyncio
import json
import time
from typing import Any, Dict, Optional

import aiohttp
from pydantic import ValidationError

from prayer_times_bot.config import AladhanConfig, LocationConfig
from prayer_times_bot.prayer.cache import ScheduleCache
from prayer_times_bot.prayer.models import AladhanData, AladhanResponse, FetchResult, method_label
from prayer_times_bot.utils.exceptions import PrayerTimesAPIError
from prayer_times_bot.utils.logging import (
    generate_correlation_id,
    get_logger,
    log_fetch_finished,
    log_fetch_started,
)


class PrayerTimesClient:
    """
    HTTP client for the Aladhan prayer times API.

    Fetches for the configured default location also refresh the shared
    ``ScheduleCache``; fetches for any other location only return their
    result.

    Attributes:
        config: Aladhan API settings
        location: Default location and calculation method
        cache: Shared schedule state updated by default-location fetches
        session: Async HTTP session for API calls
    """

    def __init__(
        self,
        config: AladhanConfig,
        location: LocationConfig,
        cache: ScheduleCache,
    ) -> None:
        self.config = config
        self.location = location
        self.cache = cache
        self.logger = get_logger(__name__)
        self.session: Optional[aiohttp.ClientSession] = None
        self._closed = False

    @property
    def timings_url(self) -> str:
        return f"{self.config.base_url.rstrip('/')}/timingsByCity"

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """
        Ensure that we have an active HTTP session.

        Raises:
            PrayerTimesAPIError: If the client has been closed
        """
        if self._closed:
            raise PrayerTimesAPIError("Prayer times client has been closed")

        if self.session is None or self.session.closed:
            timeout = aiohttp.ClientTimeout(total=self.config.timeout)
            self.session = aiohttp.ClientSession(
                headers={"User-Agent": "Prayer-Times-Bot/0.1.0"},
                timeout=timeout,
                raise_for_status=False,
            )
            self.logger.debug("Created new HTTP session for Aladhan client")

        return self.session

    async def fetch_times(
        self,
        city: Optional[str] = None,
        country: Optional[str] = None,
        method: Optional[int] = None,
    ) -> FetchResult:
        """
        Fetch today's five prayer times for a location.

        Args:
            city: City name, defaults to the configured city
            country: Country name, defaults to the configured country
            method: Calculation method id, defaults to the configured method

        Returns:
            A successful result with times, Gregorian date and method label,
            or a failed result carrying a human-readable error
        """
        city = city or self.location.city
        country = country or self.location.country
        method = self.location.calculation_method if method is None else method
        correlation_id = generate_correlation_id()

        log_fetch_started(city, country, method, correlation_id)

        try:
            payload = await self._request_timings(
                {"city": city, "country": country, "method": method},
                correlation_id,
            )
            data = self._parse_response(payload)
        except PrayerTimesAPIError as e:
            self.logger.error(
                "Error fetching prayer times",
                city=city,
                country=country,
                error=str(e),
                correlation_id=correlation_id,
            )
            return FetchResult.failed(city, country, e.message)

        schedule = data.timings.to_schedule()
        fetch_date = data.date.gregorian.date

        # Only the default location feeds the notifier
        if self.location.matches(city, country):
            self.cache.replace_schedule(schedule, fetch_date)
            self.logger.info(
                "Prayer times updated",
                city=city,
                country=country,
                correlation_id=correlation_id,
            )

        return FetchResult(
            success=True,
            city=city,
            country=country,
            times=schedule,
            date=fetch_date,
            method=method_label(method),
        )

    async def _request_timings(
        self,
        params: Dict[str, Any],
        correlation_id: str,
    ) -> Dict[str, Any]:
        """
        Issue the GET request and decode the JSON body.

        Raises:
            PrayerTimesAPIError: On network failure, timeout or undecodable body
        """
        start_time = time.time()
        try:
            session = await self._ensure_session()
            async with session.get(self.timings_url, params=params) as response:
                response_text = await response.text()
                response_time_ms = (time.time() - start_time) * 1000
                log_fetch_finished(response.status, response_time_ms, correlation_id)
                try:
                    return json.loads(response_text)
                except json.JSONDecodeError as e:
                    raise PrayerTimesAPIError(
                        f"Invalid response from prayer times API (HTTP {response.status})",
                        context={"correlation_id": correlation_id},
                        original_error=e,
                    )

        except aiohttp.ClientError as e:
            response_time_ms = (time.time() - start_time) * 1000
            log_fetch_finished(0, response_time_ms, correlation_id, error=str(e))
            raise PrayerTimesAPIError(
                f"Failed to reach prayer times API: {e}",
                context={"error_type": type(e).__name__},
                original_error=e,
            )
        except asyncio.TimeoutError as e:
            response_time_ms = (time.time() - start_time) * 1000
            log_fetch_finished(0, response_time_ms, correlation_id, error="timeout")
            raise PrayerTimesAPIError(
                f"Prayer times API timed out after {self.config.timeout:g}s",
                context={"timeout": self.config.timeout},
                original_error=e,
            )

    @staticmethod
    def _parse_response(payload: Any) -> AladhanData:
        """
        Validate the envelope and its data section.

        Raises:
            PrayerTimesAPIError: On a non-200 code or a malformed payload
        """
        try:
            response = AladhanResponse.model_validate(payload)
        except ValidationError as e:
            raise PrayerTimesAPIError("Malformed prayer times response", original_error=e)

        if not response.ok:
            raise PrayerTimesAPIError(
                f"API returned code {response.code}",
                context={"status": response.status, "data": str(response.data)[:200]},
            )

        try:
            return response.parse_data()
        except ValidationError as e:
            raise PrayerTimesAPIError("Malformed prayer times response", original_error=e)

    async def close(self) -> None:
        """Close the HTTP session."""
        if not self._closed:
            if self.session and not self.session.closed:
                await self.session.close()
            self._closed = True
            self.logger.debug("Aladhan client closed")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
