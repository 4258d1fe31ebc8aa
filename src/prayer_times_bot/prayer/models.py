"""
Data models for prayer times.

This module defines the fixed prayer enumeration, the minute-granularity
time-of-day value used for matching, the daily schedule, the Pydantic
models that validate Aladhan API payloads, and the calculation method table.
"""

import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple

from pydantic import BaseModel, Field, field_validator


class Prayer(str, Enum):
    """The five daily prayers, in the order they occur."""
    FAJR = "Fajr"
    DHUHR = "Dhuhr"
    ASR = "Asr"
    MAGHRIB = "Maghrib"
    ISHA = "Isha"

    @property
    def display_name(self) -> str:
        return PRAYER_DISPLAY_NAMES[self]

    @property
    def emoji(self) -> str:
        return PRAYER_EMOJI[self]


PRAYER_DISPLAY_NAMES: Dict[Prayer, str] = {
    Prayer.FAJR: "Fajr (Dawn)",
    Prayer.DHUHR: "Dhuhr (Noon)",
    Prayer.ASR: "Asr (Afternoon)",
    Prayer.MAGHRIB: "Maghrib (Sunset)",
    Prayer.ISHA: "Isha (Night)",
}

PRAYER_EMOJI: Dict[Prayer, str] = {
    Prayer.FAJR: "🌅",
    Prayer.DHUHR: "☀️",
    Prayer.ASR: "🌤️",
    Prayer.MAGHRIB: "🌆",
    Prayer.ISHA: "🌙",
}

# Aladhan calculation methods
CALCULATION_METHODS: Dict[int, str] = {
    0: "Shia Ithna-Ashari, Leva Institute, Qum",
    1: "University of Islamic Sciences, Karachi",
    2: "Islamic Society of North America (ISNA)",
    3: "Muslim World League (MWL)",
    4: "Umm al-Qura, Makkah",
    5: "Egyptian General Authority of Survey",
    7: "Institute of Geophysics, University of Tehran",
    8: "Gulf Region",
    9: "Kuwait",
    10: "Qatar",
    11: "Majlis Ugama Islam Singapura, Singapore",
    12: "Union Organization islamic de France",
    13: "Diyanet İşleri Başkanlığı, Turkey",
    14: "Spiritual Administration of Muslims of Russia",
}


def method_label(method: int) -> str:
    """Return the method's name, or an opaque ``Method <id>`` label."""
    return CALCULATION_METHODS.get(method, f"Method {method}")


_TIME_PATTERN = re.compile(r"^\s*(\d{1,2}):(\d{2})")


@dataclass(frozen=True, order=True)
class TimeOfDay:
    """
    A wall-clock time at minute precision.

    Renders as zero-padded ``HH:MM``; equality and ordering follow the
    rendered string, so comparing two values is the same as comparing
    their ``HH:MM`` forms.
    """

    hour: int
    minute: int

    def __post_init__(self) -> None:
        if not 0 <= self.hour <= 23 or not 0 <= self.minute <= 59:
            raise ValueError(f"Invalid time of day: {self.hour}:{self.minute}")

    @classmethod
    def parse(cls, value: str) -> "TimeOfDay":
        """
        Parse ``HH:MM``, ignoring any trailing suffix such as ``" (EET)"``.

        Raises:
            ValueError: If the value does not start with a valid time
        """
        match = _TIME_PATTERN.match(value or "")
        if not match:
            raise ValueError(f"Invalid time string: {value!r}")
        return cls(int(match.group(1)), int(match.group(2)))

    @classmethod
    def from_datetime(cls, moment: datetime) -> "TimeOfDay":
        return cls(moment.hour, moment.minute)

    @property
    def is_midnight(self) -> bool:
        return self.hour == 0 and self.minute == 0

    def __str__(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"


MIDNIGHT = TimeOfDay(0, 0)


@dataclass(frozen=True)
class PrayerSchedule:
    """One day's five prayer times, keyed by prayer."""

    times: Mapping[Prayer, TimeOfDay]

    def __post_init__(self) -> None:
        missing = [p.value for p in Prayer if p not in self.times]
        if missing:
            raise ValueError(f"Schedule is missing prayers: {', '.join(missing)}")

    @classmethod
    def from_strings(cls, timings: Mapping[str, str]) -> "PrayerSchedule":
        """Build a schedule from a ``{"Fajr": "05:00", ...}`` mapping."""
        return cls({prayer: TimeOfDay.parse(timings[prayer.value]) for prayer in Prayer})

    def __getitem__(self, prayer: Prayer) -> TimeOfDay:
        return self.times[prayer]

    def __iter__(self) -> Iterator[Tuple[Prayer, TimeOfDay]]:
        # Always yields in fixed prayer order
        for prayer in Prayer:
            yield prayer, self.times[prayer]

    def next_after(self, current: TimeOfDay) -> Tuple[Prayer, TimeOfDay]:
        """
        First prayer strictly after ``current``.

        Once Isha has passed this falls back to today's cached Fajr time,
        standing in for tomorrow's Fajr which is never fetched.
        """
        for prayer, time in self:
            if time > current:
                return prayer, time
        return Prayer.FAJR, self.times[Prayer.FAJR]

    def as_strings(self) -> Dict[str, str]:
        return {prayer.value: str(time) for prayer, time in self}


@dataclass
class FetchResult:
    """
    Outcome of a prayer times fetch.

    On success ``times``, ``date`` and ``method`` are populated; on failure
    only ``error`` is.
    """

    success: bool
    city: str
    country: str
    times: Optional[PrayerSchedule] = None
    date: Optional[str] = None
    method: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def failed(cls, city: str, country: str, error: str) -> "FetchResult":
        return cls(success=False, city=city, country=country, error=error)


class AladhanTimings(BaseModel):
    """The ``data.timings`` object; extra keys (Sunrise, Midnight, ...) are ignored."""

    Fajr: str
    Dhuhr: str
    Asr: str
    Maghrib: str
    Isha: str

    @field_validator("Fajr", "Dhuhr", "Asr", "Maghrib", "Isha")
    @classmethod
    def validate_time(cls, v: str) -> str:
        """Normalize to zero-padded HH:MM."""
        return str(TimeOfDay.parse(v))

    def to_schedule(self) -> PrayerSchedule:
        return PrayerSchedule.from_strings(self.model_dump())


class AladhanGregorianDate(BaseModel):
    date: str = Field(description="Display date, e.g. 17-10-2026")


class AladhanDate(BaseModel):
    readable: Optional[str] = None
    gregorian: AladhanGregorianDate


class AladhanData(BaseModel):
    timings: AladhanTimings
    date: AladhanDate


class AladhanResponse(BaseModel):
    """
    Envelope of a ``timingsByCity`` response.

    ``data`` is left untyped here because error responses carry a plain
    string in it; it is validated as ``AladhanData`` only when ``code`` is 200.
    """

    code: int
    status: Optional[str] = None
    data: Any = None

    @property
    def ok(self) -> bool:
        return self.code == 200

    def parse_data(self) -> AladhanData:
        return AladhanData.model_validate(self.data)
