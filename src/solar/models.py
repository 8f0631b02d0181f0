"""Data models for production records, rates and forecasts.

Energy is always carried in watt-hours and rates in cents per kWh; only the
tariff calculator converts to dollars. The NewType aliases make the unit of
every field visible in signatures.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, NewType

from .errors import InvalidRecordShape

Watts = NewType("Watts", float)
WattHours = NewType("WattHours", float)
Cents = NewType("Cents", float)
Dollars = NewType("Dollars", float)

SLOTS_PER_DAY = 96
SLOT_MINUTES = 15


def _is_reading(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass(frozen=True)
class RawDailyRecord:
    """One day of 15-minute production readings as sent by the upstream API."""

    start_time: int  # epoch seconds, start of the day
    samples: tuple[float | None, ...]  # Wh per slot, None = missing reading

    def __post_init__(self):
        samples = tuple(self.samples)
        if len(samples) != SLOTS_PER_DAY:
            raise InvalidRecordShape(
                f"Record {self.start_time} has {len(samples)} samples, expected {SLOTS_PER_DAY}"
            )
        for i, value in enumerate(samples):
            if value is None:
                continue
            if not _is_reading(value) or value < 0:
                raise InvalidRecordShape(
                    f"Record {self.start_time} slot {i} is not a non-negative reading: {value!r}"
                )
        object.__setattr__(self, "samples", samples)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "RawDailyRecord":
        """Build a record from an upstream `{production, start_time}` object."""
        try:
            return cls(start_time=int(data["start_time"]), samples=tuple(data["production"]))
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidRecordShape(f"Malformed production record: {e}") from e

    def to_api(self) -> dict[str, Any]:
        """Inverse of `from_api`, in the persisted dataset's key order."""
        return {"production": list(self.samples), "start_time": self.start_time}

    @property
    def has_data(self) -> bool:
        """True if at least one slot holds a numeric reading."""
        return any(value is not None for value in self.samples)


class Season(str, Enum):
    SUMMER = "summer"
    WINTER = "winter"


class Bucket(str, Enum):
    OFF = "off"
    MID = "mid"
    PEAK = "peak"


@dataclass(frozen=True)
class SeasonRates:
    """Rates in cents per kWh for one season."""

    off: Cents
    mid: Cents
    peak: Cents

    def for_bucket(self, bucket: Bucket) -> Cents:
        return getattr(self, bucket.value)


@dataclass(frozen=True)
class RateSchedule:
    """Time-of-use tariff: per-season rates and the weekday slot boundaries."""

    summer: SeasonRates
    winter: SeasonRates
    summer_months: frozenset[int] = frozenset({6, 7, 8, 9})
    mid_start: int = 52
    peak_start: int = 60
    peak_end: int = 76
    name: str = "Residential TOU"

    def season_for_month(self, month: int) -> Season:
        return Season.SUMMER if month in self.summer_months else Season.WINTER

    def rates_for(self, season: Season) -> SeasonRates:
        return self.summer if season is Season.SUMMER else self.winter


@dataclass(frozen=True)
class DayClassification:
    """Partition of the day's slot indices into off/mid/peak buckets."""

    off: tuple[int, ...]
    mid: tuple[int, ...] = ()
    peak: tuple[int, ...] = ()

    def indices(self, bucket: Bucket) -> tuple[int, ...]:
        return getattr(self, bucket.value)


@dataclass(frozen=True)
class TariffBreakdown:
    """Usage and cost per bucket for one day."""

    off_usage: WattHours
    mid_usage: WattHours
    peak_usage: WattHours
    off_total: Dollars
    mid_total: Dollars
    peak_total: Dollars

    @property
    def usage(self) -> WattHours:
        return WattHours(self.off_usage + self.mid_usage + self.peak_usage)

    @property
    def total(self) -> Dollars:
        return Dollars(self.off_total + self.mid_total + self.peak_total)


@dataclass(frozen=True)
class ProductionStat:
    """A day's production with its time-of-use value. Derived, never mutated."""

    start_time: int  # epoch milliseconds
    production_data: tuple[float | None, ...]
    off_usage: WattHours
    mid_usage: WattHours
    peak_usage: WattHours
    off_total: Dollars
    mid_total: Dollars
    peak_total: Dollars
    production_num: WattHours
    total: Dollars


class Provenance(str, Enum):
    """Which source supplied the forecast currently shown."""

    PERSONAL = "Personal"
    PUBLIC = "Public"
    CACHED = "Cached"


@dataclass(frozen=True)
class ForecastPoint:
    date: datetime
    watts: Watts
    watt_hours: WattHours


@dataclass(frozen=True)
class ForecastDay:
    date: datetime
    watt_hours: WattHours


@dataclass
class Forecast:
    """Parsed forecast payload plus the source it came from."""

    points: list[ForecastPoint]
    days: list[ForecastDay]
    provenance: Provenance
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def max_watts(self) -> float:
        """Chart ceiling: 1.5x the highest forecast power."""
        if not self.points:
            return 0
        return max(p.watts for p in self.points) * 1.5

    @property
    def max_watt_hours(self) -> float:
        if not self.points:
            return 0
        return max(p.watt_hours for p in self.points) * 1.5
