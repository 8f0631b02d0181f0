"""Tariff loading, day classification and cost calculation."""

from datetime import date, datetime
from pathlib import Path
from zoneinfo import ZoneInfo

import yaml

from .holidays import HolidayCalendar
from .models import (
    SLOTS_PER_DAY,
    Bucket,
    Cents,
    DayClassification,
    Dollars,
    RateSchedule,
    Season,
    SeasonRates,
    TariffBreakdown,
    WattHours,
)

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config" / "tariffs.yaml"

DEFAULT_RATES = RateSchedule(
    summer=SeasonRates(off=Cents(10), mid=Cents(19), peak=Cents(28)),
    winter=SeasonRates(off=Cents(9), mid=Cents(18), peak=Cents(26)),
)


def load_rates_from_yaml(config_path: Path | None = None) -> RateSchedule:
    """Load the rate schedule from YAML config, or the defaults if the file is missing."""
    path = config_path or DEFAULT_CONFIG_PATH
    if not path.exists():
        if config_path is not None:
            raise FileNotFoundError(f"Tariff config not found: {path}")
        return DEFAULT_RATES

    with open(path) as f:
        data = yaml.safe_load(f) or {}

    rates = data.get("rates", {})
    periods = data.get("periods", {})

    def season(name: str, default: SeasonRates) -> SeasonRates:
        # YAML 1.1 reads a bare `off:` key as the boolean False
        r = {
            ("off" if key is False else key): value
            for key, value in (rates.get(name) or {}).items()
        }
        unknown = set(r) - {"off", "mid", "peak"}
        if unknown:
            raise ValueError(f"Unknown {name} rate keys in {path}: {sorted(map(str, unknown))}")
        return SeasonRates(
            off=Cents(float(r.get("off", default.off))),
            mid=Cents(float(r.get("mid", default.mid))),
            peak=Cents(float(r.get("peak", default.peak))),
        )

    schedule = RateSchedule(
        summer=season("summer", DEFAULT_RATES.summer),
        winter=season("winter", DEFAULT_RATES.winter),
        summer_months=frozenset(data.get("summer_months", DEFAULT_RATES.summer_months)),
        mid_start=int(periods.get("mid_start", DEFAULT_RATES.mid_start)),
        peak_start=int(periods.get("peak_start", DEFAULT_RATES.peak_start)),
        peak_end=int(periods.get("peak_end", DEFAULT_RATES.peak_end)),
        name=data.get("name", DEFAULT_RATES.name),
    )
    if not 0 <= schedule.mid_start <= schedule.peak_start <= schedule.peak_end <= SLOTS_PER_DAY:
        raise ValueError(
            f"Slot boundaries out of order in {path}: "
            f"{schedule.mid_start}/{schedule.peak_start}/{schedule.peak_end}"
        )
    return schedule


def record_date(start_time: int, tz: ZoneInfo) -> date:
    """Calendar date of a record's start (epoch seconds) in the site's timezone."""
    return datetime.fromtimestamp(start_time, tz).date()


def season_for(day: date, rates: RateSchedule) -> Season:
    return rates.season_for_month(day.month)


def classify_day(day: date, holidays: HolidayCalendar, rates: RateSchedule) -> DayClassification:
    """Split the 96 slots of a day into off/mid/peak.

    Weekends and holidays are off-peak all day; otherwise the weekday
    boundaries from the rate schedule apply.
    """
    if day.weekday() >= 5 or holidays.is_holiday(day):
        return DayClassification(off=tuple(range(SLOTS_PER_DAY)))

    return DayClassification(
        off=tuple(range(0, rates.mid_start)) + tuple(range(rates.peak_end, SLOTS_PER_DAY)),
        mid=tuple(range(rates.mid_start, rates.peak_start)),
        peak=tuple(range(rates.peak_start, rates.peak_end)),
    )


def bucket_usage(samples, indices) -> WattHours:
    """Sum of the given slots in Wh; missing readings count as zero."""
    return WattHours(sum(samples[i] or 0 for i in indices))


def cost_for(usage: WattHours, rate: Cents) -> Dollars:
    """Convert Wh at a cents/kWh rate to dollars."""
    return Dollars(usage / 1000 * rate / 100)


def calculate_costs(
    samples, classification: DayClassification, season_rates: SeasonRates
) -> TariffBreakdown:
    """Calculate usage and cost for each bucket of a classified day."""
    usage = {b: bucket_usage(samples, classification.indices(b)) for b in Bucket}
    return TariffBreakdown(
        off_usage=usage[Bucket.OFF],
        mid_usage=usage[Bucket.MID],
        peak_usage=usage[Bucket.PEAK],
        off_total=cost_for(usage[Bucket.OFF], season_rates.off),
        mid_total=cost_for(usage[Bucket.MID], season_rates.mid),
        peak_total=cost_for(usage[Bucket.PEAK], season_rates.peak),
    )
