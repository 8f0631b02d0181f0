"""Build valued daily production stats from raw upstream records."""

from typing import Iterable
from zoneinfo import ZoneInfo

from .holidays import HolidayCalendar
from .models import ProductionStat, RateSchedule, RawDailyRecord, WattHours
from .tariffs import calculate_costs, classify_day, record_date, season_for

UTC = ZoneInfo("UTC")


def build_stat(
    raw: RawDailyRecord,
    rates: RateSchedule,
    holidays: HolidayCalendar,
    tz: ZoneInfo = UTC,
) -> ProductionStat:
    """Classify a day's slots, price each bucket and assemble the stat."""
    day = record_date(raw.start_time, tz)
    classification = classify_day(day, holidays, rates)
    breakdown = calculate_costs(
        raw.samples, classification, rates.rates_for(season_for(day, rates))
    )

    return ProductionStat(
        start_time=raw.start_time * 1000,
        production_data=raw.samples,
        off_usage=breakdown.off_usage,
        mid_usage=breakdown.mid_usage,
        peak_usage=breakdown.peak_usage,
        off_total=breakdown.off_total,
        mid_total=breakdown.mid_total,
        peak_total=breakdown.peak_total,
        production_num=WattHours(breakdown.usage),
        total=breakdown.total,
    )


def build_stats(
    records: Iterable[RawDailyRecord],
    rates: RateSchedule,
    holidays: HolidayCalendar,
    tz: ZoneInfo = UTC,
) -> list[ProductionStat]:
    """Build stats for many records, ordered by start time."""
    stats = [build_stat(r, rates, holidays, tz) for r in records]
    return sorted(stats, key=lambda s: s.start_time)


def stat_to_raw(stat: ProductionStat) -> RawDailyRecord:
    """Recover the raw record a stat was built from."""
    return RawDailyRecord(start_time=stat.start_time // 1000, samples=stat.production_data)
