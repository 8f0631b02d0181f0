"""Tests for rate loading, day classification and bucket costs."""
from datetime import date, timedelta

import pytest

from solar.models import DayClassification, Season, SeasonRates
from solar.tariffs import (
    DEFAULT_RATES,
    calculate_costs,
    classify_day,
    load_rates_from_yaml,
    record_date,
    season_for,
)

ALL_SLOTS = set(range(96))
HOLIDAYS_2024 = [
    date(2024, 1, 1),
    date(2024, 5, 27),
    date(2024, 7, 4),
    date(2024, 9, 2),
    date(2024, 11, 28),
    date(2024, 12, 25),
]


def assert_all_off(classification: DayClassification):
    assert set(classification.off) == ALL_SLOTS
    assert classification.mid == ()
    assert classification.peak == ()


class TestLoadRates:
    def test_shipped_config_matches_defaults(self, rates):
        assert rates == DEFAULT_RATES

    def test_custom_config(self, tmp_path):
        path = tmp_path / "tariffs.yaml"
        path.write_text(
            "name: Test\n"
            "summer_months: [7, 8]\n"
            "rates:\n  summer: {\"off\": 5, mid: 6, peak: 7}\n"
            "periods: {mid_start: 48, peak_start: 56, peak_end: 80}\n"
        )
        schedule = load_rates_from_yaml(path)
        assert schedule.name == "Test"
        assert schedule.summer == SeasonRates(5, 6, 7)
        assert schedule.winter == DEFAULT_RATES.winter
        assert schedule.summer_months == frozenset({7, 8})
        assert (schedule.mid_start, schedule.peak_start, schedule.peak_end) == (48, 56, 80)

    def test_shipped_layout_off_rate_is_read(self, tmp_path):
        from solar.tariffs import DEFAULT_CONFIG_PATH

        text = DEFAULT_CONFIG_PATH.read_text().replace('"off": 10', '"off": 3')
        path = tmp_path / "tariffs.yaml"
        path.write_text(text)
        schedule = load_rates_from_yaml(path)
        assert schedule.summer.off == 3
        assert schedule.winter.off == 9

    def test_unquoted_off_key(self, tmp_path):
        path = tmp_path / "tariffs.yaml"
        path.write_text("rates:\n  winter:\n    off: 4\n")
        assert load_rates_from_yaml(path).winter.off == 4

    def test_unknown_rate_key(self, tmp_path):
        path = tmp_path / "tariffs.yaml"
        path.write_text("rates:\n  summer: {offpeak: 4}\n")
        with pytest.raises(ValueError, match="Unknown summer rate keys"):
            load_rates_from_yaml(path)

    def test_boundaries_out_of_order(self, tmp_path):
        path = tmp_path / "tariffs.yaml"
        path.write_text("periods: {mid_start: 60, peak_start: 52, peak_end: 76}\n")
        with pytest.raises(ValueError, match="out of order"):
            load_rates_from_yaml(path)

    def test_missing_explicit_path(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_rates_from_yaml(tmp_path / "nope.yaml")


class TestClassifyDay:
    def test_weekends_are_all_off(self, holidays, rates):
        """Every Saturday and Sunday of a year is off-peak all day."""
        day = date(2024, 1, 1)
        while day.year == 2024:
            if day.weekday() >= 5:
                assert_all_off(classify_day(day, holidays, rates))
            day += timedelta(days=1)

    @pytest.mark.parametrize("day", HOLIDAYS_2024)
    def test_weekday_holidays_are_all_off(self, day, holidays, rates):
        assert day.weekday() < 5
        assert_all_off(classify_day(day, holidays, rates))

    def test_ordinary_weekday_split(self, holidays, rates):
        c = classify_day(date(2024, 7, 10), holidays, rates)
        assert c.off == tuple(range(0, 52)) + tuple(range(76, 96))
        assert c.mid == tuple(range(52, 60))
        assert c.peak == tuple(range(60, 76))

    def test_weekday_buckets_partition_the_day(self, holidays, rates):
        c = classify_day(date(2024, 2, 14), holidays, rates)
        off, mid, peak = set(c.off), set(c.mid), set(c.peak)
        assert off | mid | peak == ALL_SLOTS
        assert not off & mid and not off & peak and not mid & peak


class TestSeasons:
    @pytest.mark.parametrize("month,season", [
        (5, Season.WINTER),
        (6, Season.SUMMER),
        (9, Season.SUMMER),
        (10, Season.WINTER),
        (1, Season.WINTER),
    ])
    def test_season_by_month(self, month, season, rates):
        assert season_for(date(2024, month, 15), rates) is season

    def test_record_date_uses_timezone(self):
        from zoneinfo import ZoneInfo

        # 2024-07-10 06:00 UTC is midnight in Denver
        start = 1720591200
        assert record_date(start, ZoneInfo("UTC")) == date(2024, 7, 10)
        assert record_date(start, ZoneInfo("America/Denver")) == date(2024, 7, 10)
        assert record_date(start - 1, ZoneInfo("America/Denver")) == date(2024, 7, 9)


class TestCalculateCosts:
    def test_weekday_summer_costs(self, holidays, rates):
        samples = [100] * 52 + [200] * 8 + [300] * 16 + [100] * 20
        c = classify_day(date(2024, 7, 10), holidays, rates)
        breakdown = calculate_costs(samples, c, rates.summer)
        assert breakdown.off_usage == 7200
        assert breakdown.mid_usage == 1600
        assert breakdown.peak_usage == 4800
        assert breakdown.off_total == pytest.approx(0.72)
        assert breakdown.mid_total == pytest.approx(0.304)
        assert breakdown.peak_total == pytest.approx(1.344)
        assert breakdown.total == pytest.approx(2.368)

    def test_missing_readings_count_as_zero(self, holidays, rates):
        samples = [None] * 96
        samples[60] = 1000
        c = classify_day(date(2024, 7, 10), holidays, rates)
        breakdown = calculate_costs(samples, c, rates.summer)
        assert breakdown.off_usage == 0
        assert breakdown.peak_usage == 1000
        assert breakdown.total == pytest.approx(0.28)
