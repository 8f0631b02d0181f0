"""Pytest configuration and shared fixtures."""
from datetime import date, datetime, timezone

import pytest

from solar.config import Settings
from solar.holidays import HolidayCalendar
from solar.models import RawDailyRecord
from solar.tariffs import load_rates_from_yaml


def epoch(day: date) -> int:
    """UTC midnight of a day in epoch seconds."""
    return int(datetime(day.year, day.month, day.day, tzinfo=timezone.utc).timestamp())


# 52 off + 8 mid + 16 peak + 20 off slots on a weekday
SCENARIO_SAMPLES = [100] * 52 + [200] * 8 + [300] * 16 + [100] * 20


@pytest.fixture
def rates():
    """Rate schedule from config/tariffs.yaml (summer 10/19/28, winter 9/18/26)."""
    return load_rates_from_yaml()


@pytest.fixture
def holidays():
    return HolidayCalendar()


@pytest.fixture
def settings(tmp_path):
    return Settings(
        dataset_path=tmp_path / "data.json",
        db_path=tmp_path / "cache.db",
        history_start=date(2022, 6, 1),
        recent_days=5,
    )


@pytest.fixture
def make_record():
    """Factory for a RawDailyRecord on a given day."""
    def _make(day: date, samples=None, fill=None):
        if samples is None:
            samples = [fill] * 96
        return RawDailyRecord(start_time=epoch(day), samples=tuple(samples))
    return _make
