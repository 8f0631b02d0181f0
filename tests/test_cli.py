"""Tests for the command-line interface."""
import json
from datetime import date, datetime, timezone
from unittest.mock import AsyncMock, patch

import pytest
from click.testing import CliRunner

from solar.cli import cli
from solar.dataset import write_dataset


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def env(tmp_path):
    return {
        "SOLAR_DATASET_PATH": str(tmp_path / "data.json"),
        "SOLAR_DB_PATH": str(tmp_path / "cache.db"),
        "SOLAR_GIT_COMMIT": "0",
    }


def test_rates(runner, env):
    result = runner.invoke(cli, ["rates"], env=env)
    assert result.exit_code == 0
    assert "Summer months: Jun, Jul, Aug, Sep" in result.output


def test_summary_json(runner, env, tmp_path, make_record):
    write_dataset(tmp_path / "data.json", [make_record(date(2024, 7, 10), fill=100)])
    result = runner.invoke(cli, ["summary", "--json"], env=env)
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data["production"]["total_wh"] == 9600


def test_summary_empty_dataset(runner, env):
    result = runner.invoke(cli, ["summary"], env=env)
    assert result.exit_code == 0
    assert "No production data" in result.output


def test_update_reports_skip(runner, env):
    run_once = AsyncMock(return_value={"status": "skipped"})
    with patch("solar.cli.MergeJob") as job_cls:
        job_cls.return_value.run_once = run_once
        result = runner.invoke(cli, ["update", "--no-commit"], env=env)

    assert result.exit_code == 0
    assert "update skipped" in result.output
    assert job_cls.call_args.args[1] is None


def test_forecast_no_data(runner, env):
    with patch("solar.cli.FallbackFetcher") as fetcher_cls:
        from solar.errors import NoDataAvailable

        fetcher_cls.return_value.fetch_forecast = AsyncMock(side_effect=NoDataAvailable("nothing"))
        result = runner.invoke(cli, ["forecast"], env=env)

    assert result.exit_code == 0
    assert "Error: nothing" in result.output


def test_forecast_shows_actuals(runner, env, tmp_path, make_record):
    from solar.models import Forecast, ForecastDay, ForecastPoint, Provenance

    samples = [0] * 96
    samples[48] = 500
    write_dataset(tmp_path / "data.json", [make_record(date(2024, 7, 10), samples)])
    forecast = Forecast(
        points=[ForecastPoint(datetime(2024, 7, 10, 12, tzinfo=timezone.utc), 2500, 600)],
        days=[ForecastDay(datetime(2024, 7, 10, tzinfo=timezone.utc), 9000)],
        provenance=Provenance.CACHED,
    )
    with patch("solar.cli.FallbackFetcher") as fetcher_cls:
        fetcher_cls.return_value.fetch_forecast = AsyncMock(return_value=forecast)
        result = runner.invoke(cli, ["forecast"], env=env)

    assert result.exit_code == 0
    assert "Cached" in result.output
    assert "Actual" in result.output
    assert "0.50kWh" in result.output
    assert "$0.05" in result.output
    assert "3.75kW" in result.output
