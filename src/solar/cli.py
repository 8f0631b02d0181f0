"""Command-line interface for solar production value and forecasts."""

import asyncio
import dataclasses
import json
import logging
from datetime import datetime
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .analysis import summary
from .config import load_settings
from .dataset import read_dataset
from .db import CacheStore
from .errors import SolarError
from .fallback import FallbackFetcher
from .git import GitCommitter
from .history import HistorySynchronizer
from .holidays import HolidayCalendar
from .jobs import MergeJob, run_forever
from .models import ProductionStat
from .stats import build_stats
from .tariffs import load_rates_from_yaml

console = Console()


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
    )


@click.group()
@click.option("--dataset", type=click.Path(), help="Path to the production dataset JSON")
@click.option("--tariffs", type=click.Path(exists=True), help="Path to tariffs.yaml")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging")
@click.pass_context
def cli(ctx, dataset, tariffs, verbose):
    """Solar production value - history, time-of-use value and forecast."""
    setup_logging(verbose)
    settings = load_settings()
    if dataset:
        settings = dataclasses.replace(settings, dataset_path=Path(dataset))
    if tariffs:
        settings = dataclasses.replace(settings, tariff_path=Path(tariffs))

    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings
    ctx.obj["rates"] = load_rates_from_yaml(settings.tariff_path)
    ctx.obj["holidays"] = HolidayCalendar()


def stats_table(title: str, stats: list[ProductionStat], tz) -> Table:
    table = Table(title=title)
    table.add_column("Date", style="cyan")
    table.add_column("Production", justify="right")
    table.add_column("Off", justify="right")
    table.add_column("Mid", justify="right")
    table.add_column("Peak", justify="right")
    table.add_column("Value", justify="right", style="green")

    for s in stats:
        table.add_row(
            summary.stat_date(s, tz).strftime("%a %Y-%m-%d"),
            summary.format_kw(s.production_num, 2),
            summary.format_kw(s.off_usage, 2),
            summary.format_kw(s.mid_usage, 2),
            summary.format_kw(s.peak_usage, 2),
            f"${s.total:.2f}",
        )
    return table


@cli.command()
@click.option("--no-commit", is_flag=True, help="Write the dataset but don't commit/push it")
@click.pass_context
def update(ctx, no_commit):
    """Merge today's production into the dataset once."""
    settings = ctx.obj["settings"]
    committer = None if no_commit or not settings.git_commit else GitCommitter()
    result = asyncio.run(MergeJob(settings, committer).run_once())

    if result["status"] == "updated":
        console.print(
            f"[green]Dataset updated: {result['records']} days "
            f"({result['replaced']} replaced, {result['added']} added, {result['pruned']} pruned)[/green]"
        )
    elif result["status"] == "skipped":
        console.print("[yellow]Upstream unavailable, update skipped[/yellow]")
    else:
        console.print("[red]Update failed, see log[/red]")


@cli.command()
@click.option("--minutes", type=int, help="Interval between runs (default: SOLAR_UPDATE_MINUTES)")
@click.pass_context
def watch(ctx, minutes):
    """Keep the dataset current, merging on an interval until interrupted."""
    settings = ctx.obj["settings"]
    committer = GitCommitter() if settings.git_commit else None
    try:
        asyncio.run(run_forever(MergeJob(settings, committer), minutes or settings.update_minutes))
    except KeyboardInterrupt:
        console.print("[cyan]Stopped[/cyan]")


@cli.command()
@click.pass_context
def history(ctx):
    """Fetch full production history (recent window first, then everything)."""
    settings = ctx.obj["settings"]
    synchronizer = HistorySynchronizer(settings, ctx.obj["rates"], ctx.obj["holidays"])

    async def show():
        titles = iter(["Recent days", "Full history"])
        async for stats in synchronizer.updates():
            console.print(stats_table(next(titles), stats, settings.tz))

    try:
        asyncio.run(show())
    except SolarError as e:
        console.print(f"[red]Error: {e}[/red]")


@cli.command("summary")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def summary_cmd(ctx, as_json):
    """Summarize value and production in the persisted dataset."""
    settings = ctx.obj["settings"]
    try:
        records = read_dataset(settings.dataset_path)
    except (OSError, ValueError, SolarError) as e:
        console.print(f"[red]Could not read {settings.dataset_path}: {e}[/red]")
        return

    stats = build_stats(records, ctx.obj["rates"], ctx.obj["holidays"], settings.tz)
    if not stats:
        console.print("[yellow]No production data[/yellow]")
        return

    data = summary.summarize(stats, datetime.now(settings.tz).date(), settings.tz)
    if as_json:
        console.print(json.dumps(data, indent=2))
    else:
        console.print(summary.format_summary_text(data))


@cli.command()
@click.option("--api-key", help="Forecast.Solar API key (or set FORECAST_SOLAR_API_KEY)")
@click.pass_context
def forecast(ctx, api_key):
    """Fetch the solar forecast and show it beside measured production.

    Falls back to the public API and then the cache.
    """
    settings = ctx.obj["settings"]
    fetcher = FallbackFetcher(settings, CacheStore(settings.db_path), api_key=api_key)
    try:
        result = asyncio.run(fetcher.fetch_forecast())
    except SolarError as e:
        console.print(f"[red]Error: {e}[/red]")
        return

    try:
        records = read_dataset(settings.dataset_path)
    except (OSError, ValueError, SolarError) as e:
        console.print(f"[yellow]No actuals, could not read {settings.dataset_path}: {e}[/yellow]")
        records = []
    stats = build_stats(records, ctx.obj["rates"], ctx.obj["holidays"], settings.tz)

    table = Table(
        title=f"Forecast ({result.provenance.value})",
        caption=(
            f"Chart scale: {summary.format_kw(result.max_watts, 2)}, "
            f"{summary.format_kw(result.max_watt_hours, 2)}h per interval"
        ),
    )
    table.add_column("Day", style="cyan")
    table.add_column("Forecast", justify="right")
    table.add_column("Fc. peak", justify="right")
    table.add_column("Actual", justify="right")
    table.add_column("Act. peak", justify="right")
    table.add_column("Value", justify="right", style="green")
    for row in summary.forecast_days(result, stats, settings.tz):
        actual = row["actual_wh"] is not None
        table.add_row(
            row["date"].strftime("%a %Y-%m-%d"),
            summary.format_kw(row["forecast_wh"], 2) + "h",
            summary.format_kw(row["forecast_peak_watts"], 2),
            summary.format_kw(row["actual_wh"], 2) + "h" if actual else "-",
            summary.format_kw(row["actual_peak_watts"], 2) if row["actual_peak_watts"] is not None else "-",
            f"${row['value_dollars']:.2f}" if actual else "-",
        )
    console.print(table)


@cli.command()
@click.pass_context
def rates(ctx):
    """Show the loaded time-of-use rate schedule."""
    schedule = ctx.obj["rates"]
    table = Table(title=schedule.name)
    table.add_column("Season", style="cyan")
    table.add_column("Off (¢/kWh)", justify="right")
    table.add_column("Mid (¢/kWh)", justify="right")
    table.add_column("Peak (¢/kWh)", justify="right")
    for name, season in (("Summer", schedule.summer), ("Winter", schedule.winter)):
        table.add_row(name, f"{season.off:g}", f"{season.mid:g}", f"{season.peak:g}")
    console.print(table)

    months = ", ".join(datetime(2000, m, 1).strftime("%b") for m in sorted(schedule.summer_months))
    console.print(f"Summer months: {months}")
    console.print(
        f"Weekday mid-peak slots {schedule.mid_start}-{schedule.peak_start}, "
        f"on-peak slots {schedule.peak_start}-{schedule.peak_end}"
    )


if __name__ == "__main__":
    cli()
