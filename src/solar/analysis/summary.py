"""Summaries of valued production history."""

from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from ..models import SLOT_MINUTES, Forecast, ProductionStat, Watts


def stat_date(stat: ProductionStat, tz: ZoneInfo) -> date:
    return datetime.fromtimestamp(stat.start_time / 1000, tz).date()


def production_series(
    stats: list[ProductionStat], tz: ZoneInfo
) -> list[tuple[datetime, Watts | None]]:
    """Expand stats into 15-minute points of average power.

    A slot's Wh over a quarter hour is four times that in watts; missing
    readings stay None.
    """
    series = []
    for stat in stats:
        start = datetime.fromtimestamp(stat.start_time / 1000, tz)
        for i, wh in enumerate(stat.production_data):
            when = start + timedelta(minutes=SLOT_MINUTES * i)
            series.append((when, None if wh is None else Watts(wh * 4)))
    return series


def combine(forecast: Forecast, stats: list[ProductionStat], tz: ZoneInfo) -> list[dict]:
    """Pair each forecast point with measured production at the same instant."""
    measured = {when.timestamp(): watts for when, watts in production_series(stats, tz)}
    return [
        {
            "date": p.date,
            "watts": p.watts,
            "watt_hours": p.watt_hours,
            "production": measured.get(p.date.timestamp()),
        }
        for p in forecast.points
    ]


def forecast_days(forecast: Forecast, stats: list[ProductionStat], tz: ZoneInfo) -> list[dict]:
    """One row per forecast day with the measured production and value for that day.

    Actual figures are None for days the dataset doesn't cover yet.
    """
    by_date = {stat_date(s, tz): s for s in stats}
    joined = combine(forecast, stats, tz)

    rows = []
    for day in forecast.days:
        d = day.date.date()
        points = [p for p in joined if p["date"].date() == d]
        measured = [p["production"] for p in points if p["production"] is not None]
        stat = by_date.get(d)
        rows.append({
            "date": d,
            "forecast_wh": day.watt_hours,
            "forecast_peak_watts": max((p["watts"] for p in points), default=0),
            "actual_wh": stat.production_num if stat else None,
            "actual_peak_watts": max(measured) if measured else None,
            "value_dollars": stat.total if stat else None,
        })
    return rows


def summarize(stats: list[ProductionStat], today: date, tz: ZoneInfo, last_n: int = 5) -> dict:
    """Totals and per-day averages over all stats, plus today's breakdown."""
    total_value = sum(s.total for s in stats)
    value_days = sum(1 for s in stats if s.total > 0)
    total_production = sum(s.production_num for s in stats)
    production_days = len(stats)

    today_stat = next((s for s in stats if stat_date(s, tz) == today), None)

    return {
        "days": production_days,
        "value": {
            "total_dollars": total_value,
            "days": value_days,
            "per_day_dollars": total_value / value_days if value_days > 0 else 0,
        },
        "production": {
            "total_wh": total_production,
            "per_day_wh": total_production / (production_days or 1),
        },
        "last_days": [
            {"date": stat_date(s, tz).isoformat(), "production_wh": s.production_num}
            for s in stats[-last_n:]
        ],
        "today": (
            {
                "date": today.isoformat(),
                "value_dollars": today_stat.total,
                "production_wh": today_stat.production_num,
                "off_wh": today_stat.off_usage,
                "mid_wh": today_stat.mid_usage,
                "peak_wh": today_stat.peak_usage,
            }
            if today_stat
            else None
        ),
    }


def format_kw(wh: float, places: int = 1) -> str:
    return f"{wh / 1000:.{places}f}kW"


def format_summary_text(summary: dict) -> str:
    """Format a summary as human-readable text."""
    lines = []

    today = summary["today"]
    if today:
        lines.extend([
            "Today:",
            f"  - Value: ${today['value_dollars']:.2f}",
            f"  - Production: {format_kw(today['production_wh'], 2)}",
            f"  - Off Peak: {format_kw(today['off_wh'], 2)}",
            f"  - Mid Peak: {format_kw(today['mid_wh'], 2)}",
            f"  - On Peak: {format_kw(today['peak_wh'], 2)}",
            "",
        ])

    value = summary["value"]
    production = summary["production"]
    lines.extend([
        f"Last {summary['days']} Days:",
        f"  - Value: ${value['total_dollars']:.2f} (${value['per_day_dollars']:.2f}/day)",
        f"  - Production: {format_kw(production['total_wh'])} "
        f"({format_kw(production['per_day_wh'])}/day)",
    ])
    for day in summary["last_days"]:
        weekday = date.fromisoformat(day["date"]).strftime("%A")
        lines.append(f"  - {weekday} {format_kw(day['production_wh'])}")

    return "\n".join(lines)
