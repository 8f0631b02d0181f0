"""Forecast.Solar estimate collector.

The public endpoint is rate limited and needs no credential; the personal
endpoint puts an API key in the path. Both return
{"result": {"watts": {...}, "watt_hours": {...}, "watt_hours_day": {...}}}
keyed by local "YYYY-MM-DD HH:MM:SS" timestamps.
"""

import logging
import math
from datetime import date, datetime
from typing import Any
from zoneinfo import ZoneInfo

import httpx

from ..config import Settings
from ..errors import TransientFetchFailure
from ..models import Forecast, ForecastDay, ForecastPoint, Provenance, WattHours, Watts

logger = logging.getLogger(__name__)


def sun_declination(day: date) -> float:
    """Solar declination in degrees (Cooper's approximation), to two places."""
    n = day.timetuple().tm_yday
    return round(23.45 * math.sin(2 * math.pi * (284 + n) / 365), 2)


def _site_path(settings: Settings, day: date) -> str:
    dec = settings.declination if settings.declination is not None else sun_declination(day)
    return f"estimate/{settings.latitude}/{settings.longitude}/{dec}/{settings.azimuth:g}/{settings.kwp}"


def public_url(settings: Settings, day: date | None = None) -> str:
    day = day or date.today()
    return f"{settings.forecast_url.rstrip('/')}/{_site_path(settings, day)}"


def personal_url(settings: Settings, api_key: str, day: date | None = None) -> str:
    day = day or date.today()
    return f"{settings.forecast_url.rstrip('/')}/{api_key}/{_site_path(settings, day)}"


async def fetch_estimate(
    url: str, client: httpx.AsyncClient, timeout: float = 30.0
) -> dict[str, Any]:
    """GET an estimate and return its `result` object.

    Anything other than HTTP 200 with a parseable body is a TransientFetchFailure.
    """
    try:
        response = await client.get(url, timeout=timeout)
    except httpx.HTTPError as e:
        raise TransientFetchFailure(f"Network error fetching forecast: {e}") from e

    if response.status_code != 200:
        raise TransientFetchFailure(f"Forecast API returned HTTP {response.status_code}")

    try:
        body = response.json()
    except ValueError as e:
        raise TransientFetchFailure(f"Forecast API returned invalid JSON: {e}") from e

    result = body.get("result") if isinstance(body, dict) else None
    if not isinstance(result, dict):
        raise TransientFetchFailure("Forecast response has no 'result' object")
    return result


def _parse_timestamp(key: str, tz: ZoneInfo) -> datetime:
    return datetime.fromisoformat(key.replace(" ", "T")).replace(tzinfo=tz)


def parse_forecast(result: dict[str, Any], provenance: Provenance, tz: ZoneInfo) -> Forecast:
    """Turn a forecast `result` into sorted points and daily totals.

    Only timestamps present in both `watts` and `watt_hours` become points.
    """
    watts = result.get("watts") or {}
    watt_hours = result.get("watt_hours") or {}

    points = [
        ForecastPoint(
            date=_parse_timestamp(key, tz),
            watts=Watts(watts[key]),
            watt_hours=WattHours(watt_hours[key]),
        )
        for key in watts
        if key in watt_hours
    ]
    days = [
        ForecastDay(date=_parse_timestamp(key, tz), watt_hours=WattHours(value))
        for key, value in (result.get("watt_hours_day") or {}).items()
    ]

    return Forecast(
        points=sorted(points, key=lambda p: p.date),
        days=sorted(days, key=lambda d: d.date),
        provenance=provenance,
        raw=result,
    )
