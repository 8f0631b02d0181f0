"""Enphase Enlighten public-system production collector.

Fetches 15-minute daily production for a public system:
GET {base}/{system_id}/daily_energy?start_date=YYYY-MM-DD&end_date=YYYY-MM-DD
returns {"stats": [{"production": [96 x Wh|null], "start_time": epoch}, ...]}.
"""

import json
import logging
from datetime import date
from typing import Any
from urllib.parse import quote, urlencode

import httpx

from ..config import Settings
from ..errors import TransientFetchFailure
from ..models import RawDailyRecord

logger = logging.getLogger(__name__)


def build_url(settings: Settings, start_date: date, end_date: date | None = None) -> str:
    """Daily-energy URL for a date range, routed through the proxy if one is set."""
    params = {"start_date": start_date.isoformat()}
    if end_date is not None:
        params["end_date"] = end_date.isoformat()
    url = f"{settings.enlighten_url.rstrip('/')}/{settings.system_id}/daily_energy?{urlencode(params)}"
    if settings.proxy_url:
        return settings.proxy_url + quote(url, safe="")
    return url


def parse_stats(data: Any) -> list[RawDailyRecord]:
    """Parse a daily_energy body (or a proxy envelope around one) into records."""
    # Pass-through proxies wrap the upstream body as a JSON string
    if isinstance(data, dict) and isinstance(data.get("contents"), str):
        try:
            data = json.loads(data["contents"])
        except ValueError as e:
            raise TransientFetchFailure(f"Unreadable proxied body: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get("stats"), list):
        raise TransientFetchFailure("Production response has no 'stats' list")

    return [RawDailyRecord.from_api(s) for s in data["stats"]]


async def fetch_daily_energy(
    settings: Settings,
    start_date: date,
    end_date: date | None = None,
    client: httpx.AsyncClient | None = None,
) -> list[RawDailyRecord]:
    """Fetch production records for a date range (inclusive).

    Raises TransientFetchFailure on any transport, status or parse error.
    """
    url = build_url(settings, start_date, end_date)
    logger.debug(f"Fetching production {start_date} → {end_date or 'today'}")

    try:
        if client is None:
            async with httpx.AsyncClient(timeout=settings.http_timeout) as own_client:
                response = await own_client.get(url)
        else:
            response = await client.get(url, timeout=settings.http_timeout)
    except httpx.HTTPError as e:
        raise TransientFetchFailure(f"Network error fetching production: {e}") from e

    if response.status_code != 200:
        raise TransientFetchFailure(f"Production API returned HTTP {response.status_code}")

    try:
        data = response.json()
    except ValueError as e:
        raise TransientFetchFailure(f"Production API returned invalid JSON: {e}") from e

    return parse_stats(data)
