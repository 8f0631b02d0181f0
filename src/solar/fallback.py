"""Forecast fetching with an ordered fallback: personal → public → cache.

Each tier is an `Attempt` whose coroutine returns an `AttemptResult` rather
than raising. The runner walks the list in order and stops at the first
success; only an exhausted list is an error.
"""

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable

import httpx

from .collectors import forecast_solar
from .config import Settings
from .db import API_KEY_KEY, FORECAST_KEY, CacheStore
from .errors import NoDataAvailable, TransientFetchFailure
from .models import Forecast, Provenance

logger = logging.getLogger(__name__)


class FetchState(str, Enum):
    TRY_PERSONAL = "try_personal"
    TRY_PUBLIC = "try_public"
    TRY_CACHE = "try_cache"
    RESOLVED = "resolved"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class AttemptResult:
    payload: dict[str, Any] | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.payload is not None


@dataclass(frozen=True)
class Attempt:
    state: FetchState
    provenance: Provenance
    run: Callable[[], Awaitable[AttemptResult]]


class FallbackFetcher:
    """Fetch the forecast payload from the best available source.

    Successful network fetches are written to the cache store so the cache
    tier always holds the last good payload.
    """

    def __init__(
        self,
        settings: Settings,
        cache: CacheStore,
        client: httpx.AsyncClient | None = None,
        api_key: str | None = None,
    ):
        self.settings = settings
        self.cache = cache
        self.client = client
        self.supplied_key = api_key or settings.forecast_api_key
        self.state: FetchState | None = None

    @property
    def api_key(self) -> str | None:
        return self.supplied_key or self.cache.get(API_KEY_KEY)

    def attempts(self, client: httpx.AsyncClient) -> list[Attempt]:
        attempts = []
        api_key = self.api_key
        if api_key:
            personal = forecast_solar.personal_url(self.settings, api_key)
            attempts.append(
                Attempt(
                    FetchState.TRY_PERSONAL,
                    Provenance.PERSONAL,
                    lambda: self._try_http(client, personal),
                )
            )
        public = forecast_solar.public_url(self.settings)
        attempts.append(
            Attempt(FetchState.TRY_PUBLIC, Provenance.PUBLIC, lambda: self._try_http(client, public))
        )
        attempts.append(Attempt(FetchState.TRY_CACHE, Provenance.CACHED, self._try_cache))
        return attempts

    async def _try_http(self, client: httpx.AsyncClient, url: str) -> AttemptResult:
        try:
            payload = await forecast_solar.fetch_estimate(url, client, self.settings.http_timeout)
        except TransientFetchFailure as e:
            return AttemptResult(error=str(e))
        return AttemptResult(payload=payload)

    async def _try_cache(self) -> AttemptResult:
        cached = self.cache.get(FORECAST_KEY)
        if not cached:
            return AttemptResult(error="No cached forecast")
        try:
            payload = json.loads(cached)
        except ValueError as e:
            return AttemptResult(error=f"Cached forecast is unreadable: {e}")
        return AttemptResult(payload=payload)

    async def run(self, attempts: list[Attempt]) -> tuple[dict[str, Any], Provenance]:
        for attempt in attempts:
            self.state = attempt.state
            result = await attempt.run()
            if result.ok:
                self.state = FetchState.RESOLVED
                logger.info(f"Forecast resolved from {attempt.provenance.value} source")
                self._remember(attempt.provenance, result.payload)
                return result.payload, attempt.provenance
            logger.warning(f"{attempt.provenance.value} forecast source failed: {result.error}")

        self.state = FetchState.EXHAUSTED
        raise NoDataAvailable("Couldn't get forecast data from any source")

    def _remember(self, provenance: Provenance, payload: dict[str, Any]) -> None:
        if provenance is Provenance.CACHED:
            return
        self.cache.set(FORECAST_KEY, json.dumps(payload))
        if provenance is Provenance.PERSONAL and self.supplied_key:
            self.cache.set(API_KEY_KEY, self.supplied_key)

    async def fetch(self) -> tuple[dict[str, Any], Provenance]:
        """Return the first usable payload and where it came from.

        Raises NoDataAvailable when every tier, including the cache, fails.
        """
        if self.client is not None:
            return await self.run(self.attempts(self.client))
        async with httpx.AsyncClient(timeout=self.settings.http_timeout) as client:
            return await self.run(self.attempts(client))

    async def fetch_forecast(self) -> Forecast:
        payload, provenance = await self.fetch()
        return forecast_solar.parse_forecast(payload, provenance, self.settings.tz)
