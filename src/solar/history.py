"""Production history assembled from a stable bulk window and a mutable recent window.

Both windows are fetched at most once per process: the `RangeCache` holds
the asyncio task for each range, so concurrent callers share one request.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import AsyncIterator, Awaitable, Callable

from .collectors import enlighten
from .config import Settings
from .errors import TransientFetchFailure
from .holidays import HolidayCalendar
from .models import ProductionStat, RateSchedule, RawDailyRecord
from .stats import build_stats

logger = logging.getLogger(__name__)

RangeFetcher = Callable[[date, date | None], Awaitable[list[RawDailyRecord]]]


@dataclass(frozen=True)
class HistoryRange:
    name: str
    start: date
    end: date

    @property
    def is_empty(self) -> bool:
        return self.start > self.end


def history_windows(
    today: date, history_start: date, recent_days: int
) -> tuple[HistoryRange, HistoryRange]:
    """Split [history_start, today] into (recent, bulk); the two never overlap.

    `recent_days` counts the days re-fetched before today, so the recent
    window spans recent_days + 1 calendar days including today.
    """
    recent_start = today - timedelta(days=recent_days)
    recent = HistoryRange("recent", recent_start, today)
    bulk = HistoryRange("bulk", history_start, recent_start - timedelta(days=1))
    return recent, bulk


def _retrieve_outcome(task: asyncio.Task) -> None:
    """Collect the result of a task nobody is waiting on any more."""
    if not task.cancelled() and task.exception() is not None:
        logger.debug(f"Abandoned history fetch failed: {task.exception()}")


class RangeCache:
    """Pending or finished fetches keyed by range, kept for the process lifetime."""

    def __init__(self):
        self._tasks: dict[HistoryRange, asyncio.Task] = {}

    def get(
        self, key: HistoryRange, factory: Callable[[], Awaitable[list[RawDailyRecord]]]
    ) -> asyncio.Task:
        task = self._tasks.get(key)
        if task is None:
            logger.debug(f"Issuing {key.name} fetch {key.start} → {key.end}")
            task = asyncio.ensure_future(factory())
            self._tasks[key] = task
        else:
            logger.debug(f"Sharing {key.name} fetch {key.start} → {key.end}")
        return task

    def __contains__(self, key: HistoryRange) -> bool:
        return key in self._tasks

    def __len__(self) -> int:
        return len(self._tasks)


class HistorySynchronizer:
    """Fetch and merge the two history windows into valued daily stats."""

    def __init__(
        self,
        settings: Settings,
        rates: RateSchedule,
        holidays: HolidayCalendar,
        range_cache: RangeCache | None = None,
        fetch: RangeFetcher | None = None,
        today: date | None = None,
    ):
        self.settings = settings
        self.rates = rates
        self.holidays = holidays
        self.range_cache = range_cache if range_cache is not None else RangeCache()
        self.fetch = fetch or self._fetch_upstream
        self.today = today

    async def _fetch_upstream(self, start: date, end: date | None) -> list[RawDailyRecord]:
        return await enlighten.fetch_daily_energy(self.settings, start, end)

    def windows(self) -> tuple[HistoryRange, HistoryRange]:
        today = self.today or datetime.now(self.settings.tz).date()
        return history_windows(today, self.settings.history_start, self.settings.recent_days)

    async def _fetch_range(self, history_range: HistoryRange) -> list[RawDailyRecord]:
        if history_range.is_empty:
            return []
        try:
            return await self.fetch(history_range.start, history_range.end)
        except TransientFetchFailure as e:
            logger.warning(f"{history_range.name} history fetch failed: {e}")
            return []

    def _task(self, history_range: HistoryRange) -> asyncio.Task:
        return self.range_cache.get(history_range, lambda: self._fetch_range(history_range))

    def _stats(self, records: list[RawDailyRecord]) -> list[ProductionStat]:
        by_start = {r.start_time: r for r in records}
        return build_stats(by_start.values(), self.rates, self.holidays, self.settings.tz)

    async def updates(self) -> AsyncIterator[list[ProductionStat]]:
        """Yield the recent window alone, then bulk + recent once both resolve."""
        recent_range, bulk_range = self.windows()
        recent_task = self._task(recent_range)
        bulk_task = self._task(bulk_range)

        try:
            recent = await recent_task
            yield self._stats(recent)
        except BaseException:
            # failed recent fetch or consumer closed early
            bulk_task.add_done_callback(_retrieve_outcome)
            raise

        bulk = await bulk_task
        yield self._stats(bulk + recent)

    async def history(self) -> list[ProductionStat]:
        """The merged history, skipping the partial result."""
        stats: list[ProductionStat] = []
        async for stats in self.updates():
            pass
        return stats
