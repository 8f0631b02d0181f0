"""Periodic job that merges today's upstream production into the persisted dataset."""

import asyncio
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Awaitable, Callable, Protocol

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from .collectors import enlighten
from .config import Settings
from .dataset import load_dataset, merge_records, save_dataset
from .errors import PersistError, TransientFetchFailure
from .models import RawDailyRecord

logger = logging.getLogger(__name__)

JOB_ID = "merge_dataset"


class Committer(Protocol):
    async def commit(self, path: Path, when: datetime | None = None) -> bool: ...


class MergeJob:
    """Load → fetch today → upsert → prune → write → commit.

    Each run does the full cycle against the file on disk and holds no
    state between runs.
    """

    def __init__(
        self,
        settings: Settings,
        committer: Committer | None = None,
        fetch: Callable[[date], Awaitable[list[RawDailyRecord]]] | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.settings = settings
        self.committer = committer
        self.fetch = fetch or self._fetch_upstream
        self.clock = clock or (lambda: datetime.now(settings.tz))

    async def _fetch_upstream(self, day: date) -> list[RawDailyRecord]:
        return await enlighten.fetch_daily_energy(self.settings, day, day)

    async def run_once(self) -> dict:
        """Run one merge cycle.

        Returns dict with 'status' ('updated', 'skipped' or 'failed') and
        'records', 'replaced', 'added' and 'pruned' counts.
        """
        now = self.clock()
        path = self.settings.dataset_path
        logger.info(f"Updating {path} at {now.isoformat(timespec='seconds')}")
        result = {"status": "skipped", "records": 0, "replaced": 0, "added": 0, "pruned": 0}

        try:
            existing = await load_dataset(path)
        except (OSError, ValueError) as e:
            logger.error(f"Could not read dataset {path}: {e}")
            result["status"] = "failed"
            return result

        try:
            incoming = await self.fetch(now.date())
        except TransientFetchFailure as e:
            logger.warning(f"Skipping update, upstream fetch failed: {e}")
            return result

        merged = merge_records(existing, incoming)
        existing_keys = {r.start_time for r in existing}
        incoming_keys = {r.start_time for r in incoming}
        result.update(
            records=len(merged),
            replaced=len(incoming_keys & existing_keys),
            added=len(incoming_keys - existing_keys),
        )
        result["pruned"] = len(existing_keys) + result["added"] - len(merged)

        try:
            await save_dataset(path, merged)
            if self.committer is not None:
                await self.committer.commit(path, now)
        except PersistError as e:
            logger.error(f"Update failed, will retry next run: {e}")
            result["status"] = "failed"
            return result

        result["status"] = "updated"
        logger.info(
            f"Dataset has {result['records']} days "
            f"({result['replaced']} replaced, {result['added']} added, {result['pruned']} pruned)"
        )
        return result


def create_scheduler(job: MergeJob, minutes: int) -> AsyncIOScheduler:
    """Scheduler running the job now and then every `minutes`."""
    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        job.run_once,
        IntervalTrigger(minutes=minutes),
        id=JOB_ID,
        next_run_time=datetime.now(),
        max_instances=1,
        coalesce=True,
    )
    return scheduler


async def run_forever(job: MergeJob, minutes: int) -> None:
    scheduler = create_scheduler(job, minutes)
    scheduler.start()
    logger.info(f"Merge job scheduled every {minutes} minutes")
    try:
        await asyncio.Event().wait()
    finally:
        scheduler.shutdown(wait=False)
