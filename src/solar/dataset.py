"""The persisted production dataset: a pretty-printed JSON file {"stats": [...]}."""

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Iterable

from .errors import PersistError
from .models import RawDailyRecord

logger = logging.getLogger(__name__)


def parse_dataset(text: str) -> list[RawDailyRecord]:
    data = json.loads(text)
    return [RawDailyRecord.from_api(s) for s in data.get("stats", [])]


def dump_dataset(records: Iterable[RawDailyRecord]) -> str:
    return json.dumps({"stats": [r.to_api() for r in records]}, indent=4)


def read_dataset(path: Path) -> list[RawDailyRecord]:
    """Read every record from the dataset file; a missing file is an empty dataset."""
    if not path.exists():
        return []
    return parse_dataset(path.read_text(encoding="utf-8"))


def write_dataset(path: Path, records: Iterable[RawDailyRecord]) -> None:
    """Rewrite the whole dataset file atomically.

    The new content goes to a temporary file in the same directory which
    then replaces the old file, so a failed write leaves it untouched.
    """
    text = dump_dataset(records)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
    except OSError as e:
        raise PersistError(f"Could not write dataset {path}: {e}") from e


def merge_records(
    existing: Iterable[RawDailyRecord], incoming: Iterable[RawDailyRecord]
) -> list[RawDailyRecord]:
    """Upsert incoming records by start time and drop records without data.

    Existing records keep their position when replaced; new start times are
    appended in the order they arrive.
    """
    merged: dict[int, RawDailyRecord] = {}
    for record in existing:
        merged.setdefault(record.start_time, record)
    for record in incoming:
        merged[record.start_time] = record
    return [r for r in merged.values() if r.has_data]


async def load_dataset(path: Path) -> list[RawDailyRecord]:
    return await asyncio.to_thread(read_dataset, path)


async def save_dataset(path: Path, records: list[RawDailyRecord]) -> None:
    await asyncio.to_thread(write_dataset, path, records)
    logger.debug(f"Wrote {len(records)} records to {path}")
