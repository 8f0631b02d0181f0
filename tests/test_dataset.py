"""Tests for the persisted dataset file and record merging."""
import json
from datetime import date
from unittest.mock import patch

import pytest

from solar.dataset import dump_dataset, merge_records, read_dataset, write_dataset
from solar.errors import PersistError


def test_replaces_matching_and_appends_new(make_record):
    d1 = make_record(date(2024, 7, 8), fill=1)
    d2_old = make_record(date(2024, 7, 9), fill=2)
    d2_new = make_record(date(2024, 7, 9), fill=5)
    d3 = make_record(date(2024, 7, 10), fill=3)

    merged = merge_records([d1, d2_old], [d2_new, d3])
    assert merged == [d1, d2_new, d3]


def test_two_runs_grow_by_one(make_record):
    """A run with one updated day and one new day adds exactly one record."""
    previous = [make_record(date(2024, 7, d), fill=d) for d in (6, 7, 8)]
    updated = make_record(date(2024, 7, 8), fill=99)
    new = make_record(date(2024, 7, 9), fill=1)

    merged = merge_records(previous, [updated, new])
    assert len(merged) == len(previous) + 1
    assert merged[2].samples == updated.samples
    assert len({r.start_time for r in merged}) == len(merged)


def test_merge_is_idempotent(make_record):
    existing = [make_record(date(2024, 7, 8), fill=1)]
    incoming = [make_record(date(2024, 7, 8), fill=4), make_record(date(2024, 7, 9), fill=2)]
    once = merge_records(existing, incoming)
    assert merge_records(once, incoming) == once


def test_prunes_records_without_data(make_record):
    stale = make_record(date(2024, 7, 7), fill=None)
    kept = make_record(date(2024, 7, 8), fill=1)
    emptied = make_record(date(2024, 7, 9), fill=None)
    before = make_record(date(2024, 7, 9), fill=3)

    merged = merge_records([stale, kept, before], [emptied])
    assert merged == [kept]


def test_duplicate_keys_collapse(make_record):
    a = make_record(date(2024, 7, 8), fill=1)
    b = make_record(date(2024, 7, 8), fill=2)
    assert merge_records([a, b], []) == [a]


def test_write_and_read(tmp_path, make_record):
    path = tmp_path / "public" / "data.json"
    samples = [None] * 95 + [12]
    records = [make_record(date(2024, 7, 8), samples)]
    write_dataset(path, records)

    data = json.loads(path.read_text())
    assert data["stats"][0]["production"][-1] == 12
    assert data["stats"][0]["production"][0] is None
    assert path.read_text() == dump_dataset(records)
    assert '\n    "stats"' in path.read_text()
    assert read_dataset(path) == records


def test_missing_file_is_empty(tmp_path):
    assert read_dataset(tmp_path / "data.json") == []


def test_failed_write_leaves_file_untouched(tmp_path, make_record):
    path = tmp_path / "data.json"
    write_dataset(path, [make_record(date(2024, 7, 8), fill=1)])
    before = path.read_bytes()

    with patch("solar.dataset.os.replace", side_effect=OSError("disk full")):
        with pytest.raises(PersistError, match="disk full"):
            write_dataset(path, [make_record(date(2024, 7, 9), fill=1)])

    assert path.read_bytes() == before
    assert list(tmp_path.iterdir()) == [path]
