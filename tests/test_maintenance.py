"""Quarter backfill for rows written before the quarter column existed."""

from __future__ import annotations

import asyncio
from datetime import date

import pytest
from conftest import make_settings

from timeledger.core.errors import NotFoundError
from timeledger.services.maintenance import backfill_quarters, backfill_stored_quarters
from timeledger.storage.memory import InMemoryContentStore


def clock() -> date:
    return date(2025, 11, 2)


def test_backfill_adds_column_and_labels_rows() -> None:
    text = "date,year,description\nMar 30,2024,First\n5 Okt,,Second\n"
    report = backfill_quarters(text, clock)
    assert report.updated_rows == 2
    assert report.text == (
        "date,year,description,quarter\nMar 30,2024,First,2024-Q1\n5 Okt,,Second,2025-Q4\n"
    )


def test_backfill_leaves_labelled_rows_untouched() -> None:
    text = 'date,year,description,quarter\n"Jan 2",2025,"a, b",2025-Q1\nJun 1,2025,c,\n'
    report = backfill_quarters(text, clock)
    lines = report.text.splitlines()
    assert lines[1] == '"Jan 2",2025,"a, b",2025-Q1'
    assert lines[2] == "Jun 1,2025,c,2025-Q2"
    assert (report.updated_rows, report.total_rows) == (1, 2)


def test_backfill_empty_text() -> None:
    assert backfill_quarters("", clock).updated_rows == 0


def test_backfill_stored_commits_once() -> None:
    store = InMemoryContentStore(files={"timeline-data.csv": b"date,description\nFeb 1,x\n"})
    report = asyncio.run(backfill_stored_quarters(make_settings(), store, clock))
    assert report.updated_rows == 1
    assert len(store.commits) == 1
    assert asyncio.run(store.get("timeline-data.csv")).text().endswith("Feb 1,x,2025-Q1\n")

    again = asyncio.run(backfill_stored_quarters(make_settings(), store, clock))
    assert again.updated_rows == 0
    assert len(store.commits) == 1


def test_backfill_stored_requires_existing_file() -> None:
    with pytest.raises(NotFoundError):
        asyncio.run(backfill_stored_quarters(make_settings(), InMemoryContentStore(), clock))
