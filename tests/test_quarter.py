"""Quarter derivation: current-date labels and labels parsed from stored date text."""

from __future__ import annotations

from datetime import date

import pytest

from timeledger.core.quarter import (
    current_quarter,
    month_from_label,
    quarter_from_label,
    quarter_of,
)


@pytest.mark.parametrize(  # type: ignore[misc]
    ("month", "quarter"), [(1, 1), (3, 1), (4, 2), (6, 2), (7, 3), (9, 3), (10, 4), (12, 4)]
)
def test_quarter_of_month_boundaries(month: int, quarter: int) -> None:
    assert quarter_of(month) == quarter


def test_quarter_of_rejects_invalid_month() -> None:
    with pytest.raises(ValueError):
        quarter_of(13)


def test_current_quarter_uses_clock() -> None:
    assert current_quarter(lambda: date(2025, 8, 1)) == "2025-Q3"


def test_month_from_label_variants() -> None:
    assert month_from_label("Mar 30") == 3
    assert month_from_label("30 Mar") == 3
    assert month_from_label("März 4") == 3
    assert month_from_label("Okt. 12") == 10
    assert month_from_label("11") == 11
    assert month_from_label("sometime") is None


def test_quarter_from_label_uses_year_column_or_current_year() -> None:
    clock = lambda: date(2026, 5, 2)  # noqa: E731
    assert quarter_from_label("Dec 24", "2024", clock) == "2024-Q4"
    assert quarter_from_label("Jan 20", "", clock) == "2026-Q1"
    assert quarter_from_label("unknown", "", clock) == "2026-Q2"
