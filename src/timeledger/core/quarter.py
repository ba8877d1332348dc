"""Calendar-quarter labels stored in the denormalized `quarter` column.

The canonical label is `"YYYY-Q#"`. New rows take it from the submission date
(`current_quarter`). Older rows that predate the column are labelled from their
free-form date text (`quarter_from_label`), which accepts "Mar 30", "30 Mar",
numeric months and the German spellings found in the historical data.
"""

from __future__ import annotations

import math
from collections.abc import Callable
from datetime import UTC, date, datetime

Clock = Callable[[], date]

_MONTHS: dict[str, int] = {
    "jan": 1,
    "feb": 2,
    "mar": 3,
    "mär": 3,
    "apr": 4,
    "may": 5,
    "mai": 5,
    "jun": 6,
    "jul": 7,
    "aug": 8,
    "sep": 9,
    "oct": 10,
    "okt": 10,
    "nov": 11,
    "dec": 12,
    "dez": 12,
}


def utc_today() -> date:
    return datetime.now(UTC).date()


def quarter_of(month: int) -> int:
    """Return 1..4 for a month number 1..12."""
    if not 1 <= month <= 12:
        raise ValueError(f"month out of range: {month}")
    return math.ceil(month / 3)


def format_quarter(year: int, month: int) -> str:
    return f"{year}-Q{quarter_of(month)}"


def current_quarter(clock: Clock = utc_today) -> str:
    """Label for the quarter containing `clock()`."""
    today = clock()
    return format_quarter(today.year, today.month)


def month_from_label(label: str) -> int | None:
    """Best-effort month number from free-form date text, or None."""
    for token in label.replace('"', " ").replace(".", " ").split():
        if token.isdigit():
            continue
        month = _MONTHS.get(token.lower()[:3])
        if month is not None:
            return month
    tokens = label.split()
    if len(tokens) == 1 and tokens[0].isdigit() and 1 <= int(tokens[0]) <= 12:
        return int(tokens[0])
    return None


def quarter_from_label(label: str, year: str = "", clock: Clock = utc_today) -> str:
    """Quarter label for a stored row's `date` text and optional `year` column.

    An unparseable date falls back to the current month, and a missing or
    non-numeric year to the current year.
    """
    today = clock()
    month = month_from_label(label) or today.month
    year_text = year.strip().strip('"')
    year_value = int(year_text) if year_text.isdigit() else today.year
    return format_quarter(year_value, month)


__all__ = [
    "Clock",
    "current_quarter",
    "format_quarter",
    "month_from_label",
    "quarter_from_label",
    "quarter_of",
    "utc_today",
]
