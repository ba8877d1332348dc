"""Maintenance passes over the stored tabular file.

`backfill_quarters` labels rows written before the `quarter` column existed.
It edits lines in place with the same naive comma split the reader uses, so
rows it does not need to touch are left byte-for-byte unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass

from timeledger.core.csv_codec import escape_field, header_line, parse_header
from timeledger.core.errors import ValidationError
from timeledger.core.quarter import Clock, quarter_from_label, utc_today
from timeledger.core.settings import Settings, get_logger
from timeledger.storage.base import ContentStore

logger = get_logger(__name__)


@dataclass(slots=True)
class BackfillReport:
    text: str
    updated_rows: int
    total_rows: int


def backfill_quarters(text: str, clock: Clock = utc_today) -> BackfillReport:
    """Fill the `quarter` field of every data row that has none.

    A header without a `quarter` column gets one appended.
    """
    header = parse_header(text)
    if not header:
        return BackfillReport(text=text, updated_rows=0, total_rows=0)

    lines = text.splitlines()
    if "quarter" not in header:
        header.append("quarter")
        lines[0] = header_line(header)
    q_index = header.index("quarter")
    date_index = header.index("date") if "date" in header else 0
    year_index = header.index("year") if "year" in header else None

    updated = total = 0
    for i in range(1, len(lines)):
        line = lines[i]
        if not line.strip():
            continue
        total += 1
        fields = line.split(",")
        if q_index < len(fields) and fields[q_index].strip():
            continue
        date_text = fields[date_index].replace('"', "").strip() if date_index < len(fields) else ""
        year_text = fields[year_index] if year_index is not None and year_index < len(fields) else ""
        fields.extend([""] * (q_index + 1 - len(fields)))
        fields[q_index] = escape_field(quarter_from_label(date_text, year_text, clock))
        lines[i] = ",".join(fields)
        updated += 1

    trailing = "\n" if text.endswith(("\n", "\r")) else ""
    return BackfillReport(text="\n".join(lines) + trailing, updated_rows=updated, total_rows=total)


async def backfill_stored_quarters(
    settings: Settings, store: ContentStore, clock: Clock = utc_today
) -> BackfillReport:
    """Run :func:`backfill_quarters` against the stored CSV and commit the result."""
    current = await store.get(settings.csv_path)
    report = backfill_quarters(current.text(), clock)
    if report.total_rows == 0 and not report.text:
        raise ValidationError(f"{settings.csv_path} is empty", path=settings.csv_path, step="backfill")
    if report.updated_rows:
        await store.put(
            settings.csv_path,
            report.text.encode("utf-8"),
            f"Backfill quarter for {report.updated_rows} timeline entries",
            current.revision,
        )
        logger.info("Backfilled quarter on %d/%d rows", report.updated_rows, report.total_rows)
    else:
        logger.info("All %d rows already carry a quarter", report.total_rows)
    return report


__all__ = ["BackfillReport", "backfill_quarters", "backfill_stored_quarters"]
