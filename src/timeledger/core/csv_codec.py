"""CSV row codec for the timeline tabular file.

The stored file is plain text: a header row whose column names are
authoritative, followed by one line per entry.

Encoding
--------
`encode_row(entry, header)` renders one field per header column, in header
order, so the file's header may be reordered or extended without code changes.
Fields go through `escape_field`: line breaks become a single space, and values
containing `,` or `"` are wrapped in double quotes with inner quotes doubled.

Decoding
--------
`decode(text)` is deliberately NOT quote-aware. Each data line is split on
every literal comma, so a field that was quoted on write because it contained a
comma comes back split in two. Existing stored files were produced and consumed
this way by the timeline front end, and the reader here stays compatible with
them. Tests pin this asymmetry so a change to it is a conscious migration.

Example
-------
>>> escape_field('say "hi", then leave')
'"say ""hi"", then leave"'
>>> encode_row(TimelineEntry(date="Mar 30", description="Test"), ["date", "description", "link"])
'Mar 30,Test,'
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Sequence

from timeledger.core.contracts.entry import CANONICAL_COLUMNS, TimelineEntry

_LINE_BREAK = re.compile(r"\r\n|\r|\n")
_BOM = "\ufeff"


def escape_field(value: str | None) -> str:
    """Return `value` made safe for one CSV field."""
    if not value:
        return ""
    sanitized = _LINE_BREAK.sub(" ", value)
    if "," in sanitized or '"' in sanitized:
        return '"' + sanitized.replace('"', '""') + '"'
    return sanitized


def parse_header(text: str) -> list[str]:
    """Return the column names from the first line of `text` (empty if none)."""
    first = next(iter(text.splitlines()), "").lstrip(_BOM)
    if not first.strip():
        return []
    return [name.strip() for name in first.split(",")]


def encode_row(entry: TimelineEntry, header: Sequence[str] | None = None) -> str:
    """Render `entry` as one CSV line following `header`.

    Parameters
    ----------
    entry:
        The entry to render.
    header:
        Column names in file order. Columns the entry does not know become
        empty fields. Defaults to `CANONICAL_COLUMNS`.
    """
    columns = entry.columns()
    names = header if header else CANONICAL_COLUMNS
    return ",".join(escape_field(columns.get(name.strip(), "")) for name in names)


def header_line(header: Sequence[str] = CANONICAL_COLUMNS) -> str:
    return ",".join(header)


def append_row(text: str, entry: TimelineEntry) -> str:
    """Return `text` with `entry` appended as a new last line.

    An empty file gets the canonical header first. The result always ends with
    a single newline.
    """
    header = parse_header(text)
    if not header:
        header = list(CANONICAL_COLUMNS)
        text = header_line(header)
    body = text.rstrip("\r\n")
    return f"{body}\n{encode_row(entry, header)}\n"


class EntrySequence:
    """Lazy, restartable view of the entries in already-loaded CSV text.

    Each iteration re-walks the text; nothing is cached between passes.
    """

    def __init__(self, text: str) -> None:
        self._text = text

    @property
    def header(self) -> list[str]:
        return parse_header(self._text)

    def __iter__(self) -> Iterator[TimelineEntry]:
        lines = iter(self._text.splitlines())
        first = next(lines, None)
        if first is None:
            return
        header = [name.strip() for name in first.lstrip(_BOM).split(",")]
        for line in lines:
            if not line.strip():
                continue
            yield TimelineEntry.from_columns(header, line.split(","))


def decode(text: str) -> EntrySequence:
    """Decode CSV text into entries (first line is the header, blank lines skipped)."""
    return EntrySequence(text)


__all__ = ["EntrySequence", "append_row", "decode", "encode_row", "escape_field", "parse_header"]
