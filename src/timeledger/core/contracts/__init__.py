"""Data contracts: the timeline entry schema and the stored-file envelope."""

from __future__ import annotations

from .entry import CANONICAL_COLUMNS, TimelineEntry
from .stored_file import StoredFile

__all__ = ["CANONICAL_COLUMNS", "StoredFile", "TimelineEntry"]
