"""TimelineEntry: one submitted fact on the timeline.

The canonical column layout is the 16-column schema:

    date, year, description, description2..description6,
    link, link2..link6, imagePath, quarter

Field names follow Python conventions; aliases carry the CSV header / JSON
names used by the web form (`imagePath`). Every field is a plain string and
absent values are normalised to `""`, which is also what a short CSV row
decodes to.

`image_path` and `quarter` are filled in by the submission service. A value the
caller sends for either is overwritten.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

CANONICAL_COLUMNS: tuple[str, ...] = (
    "date",
    "year",
    "description",
    "description2",
    "description3",
    "description4",
    "description5",
    "description6",
    "link",
    "link2",
    "link3",
    "link4",
    "link5",
    "link6",
    "imagePath",
    "quarter",
)

# Header names seen in older layouts of the stored file.
COLUMN_ALIASES: dict[str, str] = {"image": "imagePath"}


class TimelineEntry(BaseModel):
    """A single timeline row."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    date: str = Field(default="", description="Free-form date label, e.g. 'Mar 30'.")
    year: str = ""
    description: str = ""
    description2: str = ""
    description3: str = ""
    description4: str = ""
    description5: str = ""
    description6: str = ""
    link: str = ""
    link2: str = ""
    link3: str = ""
    link4: str = ""
    link5: str = ""
    link6: str = ""
    image_path: str = Field(default="", alias="imagePath")
    quarter: str = Field(default="", description="Derived 'YYYY-Q#' label.")
    position: str = Field(default="", description="Layout hint from the earliest schema.")

    @field_validator("*", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        # JSON forms send numbers for `year` and null for blanks.
        if value is None:
            return ""
        return str(value)

    def columns(self) -> dict[str, str]:
        """Return a header-name -> value mapping for CSV encoding."""
        values = self.model_dump(by_alias=True)
        for legacy, canonical in COLUMN_ALIASES.items():
            values.setdefault(legacy, values[canonical])
        return values

    @classmethod
    def from_columns(cls, header: list[str], fields: list[str]) -> TimelineEntry:
        """Build an entry from one split CSV row, padding short rows with `""`."""
        data: dict[str, str] = {}
        for index, name in enumerate(header):
            key = COLUMN_ALIASES.get(name.strip(), name.strip())
            data[key] = fields[index] if index < len(fields) else ""
        return cls.model_validate(data)

    @property
    def title_fragment(self) -> str:
        """First 20 characters of the primary description, used in image filenames."""
        return self.description[:20]


__all__ = ["CANONICAL_COLUMNS", "COLUMN_ALIASES", "TimelineEntry"]
