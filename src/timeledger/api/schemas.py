"""
Request/response schemas for the submission API.

JSON field names follow the web form (`imageData`, `imagePath`); the Python
side uses snake_case with aliases. Every response carries an explicit
`success` flag.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from timeledger.core.contracts.entry import TimelineEntry


class _FormModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class SubmitRequest(_FormModel):
    """Body of `POST /api/submit-entry` and `POST /api/update-csv`."""

    entry: TimelineEntry | None = None
    image_data: str | None = Field(
        default=None, alias="imageData", description="data:image/...;base64, payload"
    )
    filename: str | None = Field(default=None, description="Original client-side filename.")


class SubmitResponse(_FormModel):
    success: bool = True
    image_path: str | None = Field(default=None, alias="imagePath")
    message: str


class UploadImageRequest(_FormModel):
    image_data: str = Field(alias="imageData")
    filename: str | None = None
    date: str = ""
    title: str = ""


class UploadImageResponse(_FormModel):
    success: bool = True
    url: str
    message: str = "Image uploaded successfully"


class EntriesResponse(_FormModel):
    success: bool = True
    count: int
    entries: list[TimelineEntry]


class ErrorResponse(_FormModel):
    success: bool = False
    error: str
    kind: str = "error"


__all__ = [
    "EntriesResponse",
    "ErrorResponse",
    "SubmitRequest",
    "SubmitResponse",
    "UploadImageRequest",
    "UploadImageResponse",
]
