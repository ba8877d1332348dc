"""
Entry Submission Service.

Orchestrates one form submission against the content store. Nothing is kept
between requests; every submission re-reads the tabular file.

State machine
-------------
1. **Validate**: `date` and `description` are mandatory. Fails before any write.
2. **Store image** (optional): decode, transcode, commit under the images
   collection, and set `entry.image_path` to the public URL.
3. **Append row**: read the CSV (absent file = empty baseline), stamp the
   current quarter, append the encoded row, write back with the revision read
   in this same step. A `ConflictError` re-runs this step up to
   `append_retries` more times. The image step is never repeated.
4. **Respond**: `SubmissionResult` with the final image URL.

A stored image is not removed if step 3 fails. The orphaned path is logged.
"""

from __future__ import annotations

from dataclasses import dataclass

from timeledger.core.contracts.entry import TimelineEntry
from timeledger.core.csv_codec import append_row, decode
from timeledger.core.errors import ConflictError, TimelineError, ValidationError
from timeledger.core.quarter import Clock, current_quarter, utc_today
from timeledger.core.settings import Settings, get_logger
from timeledger.services.images import DecodedImage, ImageStore, StoredImage, decode_data_url
from timeledger.storage.base import ContentStore, get_or_empty

logger = get_logger(__name__)

REQUIRED_FIELDS = ("date", "description")


@dataclass(slots=True)
class SubmissionResult:
    success: bool
    message: str
    image_path: str | None = None
    attempts: int = 1


def validate_entry(entry: TimelineEntry | None) -> TimelineEntry:
    """Raise `ValidationError` unless `entry` carries the mandatory fields."""
    if entry is None:
        raise ValidationError("Missing entry data", step="validate")
    missing = [name for name in REQUIRED_FIELDS if not getattr(entry, name).strip()]
    if missing:
        raise ValidationError(
            f"Missing required entry fields: {', '.join(missing)}", step="validate"
        )
    return entry


class SubmissionService:
    """Append timeline entries (and their images) to the hosted dataset.

    Parameters
    ----------
    settings:
        Paths, image policy and retry budget.
    store:
        The content store every read and write goes through.
    clock:
        Source of "today" for the derived quarter; injectable for tests.
    """

    def __init__(self, settings: Settings, store: ContentStore, clock: Clock = utc_today) -> None:
        self._settings = settings
        self._store = store
        self._clock = clock
        self._images = ImageStore(settings, store)

    @property
    def store(self) -> ContentStore:
        return self._store

    async def submit(
        self,
        entry: TimelineEntry | None,
        image_data: str | None = None,
        filename: str | None = None,
    ) -> SubmissionResult:
        """Run the full submission state machine for one entry."""
        entry = validate_entry(entry)
        image = decode_data_url(image_data, filename) if image_data else None

        stored: StoredImage | None = None
        if image is not None:
            stored = await self.store_image(image, entry)
            entry = entry.model_copy(update={"image_path": stored.url})
        else:
            entry = entry.model_copy(update={"image_path": ""})

        try:
            attempts = await self.append_entry(entry)
        except TimelineError:
            if stored is not None:
                logger.error("CSV append failed; image %s is now orphaned", stored.path)
            raise

        return SubmissionResult(
            success=True,
            message="Entry submitted successfully",
            image_path=stored.url if stored else None,
            attempts=attempts,
        )

    async def store_image(self, image: DecodedImage, entry: TimelineEntry) -> StoredImage:
        try:
            return await self._images.store(image, date=entry.date, title=entry.title_fragment)
        except TimelineError as exc:
            logger.error("Image store failed (%s): %s", exc.context() or "step=image", exc)
            raise

    async def upload_image(self, image_data: str, filename: str | None, date: str, title: str) -> StoredImage:
        """Store an image on its own, without touching the tabular file."""
        image = decode_data_url(image_data, filename)
        return await self._images.store(image, date=date, title=title)

    async def append_entry(self, entry: TimelineEntry) -> int:
        """Read-modify-write the CSV; return the number of attempts used."""
        path = self._settings.csv_path
        max_attempts = 1 + self._settings.append_retries
        entry = entry.model_copy(update={"quarter": current_quarter(self._clock)})

        for attempt in range(1, max_attempts + 1):
            baseline = await get_or_empty(self._store, path)
            updated = append_row(baseline.text(), entry)
            try:
                await self._store.put(
                    path,
                    updated.encode("utf-8"),
                    f"Add timeline entry: {entry.date}",
                    baseline.revision,
                )
            except ConflictError:
                if attempt == max_attempts:
                    logger.error(
                        "Giving up on %s after %d conflicting attempt(s)", path, attempt
                    )
                    raise
                logger.warning("Conflict appending to %s (attempt %d/%d), retrying", path, attempt, max_attempts)
                continue
            except TimelineError as exc:
                logger.error("CSV append failed (%s): %s", exc.context() or f"path={path}", exc)
                raise
            return attempt
        raise AssertionError("unreachable")  # pragma: no cover

    async def list_entries(self) -> list[TimelineEntry]:
        """Decode the current tabular file (empty list if it does not exist yet)."""
        baseline = await get_or_empty(self._store, self._settings.csv_path)
        return list(decode(baseline.text()))


__all__ = ["REQUIRED_FIELDS", "SubmissionResult", "SubmissionService", "validate_entry"]
