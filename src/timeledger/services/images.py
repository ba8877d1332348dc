"""
Image handling for timeline submissions.

Responsibilities
----------------
- **Decode**: turn the form's data-URL (`data:image/png;base64,...`) into bytes.
- **Name**: build a storage-safe filename `<date>_<title>_<suffix>.<ext>`.
- **Transcode**: re-encode to the configured compact format with Pillow.
- **Store**: commit the blob under the images collection and return its public URL.

Fallback policy
---------------
When transcoding fails and `image_fallback_to_original` is set, the original
bytes are stored under the original extension instead of failing the whole
submission. With the flag off a `CodecError` aborts the submission.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import io
import re
import uuid
from dataclasses import dataclass

from PIL import Image, UnidentifiedImageError

from timeledger.core.errors import CodecError, ValidationError
from timeledger.core.settings import Settings, get_logger
from timeledger.storage.base import ContentStore

logger = get_logger(__name__)

_DATA_URL = re.compile(r"^data:image/(?P<fmt>[\w.+-]+);base64,", re.IGNORECASE)
_UNSAFE = re.compile(r"[^\w]")

# Pillow format name per configured extension.
_PIL_FORMATS = {"webp": "WEBP", "png": "PNG", "jpeg": "JPEG", "jpg": "JPEG", "gif": "GIF"}
_MIME_EXTENSIONS = {"jpeg": "jpg", "svg+xml": "svg", "x-icon": "ico"}


@dataclass(frozen=True, slots=True)
class DecodedImage:
    data: bytes
    extension: str


@dataclass(frozen=True, slots=True)
class StoredImage:
    path: str
    url: str
    filename: str
    transcoded: bool


def clean_for_filename(text: str) -> str:
    """Lower-case `text` and replace every non-word character with `-`."""
    return _UNSAFE.sub("-", text).lower()


def build_filename(date: str, title: str, extension: str, suffix: str | None = None) -> str:
    """Return `<date>_<title>_<suffix>.<ext>` with a random suffix by default."""
    suffix = suffix or uuid.uuid4().hex[:6]
    return f"{clean_for_filename(date)}_{clean_for_filename(title)}_{suffix}.{extension.lower()}"


def decode_data_url(image_data: str, filename: str | None = None) -> DecodedImage:
    """Decode a data-URL (or bare base64) image payload.

    The extension comes from the data-URL media type, else from `filename`,
    else defaults to `png`.
    """
    match = _DATA_URL.match(image_data)
    extension = "png"
    payload = image_data
    if match:
        fmt = match.group("fmt").lower()
        extension = _MIME_EXTENSIONS.get(fmt, fmt)
        payload = image_data[match.end():]
    elif filename and "." in filename:
        extension = filename.rsplit(".", 1)[-1].lower()

    try:
        data = base64.b64decode("".join(payload.split()), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValidationError("imageData is not valid base64", step="image") from exc
    if not data:
        raise ValidationError("imageData is empty", step="image")
    return DecodedImage(data=data, extension=clean_for_filename(extension))


def transcode(data: bytes, image_format: str, quality: int) -> bytes:
    """Re-encode `data` with Pillow; raises `CodecError` on any decode/encode failure."""
    pil_format = _PIL_FORMATS.get(image_format.lower())
    if pil_format is None:
        raise CodecError(f"unsupported image format: {image_format}", step="image")
    try:
        with Image.open(io.BytesIO(data)) as img:
            if pil_format == "JPEG" and img.mode not in ("RGB", "L"):
                img = img.convert("RGB")
            out = io.BytesIO()
            img.save(out, format=pil_format, quality=quality)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as exc:
        raise CodecError(f"image transcoding failed: {exc}", step="image") from exc
    return out.getvalue()


class ImageStore:
    """Stores submitted images in the repository's image collection."""

    def __init__(self, settings: Settings, store: ContentStore) -> None:
        self._settings = settings
        self._store = store

    async def store(
        self,
        image: DecodedImage,
        *,
        date: str,
        title: str,
    ) -> StoredImage:
        """Transcode (with fallback) and commit `image`; return its public URL."""
        settings = self._settings
        data, extension, transcoded = image.data, image.extension, False
        try:
            data = await asyncio.to_thread(
                transcode, image.data, settings.image_format, settings.image_quality
            )
            extension, transcoded = settings.image_format, True
        except CodecError as exc:
            if not settings.image_fallback_to_original:
                logger.error("Image transcoding failed, fallback disabled: %s", exc)
                raise
            logger.warning("Image transcoding failed, storing original .%s: %s", extension, exc)
            data = image.data

        filename = build_filename(date, title, extension)
        path = f"{settings.images_path.strip('/')}/{filename}"
        await self._store.put(path, data, f"Add image: {filename}")
        url = settings.public_url(path)
        logger.info("Stored image %s (%d bytes, transcoded=%s)", path, len(data), transcoded)
        return StoredImage(path=path, url=url, filename=filename, transcoded=transcoded)


__all__ = [
    "DecodedImage",
    "ImageStore",
    "StoredImage",
    "build_filename",
    "clean_for_filename",
    "decode_data_url",
    "transcode",
]
