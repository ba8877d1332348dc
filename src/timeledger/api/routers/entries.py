"""
API Routes for Timeline Entries.

Endpoints
---------
- `POST /api/submit-entry`: Entry plus optional image (data-URL).
- `POST /api/update-csv`: Entry only; any image payload is rejected.
- `POST /api/upload-image`: Store an image without appending a row.
- `GET /api/entries`: Decode the stored tabular file.

Failures are raised as `TimelineError` subclasses and rendered by the
exception handlers registered in `timeledger.api.app`.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response, status

from timeledger.api.schemas import (
    EntriesResponse,
    SubmitRequest,
    SubmitResponse,
    UploadImageRequest,
    UploadImageResponse,
)
from timeledger.core.errors import ValidationError
from timeledger.services.submission import SubmissionService

router = APIRouter(prefix="/api", tags=["Entries"])


def get_service(request: Request) -> SubmissionService:
    """Dependency: the submission service built by the application factory."""
    service: SubmissionService = request.app.state.service
    return service


@router.post(
    "/submit-entry",
    response_model=SubmitResponse,
    summary="Append a timeline entry, optionally with an image",
)
async def submit_entry(
    payload: SubmitRequest,
    service: SubmissionService = Depends(get_service),
) -> SubmitResponse:
    """
    Store the optional image, then append the entry to the tabular file.

    The response's `imagePath` is the public URL of the stored image, or null
    when no image was sent.
    """
    result = await service.submit(payload.entry, payload.image_data, payload.filename)
    return SubmitResponse(success=result.success, image_path=result.image_path, message=result.message)


@router.post("/update-csv", response_model=SubmitResponse, summary="Append a text-only entry")
async def update_csv(
    payload: SubmitRequest,
    service: SubmissionService = Depends(get_service),
) -> SubmitResponse:
    if payload.image_data:
        raise ValidationError("update-csv does not accept images; use /api/submit-entry")
    await service.submit(payload.entry)
    return SubmitResponse(success=True, image_path=None, message="CSV updated successfully")


@router.post("/upload-image", response_model=UploadImageResponse, summary="Store an image only")
async def upload_image(
    payload: UploadImageRequest,
    service: SubmissionService = Depends(get_service),
) -> UploadImageResponse:
    stored = await service.upload_image(
        payload.image_data, payload.filename, payload.date, payload.title
    )
    return UploadImageResponse(url=stored.url)


@router.get("/entries", response_model=EntriesResponse, summary="List stored entries")
async def list_entries(service: SubmissionService = Depends(get_service)) -> EntriesResponse:
    entries = await service.list_entries()
    return EntriesResponse(count=len(entries), entries=entries)


@router.options("/{rest:path}", include_in_schema=False)
async def preflight(rest: str) -> Response:
    """Answer bare OPTIONS probes; real CORS preflights are handled by the middleware."""
    return Response(status_code=status.HTTP_200_OK)


__all__ = ["router"]
