"""Error taxonomy shared by the store, the submission service and the API.

Every failure a caller can observe is a `TimelineError` subclass. Each class
carries a stable `kind` label and the HTTP status the API maps it to, so the
exception handlers in `timeledger.api.app` stay a single lookup.

- `ValidationError`: missing or malformed input; raised before any side effect.
- `AuthError`: bad or absent shared-secret credential.
- `NotFoundError`: the requested path does not exist in the repository.
- `ConflictError`: the write carried a stale revision token.
- `UpstreamError`: the hosting platform was unreachable or refused the call.
- `CodecError`: image decoding or transcoding failed.
"""

from __future__ import annotations


class TimelineError(Exception):
    """Base class for every error surfaced by timeledger."""

    kind: str = "error"
    status_code: int = 500

    def __init__(self, message: str, *, path: str | None = None, step: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.path = path
        self.step = step

    def context(self) -> str:
        """Return a short `step=... path=...` suffix for log lines."""
        parts = []
        if self.step:
            parts.append(f"step={self.step}")
        if self.path:
            parts.append(f"path={self.path}")
        return " ".join(parts)


class ValidationError(TimelineError):
    kind = "validation"
    status_code = 400


class AuthError(TimelineError):
    kind = "auth"
    status_code = 401


class NotFoundError(TimelineError):
    kind = "not_found"
    status_code = 404


class ConflictError(TimelineError):
    """The stored revision moved on between read and write."""

    kind = "conflict"
    status_code = 409


class UpstreamError(TimelineError):
    kind = "upstream"
    status_code = 502

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        step: str | None = None,
        upstream_status: int | None = None,
    ) -> None:
        super().__init__(message, path=path, step=step)
        self.upstream_status = upstream_status


class CodecError(TimelineError):
    kind = "codec"
    status_code = 500


__all__ = [
    "TimelineError",
    "ValidationError",
    "AuthError",
    "NotFoundError",
    "ConflictError",
    "UpstreamError",
    "CodecError",
]
