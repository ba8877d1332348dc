"""StoredFile: a named blob inside the hosted repository at a fixed branch."""

from __future__ import annotations

from dataclasses import dataclass

from timeledger.core.errors import UpstreamError


@dataclass(frozen=True, slots=True)
class StoredFile:
    """Bytes of one repository path plus the revision token they were read at.

    `revision` is the hosting platform's content SHA. `None` means the path does
    not exist yet, so the next write creates it instead of replacing it.
    """

    path: str
    content: bytes
    revision: str | None = None

    @classmethod
    def empty(cls, path: str) -> StoredFile:
        """Baseline used when a path is absent: no bytes, no revision."""
        return cls(path=path, content=b"", revision=None)

    @property
    def exists(self) -> bool:
        return self.revision is not None

    def text(self) -> str:
        """Decode the content as UTF-8, dropping a leading byte-order mark."""
        try:
            return self.content.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise UpstreamError(
                f"{self.path} is not valid UTF-8 text", path=self.path, step="decode"
            ) from exc


__all__ = ["StoredFile"]
