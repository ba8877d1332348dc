"""
In-Memory Content Store.

This is a volatile stand-in for the hosted repository, used by demo mode and by
the test-suite. It enforces the same optimistic-concurrency contract as the
real contents API: a write must carry the revision of the file it replaces,
creating requires the path to be absent, and every successful write is
recorded as one commit.

Note on Persistence
-------------------
If the process restarts, everything is lost. Demo deployments accept that.
"""

from __future__ import annotations

import asyncio
import hashlib
from dataclasses import dataclass
from datetime import UTC, datetime

from timeledger.core.contracts.stored_file import StoredFile
from timeledger.core.errors import ConflictError, NotFoundError
from timeledger.core.settings import get_logger

logger = get_logger(__name__)


def blob_sha(content: bytes) -> str:
    """Git blob SHA-1 of `content`, the same token the contents API reports."""
    header = f"blob {len(content)}\0".encode()
    return hashlib.sha1(header + content).hexdigest()


@dataclass(frozen=True, slots=True)
class Commit:
    path: str
    message: str
    revision: str
    created_at: datetime


class InMemoryContentStore:
    """Dictionary-backed `ContentStore` with revision checks."""

    def __init__(self, branch: str = "main", files: dict[str, bytes] | None = None) -> None:
        self.branch = branch
        self._files: dict[str, StoredFile] = {}
        self.commits: list[Commit] = []
        for path, content in (files or {}).items():
            self._files[path] = StoredFile(path=path, content=content, revision=blob_sha(content))

    async def get(self, path: str) -> StoredFile:
        # Yield like a network round-trip so concurrent submissions interleave.
        await asyncio.sleep(0)
        stored = self._files.get(path)
        if stored is None:
            raise NotFoundError(f"{path} not found on {self.branch}", path=path, step="get")
        return stored

    async def put(
        self,
        path: str,
        content: bytes,
        message: str,
        revision: str | None = None,
    ) -> StoredFile:
        await asyncio.sleep(0)
        current = self._files.get(path)
        if current is None and revision is not None:
            raise ConflictError(f"{path} does not exist at revision {revision}", path=path, step="put")
        if current is not None and current.revision != revision:
            raise ConflictError(
                f"{path} is at {current.revision}, not {revision}", path=path, step="put"
            )

        stored = StoredFile(path=path, content=content, revision=blob_sha(content))
        self._files[path] = stored
        self.commits.append(
            Commit(path=path, message=message, revision=stored.revision or "", created_at=datetime.now(UTC))
        )
        logger.debug("memory commit %s: %s", path, message)
        return stored

    def paths(self) -> list[str]:
        return sorted(self._files)

    async def aclose(self) -> None:
        return None


__all__ = ["Commit", "InMemoryContentStore", "blob_sha"]
