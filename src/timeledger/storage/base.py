"""The content store interface shared by every backend."""

from __future__ import annotations

from typing import Protocol

from timeledger.core.contracts.stored_file import StoredFile
from timeledger.core.errors import NotFoundError


class ContentStore(Protocol):
    """Read and revision-guarded write of named files in one repository branch."""

    async def get(self, path: str) -> StoredFile:
        """Return the current bytes and revision of `path`.

        Raises `NotFoundError` if the path does not exist.
        """
        ...

    async def put(
        self,
        path: str,
        content: bytes,
        message: str,
        revision: str | None = None,
    ) -> StoredFile:
        """Create (`revision=None`) or replace `path` and return the new revision.

        Raises `ConflictError` if `revision` is not the current one.
        """
        ...

    async def aclose(self) -> None: ...


async def get_or_empty(store: ContentStore, path: str) -> StoredFile:
    """Like `store.get` but an absent file is an empty baseline with no revision."""
    try:
        return await store.get(path)
    except NotFoundError:
        return StoredFile.empty(path)


__all__ = ["ContentStore", "get_or_empty"]
