"""The in-memory store honours the same revision contract as the hosted repository."""

from __future__ import annotations

import asyncio

import pytest

from timeledger.core.contracts.stored_file import StoredFile
from timeledger.core.errors import ConflictError, NotFoundError, UpstreamError
from timeledger.storage.base import get_or_empty
from timeledger.storage.memory import InMemoryContentStore, blob_sha


def test_blob_sha_matches_git() -> None:
    # `git hash-object` of an empty file
    assert blob_sha(b"") == "e69de29bb2d1d6434b8b29ae775ad8c2e48c5391"


def test_get_missing_raises_not_found() -> None:
    store = InMemoryContentStore()
    with pytest.raises(NotFoundError):
        asyncio.run(store.get("timeline-data.csv"))


def test_get_or_empty_returns_empty_baseline() -> None:
    baseline = asyncio.run(get_or_empty(InMemoryContentStore(), "timeline-data.csv"))
    assert baseline.content == b""
    assert baseline.revision is None
    assert not baseline.exists


def test_put_with_current_revision_then_get_observes_new_content() -> None:
    store = InMemoryContentStore(files={"a.csv": b"v1"})

    async def scenario() -> bytes:
        current = await store.get("a.csv")
        await store.put("a.csv", b"v2", "update", current.revision)
        return (await store.get("a.csv")).content

    assert asyncio.run(scenario()) == b"v2"
    assert [c.message for c in store.commits] == ["update"]


def test_put_with_stale_revision_is_a_conflict() -> None:
    store = InMemoryContentStore(files={"a.csv": b"v1"})

    async def scenario() -> None:
        stale = await store.get("a.csv")
        await store.put("a.csv", b"v2", "first", stale.revision)
        await store.put("a.csv", b"v3", "second", stale.revision)

    with pytest.raises(ConflictError):
        asyncio.run(scenario())
    assert len(store.commits) == 1


def test_create_over_existing_path_is_a_conflict() -> None:
    store = InMemoryContentStore(files={"images/x.webp": b"img"})
    with pytest.raises(ConflictError):
        asyncio.run(store.put("images/x.webp", b"other", "create"))


def test_stored_text_drops_byte_order_mark() -> None:
    stored = StoredFile(path="t.csv", content="\ufeffdate,description\n".encode(), revision="abc")
    assert stored.text() == "date,description\n"


def test_stored_text_that_is_not_utf8_is_an_upstream_error() -> None:
    stored = StoredFile(path="t.csv", content=b"date\n\xff\xfe\xfa", revision="abc")
    with pytest.raises(UpstreamError) as excinfo:
        stored.text()
    assert excinfo.value.path == "t.csv"
