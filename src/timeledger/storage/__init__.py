"""Content store clients for the hosted repository.

`build_content_store()` picks the implementation for the configured mode:
`GitHubContentStore` for live deployments, `InMemoryContentStore` for demo.
"""

from __future__ import annotations

import httpx

from timeledger.core.settings import Settings, get_logger

from .base import ContentStore
from .github import GitHubContentStore
from .memory import InMemoryContentStore

logger = get_logger(__name__)


def build_content_store(settings: Settings, http: httpx.AsyncClient | None = None) -> ContentStore:
    """Return the store matching `settings.mode`."""
    if settings.is_live:
        return GitHubContentStore(settings, http=http)
    logger.warning("Demo mode: writes are kept in memory and never reach the repository")
    return InMemoryContentStore(branch=settings.github_branch)


__all__ = ["ContentStore", "GitHubContentStore", "InMemoryContentStore", "build_content_store"]
