# -----------------------------------------------------------------------------
# Async client for the hosted repository's contents API.
#
# The repository is used as an append-only database:
#   - GET  /repos/{owner}/{repo}/contents/{path}?ref={branch}
#       returns base64 `content` and the blob `sha` (our revision token)
#   - PUT  /repos/{owner}/{repo}/contents/{path}
#       body {message, content(base64), branch, sha?}; omitting `sha` creates
#       the file, passing it replaces the file only if it is still current
#
# Status mapping
# --------------
#   404                      -> NotFoundError
#   409, or 422 about `sha`  -> ConflictError (stale or missing revision)
#   anything else >= 400     -> UpstreamError
#   transport failures       -> UpstreamError
#
# Files above 1 MB come back from the JSON endpoint with `encoding: "none"`
# and no content; those are re-fetched with the raw media type.
# -----------------------------------------------------------------------------
from __future__ import annotations

import base64
import binascii
from typing import Any

import httpx

from timeledger.core.contracts.stored_file import StoredFile
from timeledger.core.errors import ConflictError, NotFoundError, UpstreamError
from timeledger.core.settings import Settings, get_logger

logger = get_logger(__name__)

JSON_MEDIA_TYPE = "application/vnd.github+json"
RAW_MEDIA_TYPE = "application/vnd.github.raw"
API_VERSION = "2022-11-28"


class GitHubContentStore:
    """`ContentStore` backed by the GitHub contents API.

    Parameters
    ----------
    settings:
        Supplies the token, repository coordinates, branch and timeout.
    http:
        Optional shared `httpx.AsyncClient`. When omitted the store owns a
        client and closes it in :meth:`aclose`. Tests pass one built on
        `httpx.MockTransport`.
    """

    def __init__(self, settings: Settings, http: httpx.AsyncClient | None = None) -> None:
        self._settings = settings
        self._owns_client = http is None
        self._http = http or httpx.AsyncClient(timeout=settings.http_timeout_seconds)
        self._headers = {
            "Accept": JSON_MEDIA_TYPE,
            "X-GitHub-Api-Version": API_VERSION,
            "User-Agent": "timeledger",
        }
        if settings.github_token:
            self._headers["Authorization"] = f"Bearer {settings.github_token}"

    @property
    def branch(self) -> str:
        return self._settings.github_branch

    def _url(self, path: str) -> str:
        return f"{self._settings.repo_api_url}/contents/{path.lstrip('/')}"

    # --------------------------------------------------------------------- #
    # Public API
    # --------------------------------------------------------------------- #
    async def get(self, path: str) -> StoredFile:
        """Fetch `path` at the configured branch."""
        response = await self._request("GET", path, params={"ref": self.branch})
        payload = self._json(response, path)
        if isinstance(payload, list):
            raise UpstreamError(f"{path} is a directory, not a file", path=path, step="get")

        sha = payload.get("sha")
        if payload.get("encoding") == "none" or (
            payload.get("content") == "" and payload.get("size", 0) > 0
        ):
            logger.debug("%s exceeds the JSON content limit, fetching raw", path)
            raw = await self._request(
                "GET", path, params={"ref": self.branch}, accept=RAW_MEDIA_TYPE
            )
            return StoredFile(path=path, content=raw.content, revision=sha)

        try:
            content = base64.b64decode(payload.get("content", ""), validate=False)
        except (binascii.Error, ValueError) as exc:
            raise UpstreamError(f"undecodable content for {path}: {exc}", path=path, step="get") from exc
        return StoredFile(path=path, content=content, revision=sha)

    async def put(
        self,
        path: str,
        content: bytes,
        message: str,
        revision: str | None = None,
    ) -> StoredFile:
        """Create or replace `path` in one commit and return the new revision."""
        body: dict[str, Any] = {
            "message": message,
            "content": base64.b64encode(content).decode("ascii"),
            "branch": self.branch,
        }
        if revision is not None:
            body["sha"] = revision

        response = await self._request("PUT", path, json=body)
        payload = self._json(response, path)
        new_sha = (payload.get("content") or {}).get("sha")
        commit_sha = (payload.get("commit") or {}).get("sha")
        logger.info("Committed %s (%s) commit=%s", path, message, commit_sha)
        return StoredFile(path=path, content=content, revision=new_sha)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    # --------------------------------------------------------------------- #
    # Transport helpers
    # --------------------------------------------------------------------- #
    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json: dict[str, Any] | None = None,
        accept: str | None = None,
    ) -> httpx.Response:
        step = "get" if method == "GET" else "put"
        headers = dict(self._headers)
        if accept:
            headers["Accept"] = accept
        try:
            response = await self._http.request(
                method, self._url(path), params=params, json=json, headers=headers
            )
        except httpx.HTTPError as exc:
            logger.error("%s %s failed: %s", method, path, exc)
            raise UpstreamError(
                f"repository unreachable: {exc}", path=path, step=step
            ) from exc

        if response.is_success:
            return response
        raise self._error_for(response, path, step)

    @staticmethod
    def _json(response: httpx.Response, path: str) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamError(
                f"invalid JSON from repository for {path}", path=path, upstream_status=response.status_code
            ) from exc

    @staticmethod
    def _error_for(response: httpx.Response, path: str, step: str) -> Exception:
        try:
            detail = str(response.json().get("message", ""))
        except (ValueError, AttributeError):
            detail = response.text[:200]
        status = response.status_code

        if status == 404:
            return NotFoundError(f"{path} not found", path=path, step=step)
        if status == 409 or (status == 422 and "sha" in detail.lower()):
            logger.warning("Revision conflict on %s: %s", path, detail)
            return ConflictError(
                f"{path} was changed by another writer ({detail or status})", path=path, step=step
            )
        logger.error("Repository rejected %s %s: %s %s", step, path, status, detail)
        return UpstreamError(
            f"repository returned {status} for {path}: {detail}",
            path=path,
            step=step,
            upstream_status=status,
        )


__all__ = ["GitHubContentStore"]
