"""GitHub REST "contents" API wrapper.

Provides the two remote calls an upload is built from: looking up the current
blob SHA of a file on a branch, and a conditional create-or-update write that
sends that SHA back as an optimistic-concurrency precondition.
"""
from __future__ import annotations

import logging
from typing import Any, Optional
from urllib.parse import quote

import httpx

from app.config import Settings
from app.models import RepoCoordinates

logger = logging.getLogger(__name__)


class GitHubAPIError(Exception):
    """Raised when the GitHub API returns an error status."""

    def __init__(self, status: int, message: str, response_json: Optional[Any] = None):
        super().__init__(f"GitHub API error {status}: {message}")
        self.status = status
        self.response_json = response_json


class GitHubContentsClient:
    """Minimal async client for the GitHub repository contents API."""

    _API_VERSION = "2022-11-28"
    _USER_AGENT = "product-upload-service"

    def __init__(
        self,
        *,
        token: str,
        coordinates: RepoCoordinates,
        api_url: str = "https://api.github.com",
        timeout: float | None = None,
        strict_lookup: bool = False,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._coordinates = coordinates
        self._strict_lookup = strict_lookup
        self._base_url = f"{api_url.rstrip('/')}/repos/{coordinates.owner}/{coordinates.repo}/contents"
        self._headers = {
            "Authorization": f"token {token}",
            "User-Agent": self._USER_AGENT,
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": self._API_VERSION,
        }
        self._client = httpx.AsyncClient(timeout=timeout, headers=self._headers, transport=transport)

    @classmethod
    def from_settings(cls, settings: Settings) -> "GitHubContentsClient":
        return cls(
            token=settings.github_token or "",
            coordinates=settings.repo_coordinates(),
            api_url=settings.github_api_url,
            timeout=settings.github_timeout,
            strict_lookup=settings.github_strict_lookup,
        )

    @property
    def branch(self) -> str:
        return self._coordinates.branch

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def get_file_sha(self, path: str) -> str | None:
        """Return the current SHA of ``path`` on the branch, or None if it does not exist."""

        url = self._file_url(path)
        logger.debug("GET %s ref=%s", url, self.branch)
        resp = await self._client.get(url, params={"ref": self.branch})
        if resp.status_code == 200:
            return resp.json().get("sha")
        if resp.status_code == 404:
            return None

        if self._strict_lookup:
            raise GitHubAPIError(resp.status_code, resp.text, _json_or_none(resp))
        logger.warning("SHA lookup for %s returned %s; treating file as absent", path, resp.status_code)
        return None

    async def put_file(
        self,
        path: str,
        content_base64: str,
        message: str,
        *,
        sha: str | None = None,
    ) -> dict[str, Any]:
        """Create ``path`` or, when ``sha`` is given, update it only if it is still at that SHA."""

        url = self._file_url(path)
        payload: dict[str, Any] = {
            "message": message,
            "content": content_base64,
            "branch": self.branch,
        }
        if sha:
            payload["sha"] = sha
        logger.debug("PUT %s (%s)", url, "update" if sha else "create")
        resp = await self._client.put(url, json=payload)
        # redirects are not followed; a 3xx means nothing was committed
        if not resp.is_success:
            raise GitHubAPIError(resp.status_code, resp.text, _json_or_none(resp))
        return resp.json()

    async def upsert_file(self, path: str, content_base64: str, message: str) -> dict[str, Any]:
        existing_sha = await self.get_file_sha(path)
        return await self.put_file(path, content_base64, message, sha=existing_sha)

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "GitHubContentsClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _file_url(self, path: str) -> str:
        return f"{self._base_url}/{quote(path, safe='/')}"


def _json_or_none(resp: httpx.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return None
