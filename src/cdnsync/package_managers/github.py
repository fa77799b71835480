"""GitHub-hosted package manager.

Versions are the repository's tags; installing a version downloads the
tag's source tarball.
"""

from __future__ import annotations

from pathlib import Path

import httpx

from cdnsync.logging import get_logger
from cdnsync.package_managers.archive import download_and_extract
from cdnsync.package_managers.base import PackageManagerError, get_json

log = get_logger("cdnsync.package_managers.github")

GITHUB_API_URL = "https://api.github.com"

# GitHub caps page size at 100
_TAGS_PER_PAGE = 100


class GitHubPackageManager:
    """Lists tags of, and downloads tarballs from, GitHub repositories."""

    def __init__(
        self,
        api_url: str = GITHUB_API_URL,
        *,
        token: str | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_url = api_url.rstrip("/")
        self._token = token
        self._timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._timeout, transport=self._transport)

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/vnd.github+json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    async def versions(self, package_id: str) -> list[str]:
        tags: list[str] = []
        url: str | None = f"{self._api_url}/repos/{package_id}/tags"
        params: dict[str, int] | None = {"per_page": _TAGS_PER_PAGE}

        async with self._client() as client:
            while url:
                data, response = await get_json(
                    client, url, headers=self._headers(), params=params
                )
                if not isinstance(data, list):
                    raise PackageManagerError(f"Malformed tag listing for {package_id}")
                tags.extend(
                    tag["name"]
                    for tag in data
                    if isinstance(tag, dict) and isinstance(tag.get("name"), str)
                )
                # The next link already carries the query string
                url = response.links.get("next", {}).get("url")
                params = None

        return tags

    async def install(self, package_id: str, version: str, destination: Path) -> None:
        url = f"{self._api_url}/repos/{package_id}/tarball/{version}"
        async with self._client() as client:
            count = await download_and_extract(client, url, destination, headers=self._headers())

        log.info("github_package_installed", repo=package_id, version=version, files=count)
