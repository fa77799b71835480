"""Package manager capability shared by all variants."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol

import httpx


class PackageManagerError(Exception):
    """Raised when a package manager cannot list or install a package."""


class PackageManager(Protocol):
    """What the pipeline needs from a package manager."""

    async def versions(self, package_id: str) -> list[str]:
        """Return every published version of *package_id* (unsorted, unfiltered)."""
        ...

    async def install(self, package_id: str, version: str, destination: Path) -> None:
        """Install *package_id* at *version* into the empty *destination* directory."""
        ...


async def get_json(
    client: httpx.AsyncClient,
    url: str,
    *,
    headers: dict[str, str] | None = None,
    params: dict[str, Any] | None = None,
) -> tuple[Any, httpx.Response]:
    """GET *url* and decode its JSON body.

    Returns the decoded payload together with the response so callers can
    inspect headers such as pagination links.
    """
    try:
        response = await client.get(url, headers=headers, params=params)
    except httpx.RequestError as exc:
        raise PackageManagerError(f"Request to {url} failed: {exc}") from exc

    if response.status_code == 404:
        raise PackageManagerError(f"Not found: {url}")
    if response.status_code != 200:
        raise PackageManagerError(f"Registry error {response.status_code} for {url}")

    try:
        return response.json(), response
    except ValueError as exc:
        raise PackageManagerError(f"Malformed JSON from {url}") from exc
