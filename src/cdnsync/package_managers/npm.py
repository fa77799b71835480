"""npm registry package manager."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import httpx

from cdnsync.logging import get_logger
from cdnsync.package_managers.archive import download_and_extract
from cdnsync.package_managers.base import PackageManagerError, get_json

log = get_logger("cdnsync.package_managers.npm")

NPM_REGISTRY_URL = "https://registry.npmjs.org"


class NpmPackageManager:
    """Lists and installs packages published to an npm registry."""

    def __init__(
        self,
        registry_url: str = NPM_REGISTRY_URL,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._registry_url = registry_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._timeout, transport=self._transport)

    def _package_url(self, name: str) -> str:
        # Scoped packages (@scope/name) are addressed as @scope%2Fname
        return f"{self._registry_url}/{name.replace('/', '%2F')}"

    async def _packument(self, client: httpx.AsyncClient, name: str) -> dict[str, Any]:
        data, _ = await get_json(client, self._package_url(name))
        if not isinstance(data, dict) or not isinstance(data.get("versions"), dict):
            raise PackageManagerError(f"Malformed registry document for {name}")
        return data

    async def versions(self, package_id: str) -> list[str]:
        async with self._client() as client:
            data = await self._packument(client, package_id)
        return list(data["versions"])

    async def install(self, package_id: str, version: str, destination: Path) -> None:
        async with self._client() as client:
            data = await self._packument(client, package_id)
            info = data["versions"].get(version)
            dist = info.get("dist") if isinstance(info, dict) else None
            tarball = dist.get("tarball") if isinstance(dist, dict) else None
            if not isinstance(tarball, str) or not tarball:
                raise PackageManagerError(f"No tarball published for {package_id}@{version}")

            count = await download_and_extract(client, tarball, destination)

        log.info("npm_package_installed", package=package_id, version=version, files=count)
