"""Package manager variants, selected by a descriptor's ``packageManager`` key."""

from __future__ import annotations

from collections.abc import Callable

import httpx

from cdnsync.config import Settings, get_settings
from cdnsync.models import PackageManagerKind
from cdnsync.package_managers.base import PackageManager, PackageManagerError
from cdnsync.package_managers.github import GitHubPackageManager
from cdnsync.package_managers.npm import NpmPackageManager

Factory = Callable[[Settings, httpx.AsyncBaseTransport | None], PackageManager]


def _npm(settings: Settings, transport: httpx.AsyncBaseTransport | None) -> PackageManager:
    return NpmPackageManager(
        settings.npm_registry_url,
        timeout=settings.http_timeout,
        transport=transport,
    )


def _github(settings: Settings, transport: httpx.AsyncBaseTransport | None) -> PackageManager:
    token = settings.github_token.get_secret_value() if settings.github_token else None
    return GitHubPackageManager(
        settings.github_api_url,
        token=token,
        timeout=settings.http_timeout,
        transport=transport,
    )


_FACTORIES: dict[PackageManagerKind, Factory] = {
    PackageManagerKind.NPM: _npm,
    PackageManagerKind.GITHUB: _github,
}


def get_package_manager(
    kind: str,
    settings: Settings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> PackageManager:
    """Return the package manager registered under *kind*."""
    try:
        factory = _FACTORIES[PackageManagerKind(kind)]
    except ValueError as exc:
        raise PackageManagerError(f"Unknown package manager: {kind!r}") from exc
    return factory(settings or get_settings(), transport)


__all__ = [
    "GitHubPackageManager",
    "NpmPackageManager",
    "PackageManager",
    "PackageManagerError",
    "get_package_manager",
]
