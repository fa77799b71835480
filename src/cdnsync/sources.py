"""Version sources: the local snapshot, the upstream registry and the
release branches of the shared CDN repository.

Each lookup is read-only and returns the valid versions it found in
ascending order; invalid entries are dropped silently.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import httpx

from cdnsync import versioning
from cdnsync.config import Settings, get_settings
from cdnsync.errors import VersionLookupError
from cdnsync.git import GitCommandError, GitRepository
from cdnsync.logging import get_logger
from cdnsync.models import ProjectMetadata
from cdnsync.package_managers import PackageManagerError, get_package_manager

log = get_logger("cdnsync.sources")


def parse_branch_name(branch: str) -> tuple[str, str] | None:
    """Split a release branch ``<project>/<version>`` into its two parts.

    Anything that is not exactly two ``/``-separated segments is rejected.
    """
    parts = branch.split("/")
    if len(parts) != 2:
        return None
    return parts[0], parts[1]


def _subdirectory_names(path: Path) -> list[str]:
    return [entry.name for entry in path.iterdir() if entry.is_dir()]


async def local_versions(metadata: ProjectMetadata) -> list[str]:
    """Versions already mirrored as sub-directories of the project path."""
    try:
        names = await asyncio.to_thread(_subdirectory_names, metadata.path)
    except OSError as exc:
        raise VersionLookupError(
            f"Cannot scan {metadata.path}: {exc}", project=metadata.name
        ) from exc
    return versioning.sort_versions(names)


async def remote_versions(
    metadata: ProjectMetadata,
    settings: Settings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[str]:
    """Versions published upstream, as reported by the project's package manager."""
    try:
        manager = get_package_manager(
            metadata.package_manager, settings or get_settings(), transport=transport
        )
        versions = await manager.versions(metadata.package_id)
    except PackageManagerError as exc:
        log.warning(
            "remote_versions_failed",
            project=metadata.name,
            package_manager=metadata.package_manager.value,
            error=str(exc),
        )
        raise VersionLookupError(
            f"Cannot list versions of {metadata.package_id}: {exc}", project=metadata.name
        ) from exc
    return versioning.sort_versions(versions)


async def branch_versions(
    metadata: ProjectMetadata,
    settings: Settings | None = None,
    *,
    repo: GitRepository | None = None,
) -> list[str]:
    """Versions that already have a release branch on the CDN remote."""
    settings = settings or get_settings()
    if repo is None:
        repo = GitRepository(settings.cdn_repo_path, timeout=settings.git_timeout)
    try:
        branches = await repo.list_remote_branches(settings.git_remote)
    except GitCommandError as exc:
        log.error("branch_listing_failed", project=metadata.name, error=str(exc))
        raise VersionLookupError(
            f"Cannot list branches of {settings.git_remote}: {exc}", project=metadata.name
        ) from exc

    versions: list[str] = []
    for branch in branches:
        parsed = parse_branch_name(branch)
        if parsed and parsed[0] == metadata.name:
            versions.append(parsed[1])
    return versioning.sort_versions(versions)
