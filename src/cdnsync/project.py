"""Per-project update pipeline.

Typical flow for one project descriptor:
1. ``check(descriptor)`` — load metadata and decide whether a newer
   upstream version must be mirrored
2. ``update(decision)`` — install that version into staging and copy the
   selected files into ``<project path>/<version>``
3. ``commit(repo_path, result)`` — commit the new directory on a
   ``<project>/<version>`` branch of the CDN repository, optionally pushing it

Each stage takes the previous stage's record and returns a new one.
"""

from __future__ import annotations

import asyncio
import json
import shutil
from pathlib import Path

import httpx
from pydantic import ValidationError

from cdnsync import versioning
from cdnsync.config import Settings, get_settings
from cdnsync.errors import CommitError, InstallError, ParseError, PushError
from cdnsync.filecopy import copy_selected
from cdnsync.git import GitCommandError, GitRepository
from cdnsync.logging import get_logger
from cdnsync.models import ProjectMetadata, UpdateDecision, UpdateOutcome, UpdateResult
from cdnsync.package_managers import PackageManagerError, get_package_manager
from cdnsync.sources import branch_versions, local_versions, remote_versions

log = get_logger("cdnsync.project")

# Keys computed by the loader; a descriptor can never supply them. The field
# names are listed too since populate_by_name accepts them as well as aliases.
_COMPUTED_KEYS = frozenset(
    {
        "path",
        "localVersions",
        "remoteVersions",
        "branchVersions",
        "local_versions",
        "remote_versions",
        "branch_versions",
    }
)

# Branch/commit operations on the shared CDN repository must not interleave
COMMIT_LOCK = asyncio.Lock()


# ---------------------------------------------------------------------------
# Metadata
# ---------------------------------------------------------------------------


async def load_metadata(
    descriptor_path: str | Path,
    settings: Settings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
    repo: GitRepository | None = None,
) -> ProjectMetadata:
    """Read a project descriptor and attach its path and known versions.

    The three version sources are queried concurrently. If any of them
    fails the first failure (in local, remote, branch order) is raised and
    no metadata is returned.
    """
    settings = settings or get_settings()
    descriptor_path = Path(descriptor_path)

    try:
        raw = json.loads(await asyncio.to_thread(descriptor_path.read_text, encoding="utf-8"))
    except (OSError, ValueError) as exc:
        log.error("metadata_read_failed", descriptor=str(descriptor_path), error=str(exc))
        raise ParseError(f"Cannot read descriptor {descriptor_path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ParseError(f"Descriptor {descriptor_path} is not a JSON object")

    fields = {key: value for key, value in raw.items() if key not in _COMPUTED_KEYS}
    try:
        metadata = ProjectMetadata.model_validate({**fields, "path": descriptor_path.parent})
    except ValidationError as exc:
        log.error("metadata_invalid", descriptor=str(descriptor_path), error=str(exc))
        raise ParseError(
            f"Invalid descriptor {descriptor_path}: {exc}", project=raw.get("name")
        ) from exc

    results = await asyncio.gather(
        local_versions(metadata),
        remote_versions(metadata, settings, transport=transport),
        branch_versions(metadata, settings, repo=repo),
        return_exceptions=True,
    )
    for outcome in results:
        if isinstance(outcome, BaseException):
            log.error("package_versions_failed", project=metadata.name, error=str(outcome))
            raise outcome

    local, remote, branch = results
    metadata = metadata.model_copy(
        update={"local_versions": local, "remote_versions": remote, "branch_versions": branch}
    )
    log.debug(
        "metadata_read",
        project=metadata.name,
        local_versions=metadata.local_versions,
        remote_versions=metadata.remote_versions,
        branch_versions=metadata.branch_versions,
    )
    return metadata


# ---------------------------------------------------------------------------
# Check
# ---------------------------------------------------------------------------


def latest_local_version(metadata: ProjectMetadata) -> str | None:
    """The newer of the latest mirrored directory and the latest release branch."""
    local_fs = metadata.local_versions[-1] if metadata.local_versions else None
    local_branch = metadata.branch_versions[-1] if metadata.branch_versions else None
    if local_fs and local_branch:
        return local_fs if versioning.gt(local_fs, local_branch) else local_branch
    return local_fs or local_branch


def decide(metadata: ProjectMetadata) -> UpdateDecision:
    """Decide whether the latest remote version must be mirrored.

    An update is due when nothing is mirrored yet or the remote is strictly
    newer than the local version. With no valid remote version nothing is due.
    """
    local = latest_local_version(metadata)
    remote = metadata.remote_versions[-1] if metadata.remote_versions else None

    if remote is not None and (local is None or versioning.gt(remote, local)):
        return UpdateDecision(metadata=metadata, version=remote)
    return UpdateDecision(metadata=metadata)


async def check(
    descriptor_path: str | Path,
    settings: Settings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
    repo: GitRepository | None = None,
) -> UpdateDecision:
    """Load a project's metadata and decide whether it needs an update."""
    metadata = await load_metadata(descriptor_path, settings, transport=transport, repo=repo)
    return decide(metadata)


# ---------------------------------------------------------------------------
# Update
# ---------------------------------------------------------------------------


async def update(
    decision: UpdateDecision,
    settings: Settings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> UpdateResult:
    """Install the decided version and copy its selected files into place."""
    metadata = decision.metadata
    version = decision.version

    if version is None:
        log.debug("project_already_latest", project=metadata.name)
        return UpdateResult(metadata=metadata, outcome=UpdateOutcome.UP_TO_DATE)

    settings = settings or get_settings()
    log.info("project_updating", project=metadata.name, version=version)

    clean_version = versioning.clean(version) or version
    staging = Path(settings.tmp_dir) / metadata.name / clean_version
    destination = metadata.path / clean_version

    try:
        manager = get_package_manager(metadata.package_manager, settings, transport=transport)
        await manager.install(metadata.package_id, version, staging)
    except (PackageManagerError, OSError) as exc:
        log.warning(
            "package_install_failed", project=metadata.name, version=version, error=str(exc)
        )
        raise InstallError(
            f"Cannot install {metadata.package_id}@{version}: {exc}",
            project=metadata.name,
            version=version,
        ) from exc

    try:
        files = await asyncio.to_thread(copy_selected, staging, destination, metadata.files)
    except OSError as exc:
        await asyncio.to_thread(shutil.rmtree, destination, ignore_errors=True)
        raise InstallError(
            f"Cannot copy files into {destination}: {exc}",
            project=metadata.name,
            version=version,
        ) from exc

    log.info(
        "files_copied",
        project=metadata.name,
        version=version,
        count=len(files),
        files=[str(f) for f in files],
    )

    if not files:
        log.warning(
            "no_files_matched",
            project=metadata.name,
            version=version,
            hint="check the descriptor's files selection",
        )
        await asyncio.to_thread(shutil.rmtree, destination, ignore_errors=True)
        return UpdateResult(
            metadata=metadata, version=version, outcome=UpdateOutcome.NO_FILES_MATCHED
        )

    return UpdateResult(
        metadata=metadata,
        version=version,
        outcome=UpdateOutcome.UPDATED,
        update_path=destination,
    )


# ---------------------------------------------------------------------------
# Commit
# ---------------------------------------------------------------------------


def release_branch(name: str, version: str) -> str:
    return f"{name}/{version}"


async def commit(
    repo_path: str | Path,
    result: UpdateResult,
    settings: Settings | None = None,
    *,
    push: bool | None = None,
    lock: asyncio.Lock | None = None,
    repo: GitRepository | None = None,
) -> UpdateResult:
    """Commit a freshly mirrored version on its own release branch.

    The branch is created from the main branch. When pushing is enabled the
    branch is pushed and then deleted locally, leaving the repository on the
    main branch; otherwise the branch stays checked out. On failure nothing
    is rolled back, so the branch can be inspected or the push retried.
    """
    if not result.updated or result.update_path is None or result.version is None:
        return result

    settings = settings or get_settings()
    push = settings.push if push is None else push
    if repo is None:
        repo = GitRepository(repo_path, timeout=settings.git_timeout)
    if lock is None:
        lock = COMMIT_LOCK
    name = result.metadata.name
    version = result.version
    branch = release_branch(name, version)
    commit_dir = Path(result.update_path).resolve()

    async with lock:
        try:
            await repo.checkout(settings.main_branch)
            await repo.create_branch(branch)
            await repo.checkout(branch)
            await repo.add(commit_dir)
            await repo.commit(f"Update project {name} to {version}", commit_dir)
        except GitCommandError as exc:
            log.error(
                "git_commit_failed",
                project=name,
                version=version,
                path=str(commit_dir),
                error=str(exc),
            )
            raise CommitError(
                f"Cannot commit {commit_dir} on {branch}: {exc}", project=name, version=version
            ) from exc

        if not push:
            log.info("git_commit_success", project=name, version=version, branch=branch)
            return result

        try:
            await repo.push(settings.git_remote, branch)
        except GitCommandError as exc:
            log.error("git_push_failed", project=name, version=version, error=str(exc))
            raise PushError(
                f"Cannot push {branch} to {settings.git_remote}: {exc}",
                project=name,
                version=version,
            ) from exc

        log.info("git_commit_and_push_success", project=name, version=version)

        try:
            await repo.checkout(settings.main_branch)
            await repo.delete_branch(branch)
        except GitCommandError as exc:
            log.warning("release_branch_cleanup_failed", branch=branch, error=str(exc))

    return result
