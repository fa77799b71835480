"""Download a release tarball and unpack it into a staging directory."""

from __future__ import annotations

import asyncio
import contextlib
import shutil
import tarfile
from pathlib import Path, PurePosixPath

import httpx

from cdnsync.logging import get_logger
from cdnsync.package_managers.base import PackageManagerError

log = get_logger("cdnsync.package_managers.archive")


def reset_directory(path: Path) -> None:
    """Make *path* an empty directory, removing stale content."""
    if path.exists():
        shutil.rmtree(path)
    path.mkdir(parents=True)


def extract_stripped(archive: Path, destination: Path) -> int:
    """Extract *archive* into *destination*, dropping the top-level folder.

    npm tarballs wrap everything in ``package/`` and GitHub tarballs in
    ``<owner>-<repo>-<sha>/``. Only regular files and directories are
    extracted. Returns the number of files written.
    """
    try:
        with tarfile.open(archive, "r:*") as tar:
            members: list[tarfile.TarInfo] = []
            for member in tar.getmembers():
                if not (member.isfile() or member.isdir()):
                    continue
                parts = PurePosixPath(member.name).parts[1:]
                if not parts:
                    continue
                members.append(member.replace(name=str(PurePosixPath(*parts)), deep=False))
            tar.extractall(destination, members=members, filter="data")
    except (tarfile.TarError, OSError) as exc:
        raise PackageManagerError(f"Cannot extract {archive.name}: {exc}") from exc
    return sum(1 for m in members if m.isfile())


async def download_and_extract(
    client: httpx.AsyncClient,
    url: str,
    destination: Path,
    *,
    headers: dict[str, str] | None = None,
) -> int:
    """Stream the tarball at *url* and unpack it into *destination*."""
    archive = destination.parent / f".{destination.name}.tgz"

    try:
        await asyncio.to_thread(reset_directory, destination)
        async with client.stream("GET", url, headers=headers, follow_redirects=True) as resp:
            if resp.status_code != 200:
                raise PackageManagerError(f"Download of {url} failed: HTTP {resp.status_code}")
            with archive.open("wb") as fh:
                async for chunk in resp.aiter_bytes():
                    fh.write(chunk)
        count = await asyncio.to_thread(extract_stripped, archive, destination)
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        raise PackageManagerError(f"Download of {url} failed: {exc}") from exc
    except OSError as exc:
        raise PackageManagerError(f"Cannot stage {url} in {destination}: {exc}") from exc
    finally:
        with contextlib.suppress(OSError):
            archive.unlink(missing_ok=True)

    log.debug("archive_extracted", url=url, destination=str(destination), files=count)
    return count
