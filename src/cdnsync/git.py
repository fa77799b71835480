"""Async wrapper around the ``git`` executable.

Only the handful of operations the release committer and the branch
version source need are exposed. Every call runs ``git`` as a subprocess
inside the repository and raises ``GitCommandError`` on failure.
"""

from __future__ import annotations

import asyncio
import re
from pathlib import Path

from cdnsync.logging import get_logger

log = get_logger("cdnsync.git")

_HEAD_REF_RE = re.compile(r"refs/heads/(\S+)")


class GitCommandError(Exception):
    """Raised when a git command exits non-zero or times out."""

    def __init__(self, args: list[str], returncode: int | None, stderr: str) -> None:
        self.command = ["git", *args]
        self.returncode = returncode
        self.stderr = stderr
        status = "timed out" if returncode is None else f"exit {returncode}"
        super().__init__(f"git {' '.join(args)} failed ({status}): {stderr}")


class GitRepository:
    """A working copy of a git repository on disk."""

    def __init__(self, path: str | Path, timeout: float = 120.0) -> None:
        self._path = Path(path)
        self._timeout = timeout

    @property
    def path(self) -> Path:
        return self._path

    # ------------------------------------------------------------------
    # Branches
    # ------------------------------------------------------------------

    async def current_branch(self) -> str:
        out = await self._run("rev-parse", "--abbrev-ref", "HEAD")
        return out.strip()

    async def branch_exists(self, branch: str) -> bool:
        out = await self._run("branch", "--list", branch)
        return bool(out.strip())

    async def checkout(self, branch: str) -> None:
        await self._run("checkout", branch)

    async def create_branch(self, branch: str) -> None:
        await self._run("branch", branch)

    async def delete_branch(self, branch: str) -> None:
        await self._run("branch", "-D", branch)

    async def list_remote_branches(self, remote: str = "origin") -> list[str]:
        """Return the branch names (without ``refs/heads/``) on *remote*."""
        out = await self._run("ls-remote", "--heads", remote)
        branches: list[str] = []
        for line in out.splitlines():
            m = _HEAD_REF_RE.search(line)
            if m:
                branches.append(m.group(1))
        return branches

    # ------------------------------------------------------------------
    # Changes
    # ------------------------------------------------------------------

    async def add(self, path: str | Path) -> None:
        await self._run("add", "--", str(path))

    async def commit(self, message: str, path: str | Path | None = None) -> None:
        args = ["commit", "-m", message]
        if path is not None:
            args += ["--", str(path)]
        await self._run(*args)

    async def push(self, remote: str, branch: str) -> None:
        await self._run("push", remote, branch)

    # ------------------------------------------------------------------
    # Subprocess helper
    # ------------------------------------------------------------------

    async def _run(self, *args: str) -> str:
        """Run a git command in the repository and return stdout."""
        try:
            proc = await asyncio.create_subprocess_exec(
                "git",
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=self._path,
            )
        except OSError as exc:
            raise GitCommandError(list(args), -1, str(exc)) from exc

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=self._timeout)
        except TimeoutError as exc:
            proc.kill()
            await proc.wait()
            log.warning("git_cmd_timeout", args=list(args), timeout=self._timeout)
            raise GitCommandError(list(args), None, "timed out") from exc

        if proc.returncode != 0:
            err = stderr.decode(errors="replace").strip()
            log.debug(
                "git_cmd_failed",
                args=list(args),
                returncode=proc.returncode,
                stderr=err[:500],
            )
            raise GitCommandError(list(args), proc.returncode, err)

        return stdout.decode(errors="replace")
