"""Exceptions raised by the update pipeline.

Every fatal error carries the project name, the version being processed
(when known) and the pipeline stage, so a driver can log it and move on to
the next project. A configuration mismatch (nothing copied after a
successful install) is not an error; see ``UpdateOutcome.NO_FILES_MATCHED``.
"""

from __future__ import annotations

from typing import Any


class CdnSyncError(Exception):
    """Base class for pipeline failures."""

    stage = "pipeline"

    def __init__(
        self,
        message: str,
        *,
        project: str | None = None,
        version: str | None = None,
    ) -> None:
        super().__init__(message)
        self.project = project
        self.version = version

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": str(self),
            "type": type(self).__name__,
            "stage": self.stage,
            "project": self.project,
            "version": self.version,
        }


class ParseError(CdnSyncError):
    """The project descriptor is missing, unreadable or malformed."""

    stage = "metadata"


class VersionLookupError(CdnSyncError):
    """A version source (filesystem, registry or branch listing) failed."""

    stage = "lookup"


class InstallError(CdnSyncError):
    """The package manager could not install the requested version."""

    stage = "install"


class CommitError(CdnSyncError):
    """Branching, staging or committing in the CDN repository failed."""

    stage = "commit"


class PushError(CdnSyncError):
    """Pushing a committed release branch failed."""

    stage = "push"
