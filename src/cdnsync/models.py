"""Data models for the update pipeline.

``ProjectMetadata`` is parsed from a project's descriptor file (pydantic);
``UpdateDecision`` and ``UpdateResult`` are the transient records handed
from one pipeline stage to the next (plain dataclasses).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, StrEnum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# ---------------------------------------------------------------------------
# Descriptor
# ---------------------------------------------------------------------------


class PackageManagerKind(StrEnum):
    """Package manager variants a project can be mirrored from."""

    NPM = "npm"
    GITHUB = "github"


# Variants addressed by their source repository instead of the package name
HOST_BASED = frozenset({PackageManagerKind.GITHUB})


class FileSelection(BaseModel):
    """Which files of an installed package are copied into the mirror."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    base_path: str = Field(default="", alias="basePath")
    include: list[str] = Field(default_factory=lambda: ["**/*"])
    exclude: list[str] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _accept_pattern_list(cls, value: Any) -> Any:
        # A bare list (or single pattern) is shorthand for the include set
        if isinstance(value, str):
            return {"include": [value]}
        if isinstance(value, list):
            return {"include": value}
        return value

    @field_validator("include", "exclude", mode="before")
    @classmethod
    def _single_pattern(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [value]
        return value

    @field_validator("include", "exclude")
    @classmethod
    def _relative_patterns(cls, value: list[str]) -> list[str]:
        for pattern in value:
            if not pattern or pattern.startswith("/") or ".." in Path(pattern).parts:
                raise ValueError(f"Invalid file pattern: {pattern!r}")
        return value

    @field_validator("base_path")
    @classmethod
    def _relative_base_path(cls, value: str) -> str:
        path = Path(value)
        if path.is_absolute() or ".." in path.parts:
            raise ValueError("basePath must be relative to the package root")
        return value


class ProjectMetadata(BaseModel):
    """Identity, file policy and known versions of one mirrored package."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str = Field(min_length=1)
    package_manager: PackageManagerKind = Field(alias="packageManager")
    repo: str | None = None
    files: FileSelection = Field(default_factory=FileSelection)

    # Computed by the metadata loader, never read from the descriptor
    path: Path = Field(default=Path("."), exclude=True)
    local_versions: list[str] = Field(default_factory=list, alias="localVersions")
    remote_versions: list[str] = Field(default_factory=list, alias="remoteVersions")
    branch_versions: list[str] = Field(default_factory=list, alias="branchVersions")

    @model_validator(mode="after")
    def _repo_for_host_based(self) -> ProjectMetadata:
        if self.package_manager in HOST_BASED and not self.repo:
            raise ValueError(f"'repo' is required for packageManager '{self.package_manager}'")
        return self

    @property
    def package_id(self) -> str:
        """Identifier passed to the package manager."""
        if self.package_manager in HOST_BASED:
            return self.repo or ""
        return self.name


# ---------------------------------------------------------------------------
# Pipeline records
# ---------------------------------------------------------------------------


class UpdateOutcome(Enum):
    """How an update attempt ended."""

    UP_TO_DATE = "up_to_date"
    UPDATED = "updated"
    NO_FILES_MATCHED = "no_files_matched"


@dataclass
class UpdateDecision:
    """Result of comparing local and remote versions.

    ``version`` is set iff a newer remote version should be mirrored.
    """

    metadata: ProjectMetadata
    version: str | None = None

    @property
    def due(self) -> bool:
        return self.version is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.metadata.name,
            "package_manager": self.metadata.package_manager.value,
            "version": self.version,
        }


@dataclass
class UpdateResult(UpdateDecision):
    """An ``UpdateDecision`` after the update executor has run."""

    outcome: UpdateOutcome = UpdateOutcome.UP_TO_DATE
    update_path: Path | None = None

    @property
    def updated(self) -> bool:
        return self.outcome is UpdateOutcome.UPDATED

    def to_dict(self) -> dict[str, Any]:
        return {
            **super().to_dict(),
            "outcome": self.outcome.value,
            "updated": self.updated,
            "update_path": str(self.update_path) if self.update_path else None,
        }
