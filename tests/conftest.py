"""Shared fixtures for cdnsync tests."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from cdnsync.config import Settings


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings isolated from the environment, rooted in ``tmp_path``."""
    repo = tmp_path / "cdn"
    repo.mkdir(exist_ok=True)
    return Settings(
        _env_file=None,
        tmp_dir=tmp_path / "staging",
        cdn_repo_path=repo,
        push=False,
        github_token=None,
    )


@pytest.fixture
def write_descriptor(tmp_path: Path) -> Callable[..., Path]:
    """Write an ``update.json`` for a project and return its path."""

    def _write(
        data: dict[str, Any] | str,
        *,
        directory: Path | None = None,
        versions: tuple[str, ...] = (),
    ) -> Path:
        project_dir = directory or tmp_path / "cdn" / "files" / "demo"
        project_dir.mkdir(parents=True, exist_ok=True)
        for version in versions:
            (project_dir / version).mkdir(exist_ok=True)
        descriptor = project_dir / "update.json"
        text = data if isinstance(data, str) else json.dumps(data)
        descriptor.write_text(text, encoding="utf-8")
        return descriptor

    return _write
