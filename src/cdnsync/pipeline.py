"""Run the full check → update → commit pipeline for one project."""

from __future__ import annotations

from pathlib import Path

import httpx

from cdnsync.config import Settings, get_settings
from cdnsync.logging import get_logger, project_context
from cdnsync.models import UpdateResult
from cdnsync.project import check, commit, update
from cdnsync.utils import timed_operation

log = get_logger("cdnsync.pipeline")


async def run_project(
    descriptor_path: str | Path,
    settings: Settings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> UpdateResult:
    """Bring one project up to date with its upstream.

    Errors from any stage propagate unchanged; the caller decides whether to
    continue with other projects.
    """
    settings = settings or get_settings()

    with project_context(descriptor=str(descriptor_path)):
        async with timed_operation("check", log=log) as timing:
            decision = await check(descriptor_path, settings, transport=transport)
            timing["due"] = decision.due

        with project_context(project=decision.metadata.name, version=decision.version):
            async with timed_operation("update", log=log) as timing:
                result = await update(decision, settings, transport=transport)
                timing["result"] = result.outcome.value

            async with timed_operation("commit", log=log, push=settings.push):
                result = await commit(settings.cdn_repo_path, result, settings)

            log.info("project_processed", **result.to_dict())
    return result
