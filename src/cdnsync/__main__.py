"""Command-line entry point: update the projects whose descriptors are given."""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from cdnsync.config import Settings, get_settings
from cdnsync.errors import CdnSyncError
from cdnsync.logging import get_logger, setup_logging
from cdnsync.pipeline import run_project

log = get_logger("cdnsync.main")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cdnsync",
        description="Mirror new upstream versions of CDN projects into the CDN repository.",
    )
    parser.add_argument("descriptors", nargs="+", type=Path, help="Project descriptor files")
    parser.add_argument("--repo", type=Path, help="Shared CDN repository (overrides config)")
    parser.add_argument(
        "--push",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Push release branches after committing (overrides config)",
    )
    return parser


async def run_all(descriptors: list[Path], settings: Settings) -> int:
    """Process descriptors one at a time; return the number of failed projects."""
    failures = 0
    for descriptor in descriptors:
        try:
            await run_project(descriptor, settings)
        except CdnSyncError as exc:
            failures += 1
            log.error("project_failed", descriptor=str(descriptor), **exc.to_dict())
        except Exception:
            failures += 1
            log.exception("project_crashed", descriptor=str(descriptor))
    return failures


def main(argv: list[str] | None = None) -> int:
    """Parse arguments, run every project and report the exit status."""
    args = build_parser().parse_args(argv)

    settings = get_settings()
    overrides: dict[str, object] = {}
    if args.repo is not None:
        overrides["cdn_repo_path"] = args.repo
    if args.push is not None:
        overrides["push"] = args.push
    if overrides:
        settings = settings.model_copy(update=overrides)
    setup_logging(settings)

    failures = asyncio.run(run_all(args.descriptors, settings))
    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
