"""Tests for metadata loading and the update decision."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from cdnsync.errors import ParseError, VersionLookupError
from cdnsync.models import ProjectMetadata
from cdnsync.package_managers import PackageManagerError
from cdnsync.project import check, decide, latest_local_version, load_metadata

DESCRIPTOR = {"name": "demo", "packageManager": "npm", "files": ["*.js"]}


def _metadata(local=(), branch=(), remote=()) -> ProjectMetadata:
    return ProjectMetadata(
        name="demo",
        package_manager="npm",
        local_versions=list(local),
        branch_versions=list(branch),
        remote_versions=list(remote),
    )


def _manager(versions: list[str] | Exception) -> MagicMock:
    manager = MagicMock()
    if isinstance(versions, Exception):
        manager.versions = AsyncMock(side_effect=versions)
    else:
        manager.versions = AsyncMock(return_value=versions)
    return manager


def _repo(branches: list[str]) -> MagicMock:
    repo = MagicMock()
    repo.list_remote_branches = AsyncMock(return_value=branches)
    return repo


# ---------------------------------------------------------------------------
# Decision rule
# ---------------------------------------------------------------------------


class TestDecide:
    """Tests for the decision rule."""

    def test_equal_to_branch_is_not_due(self):
        decision = decide(_metadata(local=["1.0.0"], branch=["1.2.0"], remote=["1.2.0"]))
        assert decision.version is None

    def test_nothing_local_is_due(self):
        decision = decide(_metadata(remote=["1.0.0"]))
        assert decision.version == "1.0.0"

    def test_remote_older_is_not_due(self):
        decision = decide(_metadata(local=["1.0.0"], remote=["0.9.0"]))
        assert decision.version is None

    def test_remote_newer_than_both_locals(self):
        decision = decide(
            _metadata(local=["1.0.0"], branch=["1.1.0"], remote=["1.0.0", "1.1.0", "1.2.0"])
        )
        assert decision.version == "1.2.0"

    def test_filesystem_ahead_of_branches(self):
        decision = decide(_metadata(local=["2.0.0"], branch=["1.0.0"], remote=["1.5.0"]))
        assert decision.version is None

    def test_no_remote_versions_is_never_due(self):
        assert decide(_metadata(local=["1.0.0"])).version is None

    def test_no_versions_anywhere_is_not_due(self):
        decision = decide(_metadata())
        assert decision.version is None
        assert decision.due is False

    def test_prerelease_below_release_is_not_due(self):
        decision = decide(_metadata(local=["1.0.0"], remote=["1.0.0-rc.1"]))
        assert decision.version is None

    def test_metadata_is_referenced_not_copied(self):
        metadata = _metadata(remote=["1.0.0"])
        assert decide(metadata).metadata is metadata


class TestLatestLocalVersion:
    """Tests for latest_local_version()."""

    def test_picks_greater_of_both(self):
        assert latest_local_version(_metadata(local=["1.0.0"], branch=["1.2.0"])) == "1.2.0"
        assert latest_local_version(_metadata(local=["1.3.0"], branch=["1.2.0"])) == "1.3.0"

    def test_one_side_only(self):
        assert latest_local_version(_metadata(branch=["0.1.0"])) == "0.1.0"
        assert latest_local_version(_metadata(local=["0.2.0"])) == "0.2.0"

    def test_neither(self):
        assert latest_local_version(_metadata()) is None


# ---------------------------------------------------------------------------
# Metadata loading
# ---------------------------------------------------------------------------


class TestLoadMetadata:
    """Tests for load_metadata()."""

    @pytest.mark.asyncio
    async def test_merges_all_sources(self, settings, write_descriptor):
        descriptor = write_descriptor(DESCRIPTOR, versions=("1.0.0", "junk"))
        repo = _repo(["demo/1.1.0", "demo/oops"])

        with patch("cdnsync.sources.get_package_manager", return_value=_manager(["1.2.0"])):
            metadata = await load_metadata(descriptor, settings, repo=repo)

        assert metadata.path == descriptor.parent
        assert metadata.local_versions == ["1.0.0"]
        assert metadata.branch_versions == ["1.1.0"]
        assert metadata.remote_versions == ["1.2.0"]
        assert metadata.files.include == ["*.js"]

    @pytest.mark.asyncio
    async def test_descriptor_cannot_supply_computed_fields(self, settings, write_descriptor):
        descriptor = write_descriptor(
            {
                **DESCRIPTOR,
                "path": "/elsewhere",
                "localVersions": ["9.9.9"],
                "branch_versions": "not-a-list",
            }
        )

        with patch("cdnsync.sources.get_package_manager", return_value=_manager([])):
            metadata = await load_metadata(descriptor, settings, repo=_repo([]))

        assert metadata.path == descriptor.parent
        assert metadata.local_versions == []
        assert metadata.branch_versions == []

    @pytest.mark.asyncio
    async def test_missing_descriptor(self, settings, tmp_path):
        with pytest.raises(ParseError):
            await load_metadata(tmp_path / "nope" / "update.json", settings, repo=_repo([]))

    @pytest.mark.asyncio
    async def test_malformed_json(self, settings, write_descriptor):
        descriptor = write_descriptor("{not json")
        with pytest.raises(ParseError):
            await load_metadata(descriptor, settings, repo=_repo([]))

    @pytest.mark.asyncio
    async def test_invalid_fields(self, settings, write_descriptor):
        descriptor = write_descriptor({"name": "demo", "packageManager": "github"})
        with pytest.raises(ParseError) as exc_info:
            await load_metadata(descriptor, settings, repo=_repo([]))
        assert exc_info.value.project == "demo"
        assert exc_info.value.stage == "metadata"

    @pytest.mark.asyncio
    async def test_not_an_object(self, settings, write_descriptor):
        descriptor = write_descriptor("[1, 2]")
        with pytest.raises(ParseError):
            await load_metadata(descriptor, settings, repo=_repo([]))

    @pytest.mark.asyncio
    async def test_any_source_failure_fails_whole_load(self, settings, write_descriptor):
        descriptor = write_descriptor(DESCRIPTOR)
        manager = _manager(PackageManagerError("boom"))

        with patch("cdnsync.sources.get_package_manager", return_value=manager):
            with pytest.raises(VersionLookupError, match="boom"):
                await load_metadata(descriptor, settings, repo=_repo(["demo/1.0.0"]))


class TestCheck:
    """Tests for check()."""

    @pytest.mark.asyncio
    async def test_reports_due_version(self, settings, write_descriptor):
        descriptor = write_descriptor(DESCRIPTOR, versions=("1.0.0",))

        with patch("cdnsync.sources.get_package_manager", return_value=_manager(["1.1.0"])):
            decision = await check(descriptor, settings, repo=_repo([]))

        assert decision.version == "1.1.0"
        assert decision.metadata.name == "demo"

    @pytest.mark.asyncio
    async def test_is_idempotent(self, settings, write_descriptor):
        descriptor = write_descriptor(DESCRIPTOR, versions=("1.0.0",))
        repo = _repo(["demo/1.1.0"])

        with patch("cdnsync.sources.get_package_manager", return_value=_manager(["1.2.0"])):
            first = await check(descriptor, settings, repo=repo)
            second = await check(descriptor, settings, repo=repo)

        assert first.version == second.version == "1.2.0"
        assert first.metadata == second.metadata

    @pytest.mark.asyncio
    async def test_propagates_lookup_failure(self, settings, write_descriptor):
        descriptor = write_descriptor(DESCRIPTOR)

        with patch(
            "cdnsync.sources.get_package_manager",
            return_value=_manager(PackageManagerError("offline")),
        ):
            with pytest.raises(VersionLookupError):
                await check(descriptor, settings, repo=_repo([]))
