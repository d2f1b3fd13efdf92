"""
Unit tests for the path sandbox.

Tests cover:
- Rule order (first rejection wins)
- Exact rejection messages
- READ and WRITE access checks
- Workspace context de-duplication
"""

from pathlib import Path

import pytest

from depot.sandbox import IgnoreService, PathAccess, PathSandbox, WorkspaceContext
from depot.schema import DepotConfig


@pytest.fixture
def sandbox(config: DepotConfig) -> PathSandbox:
    return PathSandbox.from_config(config)


class TestWorkspaceContext:
    def test_deduplicates_in_order(self, workspace: Path, temp_dir: Path) -> None:
        context = WorkspaceContext([workspace, temp_dir, workspace])
        assert context.directories == (workspace, temp_dir)

    def test_nested_path_is_within(self, workspace: Path) -> None:
        context = WorkspaceContext([workspace])
        assert context.is_path_within_workspace(workspace / "docs" / "notes.txt")
        assert context.is_path_within_workspace(workspace)

    def test_sibling_prefix_is_not_within(self, workspace: Path) -> None:
        """'/x/project2' must not count as inside '/x/project'."""
        sibling = workspace.parent / (workspace.name + "2")
        sibling.mkdir()
        context = WorkspaceContext([workspace])
        assert context.is_path_within_workspace(sibling / "file") is False


class TestRuleMessages:
    """Each rule produces its documented message."""

    def test_empty(self, sandbox: PathSandbox) -> None:
        verdict = sandbox.check("", param="absolute_path")
        assert verdict.admissible is False
        assert verdict.reason == "The 'absolute_path' parameter must be non-empty."
        assert verdict.rule == "non_empty"

    def test_relative(self, sandbox: PathSandbox) -> None:
        verdict = sandbox.check("docs/notes.txt")
        assert verdict.reason == (
            "File path must be absolute, but was relative: docs/notes.txt. "
            "You must provide an absolute path."
        )

    def test_relative_uses_label(self, sandbox: PathSandbox) -> None:
        verdict = sandbox.check("out.mp4", label="Download path")
        assert verdict.reason.startswith("Download path must be absolute")

    def test_outside_workspace(self, sandbox: PathSandbox, workspace: Path) -> None:
        verdict = sandbox.check("/etc/passwd")
        assert verdict.reason == (
            f"File path must be within one of the workspace directories: {workspace} "
            f"or within the project temp directory: {workspace / '.temp'}"
        )
        assert verdict.rule == "containment"

    def test_lists_every_workspace_directory(self, workspace: Path, temp_dir: Path) -> None:
        extra = temp_dir / "extra"
        extra.mkdir()
        sandbox = PathSandbox(WorkspaceContext([workspace, extra]), temp_dir / "scratch")
        verdict = sandbox.check("/etc/passwd")
        assert f"{workspace}, {extra}" in verdict.reason

    def test_ignored(self, workspace: Path) -> None:
        config = DepotConfig(target_dir=workspace, ignore_patterns=["*.mp4"])
        sandbox = PathSandbox.from_config(config)
        candidate = str(workspace / "video.mp4")
        verdict = sandbox.check(candidate)
        assert verdict.reason == f"File path '{candidate}' is ignored by .depotignore pattern(s)."
        assert verdict.rule == "ignore"

    def test_missing_file(self, sandbox: PathSandbox, workspace: Path) -> None:
        candidate = str(workspace / "missing.mp4")
        verdict = sandbox.check(candidate, access=PathAccess.READ)
        assert verdict.reason == f"File does not exist: {candidate}"

    def test_directory_is_not_a_file(self, sandbox: PathSandbox, workspace: Path) -> None:
        candidate = str(workspace / "docs")
        verdict = sandbox.check(candidate, access=PathAccess.READ)
        assert verdict.reason == f"Path is not a file: {candidate}"

    def test_missing_parent(self, sandbox: PathSandbox, workspace: Path) -> None:
        candidate = workspace / "nope" / "out.mp4"
        verdict = sandbox.check(str(candidate), access=PathAccess.WRITE)
        assert verdict.reason == f"Parent directory does not exist: {workspace / 'nope'}"

    def test_write_target_is_directory(self, sandbox: PathSandbox, workspace: Path) -> None:
        verdict = sandbox.check(
            str(workspace / "docs"),
            label="Download path",
            access=PathAccess.WRITE,
        )
        assert verdict.admissible is False
        assert verdict.reason.startswith("Download path is a directory")


class TestRuleOrder:
    """The first failing rule decides the message."""

    def test_relative_reported_before_containment(self, sandbox: PathSandbox) -> None:
        assert sandbox.check("../../etc/passwd").rule == "absolute"

    def test_containment_reported_before_existence(self, sandbox: PathSandbox) -> None:
        verdict = sandbox.check("/definitely/not/here.txt", access=PathAccess.READ)
        assert verdict.rule == "containment"

    def test_ignore_reported_before_existence(self, workspace: Path) -> None:
        sandbox = PathSandbox.from_config(
            DepotConfig(target_dir=workspace, ignore_patterns=["*.secret"])
        )
        verdict = sandbox.check(str(workspace / "missing.secret"), access=PathAccess.READ)
        assert verdict.rule == "ignore"

    def test_ignore_can_be_skipped(self, workspace: Path) -> None:
        sandbox = PathSandbox.from_config(
            DepotConfig(target_dir=workspace, ignore_patterns=["*.mp4"])
        )
        verdict = sandbox.check(
            str(workspace / "out.mp4"),
            access=PathAccess.WRITE,
            check_ignore=False,
        )
        assert verdict.admissible is True


class TestAdmitted:
    def test_readable_file(self, sandbox: PathSandbox, workspace: Path) -> None:
        assert sandbox.check(str(workspace / "video.mp4"), access=PathAccess.READ).admissible

    def test_new_write_target(self, sandbox: PathSandbox, workspace: Path) -> None:
        assert sandbox.check(str(workspace / "new.mp4"), access=PathAccess.WRITE).admissible

    def test_existing_write_target_is_overwritable(
        self,
        sandbox: PathSandbox,
        workspace: Path,
    ) -> None:
        assert sandbox.check(str(workspace / "video.mp4"), access=PathAccess.WRITE).admissible

    def test_temp_dir_outside_workspace(self, workspace: Path, temp_dir: Path) -> None:
        scratch = temp_dir / "scratch"
        scratch.mkdir()
        (scratch / "frame.png").write_bytes(b"png")
        sandbox = PathSandbox(WorkspaceContext([workspace]), scratch)
        verdict = sandbox.check(str(scratch / "frame.png"), access=PathAccess.READ)
        assert verdict.admissible is True

    def test_no_ignore_service(self, workspace: Path) -> None:
        sandbox = PathSandbox(WorkspaceContext([workspace]), workspace / ".temp", ignore=None)
        assert sandbox.check(str(workspace / "video.mp4")).admissible

    def test_explicit_ignore_service(self, workspace: Path) -> None:
        sandbox = PathSandbox(
            WorkspaceContext([workspace]),
            workspace / ".temp",
            ignore=IgnoreService(workspace, ["docs/"]),
        )
        assert sandbox.check(str(workspace / "docs" / "notes.txt")).admissible is False
