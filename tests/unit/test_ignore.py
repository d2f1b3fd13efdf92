"""
Unit tests for the ignore-pattern service.

Tests cover:
- Pattern parsing (comments, negation, anchoring, directory-only)
- Matching files and whole subtrees
- Reading the ignore file from the project root
"""

from pathlib import Path

import pytest

from depot.sandbox.ignore import IgnoreRule, IgnoreService


class TestIgnoreRuleParse:
    @pytest.mark.parametrize("line", ["", "   ", "# comment", "/"])
    def test_blank_and_comments(self, line: str) -> None:
        assert IgnoreRule.parse(line) is None

    def test_plain_pattern(self) -> None:
        rule = IgnoreRule.parse("*.log")
        assert rule is not None
        assert rule.glob == "*.log"
        assert rule.anchored is False
        assert rule.negated is False

    def test_negated(self) -> None:
        rule = IgnoreRule.parse("!keep.log")
        assert rule is not None
        assert rule.negated is True
        assert rule.glob == "keep.log"

    def test_directory_only(self) -> None:
        rule = IgnoreRule.parse("build/")
        assert rule is not None
        assert rule.dir_only is True
        assert rule.glob == "build"

    def test_anchored(self) -> None:
        rule = IgnoreRule.parse("/secrets/*.key")
        assert rule is not None
        assert rule.anchored is True
        assert rule.glob == "secrets/*.key"

    def test_double_star_prefix_is_unanchored(self) -> None:
        rule = IgnoreRule.parse("**/cache")
        assert rule is not None
        assert rule.anchored is False
        assert rule.glob == "cache"


class TestIgnoreService:
    """Tests for IgnoreService matching."""

    def test_no_patterns(self, workspace: Path) -> None:
        ignore = IgnoreService(workspace)
        assert ignore.should_ignore(workspace / "video.mp4") is False

    def test_basename_pattern_matches_at_any_depth(self, workspace: Path) -> None:
        ignore = IgnoreService(workspace, ["*.txt"])
        assert ignore.should_ignore(workspace / "docs" / "notes.txt") is True
        assert ignore.should_ignore(workspace / "video.mp4") is False

    def test_directory_pattern_excludes_subtree(self, workspace: Path) -> None:
        ignore = IgnoreService(workspace, ["docs/"])
        assert ignore.should_ignore(workspace / "docs" / "notes.txt") is True

    def test_directory_only_pattern_skips_files(self, workspace: Path) -> None:
        (workspace / "build").write_text("not a directory")
        ignore = IgnoreService(workspace, ["build/"])
        assert ignore.should_ignore(workspace / "build") is False

    def test_anchored_pattern(self, workspace: Path) -> None:
        nested = workspace / "docs" / "docs"
        nested.mkdir()
        (nested / "deep.txt").write_text("x")
        ignore = IgnoreService(workspace, ["/docs/notes.txt"])
        assert ignore.should_ignore(workspace / "docs" / "notes.txt") is True
        assert ignore.should_ignore(nested / "deep.txt") is False

    def test_double_star_prefix_with_directory(self, workspace: Path) -> None:
        """**/dir/file matches at the root and at any depth."""
        (workspace / "logs").mkdir()
        (workspace / "docs" / "logs").mkdir()
        ignore = IgnoreService(workspace, ["**/logs/debug.log"])
        assert ignore.should_ignore(workspace / "logs" / "debug.log") is True
        assert ignore.should_ignore(workspace / "docs" / "logs" / "debug.log") is True
        assert ignore.should_ignore(workspace / "logs" / "info.log") is False

    def test_double_star_prefix_with_glob(self, workspace: Path) -> None:
        ignore = IgnoreService(workspace, ["**/keys/*.pem"])
        assert ignore.should_ignore(workspace / "keys" / "a.pem") is True
        assert ignore.should_ignore(workspace / "docs" / "keys" / "b.pem") is True
        assert ignore.should_ignore(workspace / "docs" / "a.pem") is False

    def test_double_star_in_middle(self, workspace: Path) -> None:
        ignore = IgnoreService(workspace, ["docs/**/notes.txt"])
        assert ignore.should_ignore(workspace / "docs" / "notes.txt") is True
        assert ignore.should_ignore(workspace / "docs" / "a" / "b" / "notes.txt") is True
        assert ignore.should_ignore(workspace / "notes.txt") is False

    def test_unanchored_glob_stays_within_one_segment(self, workspace: Path) -> None:
        """A pattern without / never matches across a separator."""
        ignore = IgnoreService(workspace, ["d*s.txt"])
        assert ignore.should_ignore(workspace / "docs" / "notes.txt") is False

    def test_last_match_wins(self, workspace: Path) -> None:
        ignore = IgnoreService(workspace, ["*.txt", "!notes.txt"])
        assert ignore.should_ignore(workspace / "docs" / "notes.txt") is False

    def test_reads_ignore_file(self, workspace: Path) -> None:
        (workspace / ".depotignore").write_text("# media\n*.mp4\n")
        ignore = IgnoreService(workspace)
        assert ignore.patterns == ["*.mp4"]
        assert ignore.should_ignore(workspace / "video.mp4") is True

    def test_config_patterns_follow_file_patterns(self, workspace: Path) -> None:
        (workspace / ".depotignore").write_text("*.mp4\n")
        ignore = IgnoreService(workspace, ["!video.mp4"])
        assert ignore.patterns == ["*.mp4", "!video.mp4"]
        assert ignore.should_ignore(workspace / "video.mp4") is False

    def test_custom_ignore_file_name(self, workspace: Path) -> None:
        (workspace / ".agentignore").write_text("*.mp4\n")
        ignore = IgnoreService(workspace, ignore_file=".agentignore")
        assert ignore.ignore_file_name == ".agentignore"
        assert ignore.should_ignore(workspace / "video.mp4") is True

    def test_outside_root_uses_basename_and_unanchored_rules(
        self,
        workspace: Path,
        temp_dir: Path,
    ) -> None:
        outside = temp_dir / "secret.key"
        outside.write_text("x")
        ignore = IgnoreService(workspace, ["*.key", "/secret.key"])
        rule = ignore.matching_rule(outside)
        assert rule is not None
        assert rule.source == "*.key"

    def test_root_itself_never_ignored(self, workspace: Path) -> None:
        ignore = IgnoreService(workspace, ["*"])
        assert ignore.should_ignore(workspace) is False
