"""
Ignore-pattern service.

Reads gitignore-flavoured patterns from an ignore file in the project
root (".depotignore" by default) plus any patterns given in the config,
and answers whether a path is excluded.

Supported syntax:
    - Blank lines and lines starting with # are skipped
    - A trailing / matches directories only
    - A leading / (or a / in the middle) anchors the pattern to the root
    - A leading **/ matches at any depth; a/**/b matches a/b and a/x/y/b
    - A leading ! re-includes a previously ignored path
    - The last matching pattern wins

Matching a directory excludes everything under it.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from fnmatch import fnmatch
from pathlib import Path

from depot.schema import DEFAULT_IGNORE_FILE, DepotConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IgnoreRule:
    """One parsed ignore pattern."""

    source: str
    glob: str
    negated: bool = False
    anchored: bool = False
    dir_only: bool = False

    @classmethod
    def parse(cls, line: str) -> "IgnoreRule | None":
        """Parse one line; returns None for blanks and comments."""
        text = line.strip()
        if not text or text.startswith("#"):
            return None

        negated = text.startswith("!")
        if negated:
            text = text[1:]

        dir_only = text.endswith("/")
        text = text.rstrip("/")

        if text.startswith("**/"):
            text = text[3:]
            anchored = False
        else:
            anchored = "/" in text
            text = text.lstrip("/")

        if not text:
            return None

        return cls(
            source=line.strip(),
            glob=text,
            negated=negated,
            anchored=anchored,
            dir_only=dir_only,
        )

    def matches(self, parts: tuple[str, ...], is_dir: bool) -> bool:
        """
        Check the rule against a root-relative path split into parts.

        Every ancestor prefix is tried, so a rule that matches a parent
        directory matches the whole subtree. Unanchored rules with a /
        (from a leading **/) match any trailing run of segments.
        """
        for i in range(1, len(parts) + 1):
            prefix_is_dir = i < len(parts) or is_dir
            if self.dir_only and not prefix_is_dir:
                continue
            if self.anchored:
                candidates = ["/".join(parts[:i])]
            elif "/" in self.glob:
                candidates = ["/".join(parts[j:i]) for j in range(i)]
            else:
                candidates = [parts[i - 1]]
            if any(self._fnmatch(candidate) for candidate in candidates):
                return True
        return False

    def _fnmatch(self, candidate: str) -> bool:
        # a/**/b also matches a/b
        if fnmatch(candidate, self.glob):
            return True
        return "/**/" in self.glob and fnmatch(candidate, self.glob.replace("/**/", "/"))


class IgnoreService:
    """
    Answers whether paths are excluded by ignore patterns.

    Usage:
        ignore = IgnoreService(Path("/project"), ["*.secret"])
        if ignore.should_ignore("/project/keys/api.secret"):
            ...

    Attributes:
        root: Directory patterns are relative to
        ignore_file_name: Name used in rejection messages
    """

    def __init__(
        self,
        root: Path | str,
        patterns: Iterable[str] = (),
        ignore_file: str | None = DEFAULT_IGNORE_FILE,
    ) -> None:
        self.root = Path(root).resolve()
        self.ignore_file_name = ignore_file or DEFAULT_IGNORE_FILE

        lines: list[str] = []
        if ignore_file:
            lines.extend(self._read_ignore_file(self.root / ignore_file))
        lines.extend(patterns)

        self._rules = [rule for rule in map(IgnoreRule.parse, lines) if rule is not None]

    @classmethod
    def from_config(cls, config: DepotConfig) -> "IgnoreService":
        """Build the ignore service for a config's project root."""
        return cls(config.target_dir, config.ignore_patterns, config.ignore_file)

    @staticmethod
    def _read_ignore_file(path: Path) -> list[str]:
        try:
            return path.read_text(encoding="utf-8").splitlines()
        except FileNotFoundError:
            return []
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Could not read ignore file %s: %s", path, e)
            return []

    @property
    def patterns(self) -> list[str]:
        """The active patterns, in evaluation order."""
        return [rule.source for rule in self._rules]

    def matching_rule(self, path: Path | str) -> IgnoreRule | None:
        """
        Return the rule that decides the path is ignored, if any.

        Paths outside the root are matched by basename only, and only
        against unanchored rules.
        """
        resolved = Path(path).resolve()
        try:
            parts = resolved.relative_to(self.root).parts
            outside_root = False
        except ValueError:
            parts = (resolved.name,)
            outside_root = True

        if not parts:
            return None

        is_dir = resolved.is_dir()
        decision: IgnoreRule | None = None
        for rule in self._rules:
            if outside_root and rule.anchored:
                continue
            if rule.matches(parts, is_dir):
                decision = None if rule.negated else rule
        return decision

    def should_ignore(self, path: Path | str) -> bool:
        """Whether the path is excluded by any ignore pattern."""
        return self.matching_rule(path) is not None

    def __repr__(self) -> str:
        return f"<IgnoreService: {self.root} ({len(self._rules)} patterns)>"
