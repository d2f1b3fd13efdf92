"""
Path sandbox for Depot.

The sandbox is the filesystem trust boundary: every path an agent hands
to a tool is checked here before an invocation is built.

Rules, in order (the first rejection wins, so order is part of the contract):
    1. Path must be non-empty
    2. Path must be absolute
    3. Resolved path must be inside a workspace root or the project temp dir
    4. Path must not be excluded by the ignore service (when requested)
    5. READ access: path must exist and itself be a regular file (not a
       symlink to one)
    6. WRITE access: parent must be an existing directory, and the target
       must not itself be a directory

Security Note:
    Both the candidate and the roots are resolved (symlinks followed)
    before comparison, so a symlink inside the workspace that points
    outside it is rejected by rule 3.
"""

import logging
import stat
from collections.abc import Iterable
from enum import Enum
from pathlib import Path

from depot.sandbox.ignore import IgnoreService
from depot.schema import Admissibility, DepotConfig

logger = logging.getLogger(__name__)


class PathAccess(str, Enum):
    """What a tool intends to do with a path."""

    READ = "read"
    WRITE = "write"
    ANY = "any"


class WorkspaceContext:
    """
    Ordered set of workspace root directories.

    Roots are resolved once at construction and de-duplicated while
    keeping the caller's order.
    """

    def __init__(self, directories: Iterable[Path | str]) -> None:
        roots: list[Path] = []
        for directory in directories:
            resolved = Path(directory).expanduser().resolve()
            if resolved not in roots:
                roots.append(resolved)
        self._roots = tuple(roots)

    @property
    def directories(self) -> tuple[Path, ...]:
        return self._roots

    def is_path_within_workspace(self, path: Path | str) -> bool:
        """Whether the resolved path equals or is nested under any root."""
        resolved = Path(path).resolve()
        return any(_is_within(resolved, root) for root in self._roots)

    def __repr__(self) -> str:
        roots = ", ".join(str(r) for r in self._roots)
        return f"<WorkspaceContext: [{roots}]>"


def _is_within(path: Path, root: Path) -> bool:
    try:
        path.relative_to(root)
        return True
    except ValueError:
        return False


class PathSandbox:
    """
    Decides whether a path is admissible for a tool.

    Usage:
        sandbox = PathSandbox.from_config(config)
        verdict = sandbox.check(
            "/project/data.csv",
            param="absolute_path",
            label="File path",
            access=PathAccess.READ,
        )
        if not verdict.admissible:
            raise ToolValidationError(message=verdict.reason)

    Attributes:
        workspace: The workspace roots
        temp_dir: The project temp directory (always admissible)
        ignore: Ignore-pattern service, or None to skip rule 4
    """

    def __init__(
        self,
        workspace: WorkspaceContext,
        temp_dir: Path | str,
        ignore: IgnoreService | None = None,
    ) -> None:
        self.workspace = workspace
        self.temp_dir = Path(temp_dir).expanduser().resolve()
        self.ignore = ignore

    @classmethod
    def from_config(cls, config: DepotConfig) -> "PathSandbox":
        """Build the sandbox described by a config."""
        return cls(
            WorkspaceContext(config.workspace_roots),
            config.project_temp_dir,
            IgnoreService.from_config(config),
        )

    def check(
        self,
        candidate: str,
        *,
        param: str = "path",
        label: str = "File path",
        access: PathAccess = PathAccess.ANY,
        check_ignore: bool = True,
    ) -> Admissibility:
        """
        Check a path against every sandbox rule, in order.

        Args:
            candidate: The path as supplied by the agent
            param: Parameter name, used in the empty-path message
            label: How the path is named in messages ("File path", "Download path")
            access: READ requires an existing regular file; WRITE requires
                an existing parent directory
            check_ignore: Whether rule 4 applies

        Returns:
            Admissibility verdict; on denial, reason is the message to show
        """
        if not candidate or not candidate.strip():
            return Admissibility.deny(
                f"The '{param}' parameter must be non-empty.",
                rule="non_empty",
            )

        path = Path(candidate)
        if not path.is_absolute():
            return Admissibility.deny(
                f"{label} must be absolute, but was relative: {candidate}. "
                "You must provide an absolute path.",
                rule="absolute",
            )

        try:
            resolved = path.resolve()
        except (OSError, RuntimeError) as e:
            return Admissibility.deny(f"Invalid path: {e}", rule="invalid_path")

        if not self.is_contained(resolved):
            directories = ", ".join(str(d) for d in self.workspace.directories)
            return Admissibility.deny(
                f"{label} must be within one of the workspace directories: "
                f"{directories} or within the project temp directory: {self.temp_dir}",
                rule="containment",
            )

        if check_ignore and self.ignore is not None:
            rule = self.ignore.matching_rule(resolved)
            if rule is not None:
                logger.debug("Path %s ignored by pattern %r", resolved, rule.source)
                return Admissibility.deny(
                    f"{label} '{candidate}' is ignored by "
                    f"{self.ignore.ignore_file_name} pattern(s).",
                    rule="ignore",
                )

        if access is PathAccess.READ:
            return self._check_readable(path, candidate)
        if access is PathAccess.WRITE:
            return self._check_writable(path, candidate, label)
        return Admissibility.allow("Path is within the sandbox", rule="containment")

    def is_contained(self, path: Path | str) -> bool:
        """Whether the resolved path is under the temp dir or a workspace root."""
        resolved = Path(path).resolve()
        if _is_within(resolved, self.temp_dir):
            return True
        return self.workspace.is_path_within_workspace(resolved)

    def _check_readable(self, path: Path, candidate: str) -> Admissibility:
        try:
            if not path.exists():
                return Admissibility.deny(f"File does not exist: {candidate}", rule="exists")
            if not stat.S_ISREG(path.lstat().st_mode):
                return Admissibility.deny(f"Path is not a file: {candidate}", rule="is_file")
        except OSError:
            return Admissibility.deny(
                f"File does not exist or cannot be accessed: {candidate}",
                rule="exists",
            )
        return Admissibility.allow("File is readable within the sandbox", rule="is_file")

    def _check_writable(self, path: Path, candidate: str, label: str) -> Admissibility:
        parent = path.parent
        try:
            if not parent.exists():
                return Admissibility.deny(
                    f"Parent directory does not exist: {parent}",
                    rule="parent_exists",
                )
            if not parent.is_dir():
                return Admissibility.deny(
                    f"Parent path is not a directory: {parent}",
                    rule="parent_exists",
                )
            if path.is_dir():
                return Admissibility.deny(f"{label} is a directory: {candidate}", rule="not_dir")
        except OSError as e:
            return Admissibility.deny(
                f"Parent directory cannot be accessed: {parent} ({e})",
                rule="parent_exists",
            )
        return Admissibility.allow("Target is writable within the sandbox", rule="parent_exists")

    def __repr__(self) -> str:
        return f"<PathSandbox: {self.workspace!r}, temp={self.temp_dir}>"
