"""
Sandbox module for Depot.

Every filesystem path an agent supplies is checked here before a tool
invocation is built. A path is admissible iff it is absolute, lies inside
a workspace root or the project temp directory, and is not excluded by an
ignore pattern.

Key concepts:
    - WorkspaceContext: The ordered set of workspace roots
    - IgnoreService: Gitignore-style exclusion patterns
    - PathSandbox: Applies the rules in a fixed order
    - Admissibility: The verdict (admit/deny + reason)
"""

from depot.sandbox.engine import PathAccess, PathSandbox, WorkspaceContext
from depot.sandbox.ignore import IgnoreRule, IgnoreService

__all__ = [
    "IgnoreRule",
    "IgnoreService",
    "PathAccess",
    "PathSandbox",
    "WorkspaceContext",
]
