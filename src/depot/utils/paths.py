"""Path helpers for human-readable invocation descriptions."""

import os
from pathlib import Path

SHORTEN_MAX_LEN = 35


def make_relative(target: Path | str, root: Path | str) -> str:
    """
    Express target relative to root when it lies under root.

    Paths outside root are returned unchanged (absolute). The root itself
    becomes ".".
    """
    target_path = Path(target)
    root_path = Path(root)
    try:
        relative = target_path.relative_to(root_path)
    except ValueError:
        return str(target_path)
    return str(relative) or "."


def shorten_path(path: str, max_len: int = SHORTEN_MAX_LEN) -> str:
    """
    Shorten a path for display by eliding middle segments.

    Keeps the first segment and as many trailing segments as fit:
        "/home/user/projects/depot/src/depot/tools/base.py"
            -> "/home/.../src/depot/tools/base.py"

    A single segment that is still too long is truncated from the left.
    """
    if len(path) <= max_len:
        return path

    sep = os.sep
    leading = sep if path.startswith(sep) else ""
    parts = [p for p in path.split(sep) if p]
    if len(parts) <= 1:
        return "..." + path[-(max_len - 3):]

    head = leading + parts[0]
    tail: list[str] = []
    for part in reversed(parts[1:]):
        candidate = sep.join([head, "...", part, *tail])
        if len(candidate) > max_len and tail:
            break
        tail.insert(0, part)

    shortened = sep.join([head, "...", *tail])
    if len(shortened) > max_len:
        return "..." + path[-(max_len - 3):]
    return shortened
