"""Shared helpers for Depot."""

from depot.utils.paths import make_relative, shorten_path

__all__ = [
    "make_relative",
    "shorten_path",
]
