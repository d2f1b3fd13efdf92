"""
Pytest configuration and fixtures for Depot tests.

This module provides shared fixtures used across unit, integration,
and security tests.
"""

import tempfile
from pathlib import Path
from typing import Generator
from unittest.mock import MagicMock

import pytest

from depot.remote.base import RemoteFileManager
from depot.schema import DepotConfig, RemoteFile


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files (symlinks resolved)."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()


@pytest.fixture
def workspace(temp_dir: Path) -> Path:
    """A project root with a file, a subdirectory and a temp carve-out."""
    root = temp_dir / "project"
    root.mkdir()
    (root / "video.mp4").write_bytes(b"\x00" * 128)
    (root / "docs").mkdir()
    (root / "docs" / "notes.txt").write_text("hello")
    (root / ".temp").mkdir()
    return root


@pytest.fixture
def config(workspace: Path) -> DepotConfig:
    """Gemini API key config rooted at the workspace."""
    return DepotConfig(
        target_dir=workspace,
        temp_dir=workspace / ".temp",
        api_key="test-key",
    )


@pytest.fixture
def client() -> MagicMock:
    """A mock remote file manager."""
    return MagicMock(spec=RemoteFileManager)


@pytest.fixture
def sample_remote_file() -> RemoteFile:
    """A fully populated remote file descriptor."""
    return RemoteFile(
        name="files/abc123",
        uri="https://generativelanguage.googleapis.com/v1beta/files/abc123",
        display_name="demo video",
        mime_type="video/mp4",
        size_bytes=128,
        state="ACTIVE",
        create_time="2024-05-01T12:00:00Z",
    )
