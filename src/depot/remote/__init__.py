"""
Remote file manager adapters for Depot.

Tools call a RemoteFileManager; GeminiFileManager is the httpx-backed
implementation for the Gemini API Files service.
"""

from depot.remote.base import RemoteFileManager
from depot.remote.gemini import GeminiFileManager, normalize_file_id

__all__ = [
    "GeminiFileManager",
    "RemoteFileManager",
    "normalize_file_id",
]
