"""
Tools module for Depot.

This module provides the declarative tool interface and the built-in
file manager tools.

Built-in tools:
    - upload_file: Upload a workspace file to the Gemini API file manager
    - download_file: Download a remote file into the workspace
    - list_files: List remote files

Architecture:
    - DeclarativeTool: Validates raw parameters and builds invocations
    - ToolInvocation: Validated, single-use unit of work
    - BuildResult: Tagged outcome of try_build()
    - ToolRegistry: Lookup by name and schema advertisement

Sandbox and auth-mode checks happen in build(), before an invocation
exists; execute() reports every failure through ToolResult.
"""

from depot.tools.base import BuildResult, DeclarativeTool, ToolInvocation
from depot.tools.download import DownloadFileParams, DownloadFileTool
from depot.tools.listing import ListFilesParams, ListFilesTool
from depot.tools.registry import ToolRegistry, create_registry
from depot.tools.upload import UploadFileParams, UploadFileTool

__all__ = [
    "BuildResult",
    "DeclarativeTool",
    "DownloadFileParams",
    "DownloadFileTool",
    "ListFilesParams",
    "ListFilesTool",
    "ToolInvocation",
    "ToolRegistry",
    "UploadFileParams",
    "UploadFileTool",
    "create_registry",
]
