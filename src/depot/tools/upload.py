"""
upload_file: upload a local file to the Gemini API file manager.

Validation order:
    absolute_path non-empty -> auth mode -> sandbox (containment, ignore
    patterns, file exists and is a regular file)
"""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from depot.cancellation import CancellationToken
from depot.errors import error_message
from depot.sandbox import PathAccess
from depot.schema import ToolResult
from depot.tools.base import DeclarativeTool, ToolInvocation
from depot.utils.paths import make_relative, shorten_path


class UploadFileParams(BaseModel):
    """Parameters for upload_file."""

    model_config = ConfigDict(frozen=True, extra="forbid", strict=True)

    absolute_path: str = Field(
        ...,
        description=(
            "The absolute path to the file to upload "
            "(e.g., '/home/user/project/video.mp4'). Relative paths are not supported."
        ),
    )
    display_name: str | None = Field(
        default=None,
        description=(
            "Optional: A human-readable display name for the uploaded file. "
            "If not provided, the filename will be used."
        ),
    )


class UploadFileInvocation(ToolInvocation[UploadFileParams]):
    """Uploads one validated file."""

    tool_name = "upload_file"

    @property
    def description(self) -> str:
        relative = make_relative(self.params.absolute_path, self.config.target_dir)
        return f"Uploading {shorten_path(relative)} to Gemini API"

    def _run(self, token: CancellationToken | None) -> ToolResult:
        remote = self._client.upload(
            self.params.absolute_path,
            self.params.display_name,
            token,
        )

        display_name = remote.display_name or Path(self.params.absolute_path).name
        uri = remote.uri or remote.name
        size = f"{remote.size_bytes} bytes" if remote.size_bytes is not None else "unknown"

        message = (
            f"Successfully uploaded file: {display_name}\n"
            f"File URI: {uri}\n"
            f"MIME Type: {remote.mime_type or 'unknown'}\n"
            f"Size: {size}\n"
            f"State: {remote.state or 'unknown'}\n"
            "\n"
            "You can now reference this file in your prompts using the file URI."
        )
        return ToolResult.ok(message)

    def failure_message(self, error: Exception) -> str:
        return f"Error uploading file '{self.params.absolute_path}': {error_message(error)}"


class UploadFileTool(DeclarativeTool[UploadFileParams]):
    """
    Upload a local file to the remote file manager.

    Arguments:
        absolute_path (str): Absolute path of a regular file inside the
            workspace or project temp directory (required)
        display_name (str): Name for the remote copy (optional)

    Returns:
        On success: Remote URI, MIME type, size and state
        On failure: "Error uploading file ..." with kind remote_operation_failed
    """

    name = "upload_file"
    display_name = "UploadFile"
    description = (
        "Uploads a local file to the Gemini API file manager. This allows you to use "
        "large files (videos, audio, images, documents) in conversations without "
        "embedding them directly. The uploaded file will be stored in the Gemini API "
        "and can be referenced by its URI in subsequent prompts. Note: This tool is "
        "only available when using Gemini API authentication (not Vertex AI)."
    )
    params_model = UploadFileParams
    capability = "upload"

    def validate_params(self, params: UploadFileParams) -> None:
        self.require_non_empty(params, "absolute_path")
        self.check_capability(params)
        self.check_path(
            params,
            "absolute_path",
            label="File path",
            access=PathAccess.READ,
            check_ignore=True,
        )

    def create_invocation(self, params: UploadFileParams) -> UploadFileInvocation:
        return UploadFileInvocation(params, self.config, self.client)
