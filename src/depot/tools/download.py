"""
download_file: download a file from the Gemini API file manager.

Validation order:
    file_uri non-empty -> download_path non-empty -> auth mode -> sandbox
    (containment, parent directory exists)

The target itself need not exist; it is the write target. Ignore patterns
are not applied, and the remote source is not checked (it is remote).
"""

from pydantic import BaseModel, ConfigDict, Field

from depot.cancellation import CancellationToken
from depot.errors import error_message
from depot.sandbox import PathAccess
from depot.schema import ToolResult
from depot.tools.base import DeclarativeTool, ToolInvocation
from depot.utils.paths import make_relative, shorten_path


class DownloadFileParams(BaseModel):
    """Parameters for download_file."""

    model_config = ConfigDict(frozen=True, extra="forbid", strict=True)

    file_uri: str = Field(
        ...,
        description=(
            "The URI or name of the file to download "
            "(e.g., 'files/abc123' or the full file URI)."
        ),
    )
    download_path: str = Field(
        ...,
        description=(
            "The absolute local path where the file should be saved "
            "(e.g., '/home/user/project/output.mp4'). The parent directory must exist."
        ),
    )


class DownloadFileInvocation(ToolInvocation[DownloadFileParams]):
    """Downloads one remote file to a validated local path."""

    tool_name = "download_file"

    @property
    def description(self) -> str:
        relative = make_relative(self.params.download_path, self.config.target_dir)
        return f"Downloading {self.params.file_uri} to {shorten_path(relative)}"

    def _run(self, token: CancellationToken | None) -> ToolResult:
        self._client.download(self.params.file_uri, self.params.download_path, token)
        message = (
            f"Successfully downloaded file: {self.params.file_uri}\n"
            f"Saved to: {self.params.download_path}"
        )
        return ToolResult.ok(message)

    def failure_message(self, error: Exception) -> str:
        return f"Error downloading file '{self.params.file_uri}': {error_message(error)}"


class DownloadFileTool(DeclarativeTool[DownloadFileParams]):
    """
    Download a remote file into the workspace.

    Arguments:
        file_uri (str): Remote identifier or URI (required)
        download_path (str): Absolute local target path (required)

    Returns:
        On success: Confirmation with the identifier and target path
        On failure: "Error downloading file ..." with kind remote_operation_failed
    """

    name = "download_file"
    display_name = "DownloadFile"
    description = (
        "Downloads a file from the Gemini API file manager to a local path. Use the "
        "file URI or name returned by upload_file or list_files. The download path "
        "must be absolute and inside the workspace or the project temp directory. "
        "Note: This tool is only available when using Gemini API authentication "
        "(not Vertex AI)."
    )
    params_model = DownloadFileParams
    capability = "download"

    def validate_params(self, params: DownloadFileParams) -> None:
        self.require_non_empty(params, "file_uri")
        self.require_non_empty(params, "download_path")
        self.check_capability(params)
        self.check_path(
            params,
            "download_path",
            label="Download path",
            access=PathAccess.WRITE,
            check_ignore=False,
        )

    def create_invocation(self, params: DownloadFileParams) -> DownloadFileInvocation:
        return DownloadFileInvocation(params, self.config, self.client)
