"""
list_files: list files stored in the Gemini API file manager.

Validation order:
    page_size positive (when given) -> auth mode

The adapter's iterator is exhausted in order; results are not re-sorted.
"""

from pydantic import BaseModel, ConfigDict, Field

from depot.cancellation import CancellationToken
from depot.errors import ErrorKind, error_message
from depot.schema import RemoteFile, ToolResult
from depot.tools.base import DeclarativeTool, ToolInvocation

NO_FILES_MESSAGE = "No files found in the Gemini API file manager."


class ListFilesParams(BaseModel):
    """Parameters for list_files."""

    model_config = ConfigDict(frozen=True, extra="forbid", strict=True)

    page_size: int | None = Field(
        default=None,
        description=(
            "Optional: Maximum number of files to return per page. "
            "If not specified, the service default is used."
        ),
    )


def format_file_entry(index: int, remote: RemoteFile) -> str:
    """Render one 1-indexed listing entry."""
    size = f"{remote.size_bytes} bytes" if remote.size_bytes is not None else "unknown"
    return (
        f"{index}. {remote.display_name or 'N/A'}\n"
        f"   URI: {remote.uri or remote.name or 'N/A'}\n"
        f"   MIME Type: {remote.mime_type or 'unknown'}\n"
        f"   Size: {size}\n"
        f"   State: {remote.state or 'unknown'}\n"
        f"   Created: {remote.create_time or 'unknown'}"
    )


class ListFilesInvocation(ToolInvocation[ListFilesParams]):
    """Lists remote files."""

    tool_name = "list_files"
    failure_kind = ErrorKind.LISTING_FAILED

    @property
    def description(self) -> str:
        return "Listing uploaded files from Gemini API"

    def _run(self, token: CancellationToken | None) -> ToolResult:
        files = list(self._client.list_files(self.params.page_size, token))

        if not files:
            return ToolResult.ok(NO_FILES_MESSAGE)

        entries = "\n\n".join(
            format_file_entry(index, remote) for index, remote in enumerate(files, start=1)
        )
        message = (
            f"Found {len(files)} file(s) in Gemini API file manager:\n"
            "\n"
            f"{entries}\n"
            "\n"
            "You can reference these files in your prompts using their URI, "
            "or download them using the download_file tool."
        )
        return ToolResult.ok(message)

    def failure_message(self, error: Exception) -> str:
        return f"Error listing files from Gemini API: {error_message(error)}"


class ListFilesTool(DeclarativeTool[ListFilesParams]):
    """
    List files in the remote file manager.

    Arguments:
        page_size (int): Positive per-page size hint (optional)

    Returns:
        On success: Numbered entries, or "No files found ..." when empty
        On failure: "Error listing files ..." with kind listing_failed
    """

    name = "list_files"
    display_name = "ListFiles"
    description = (
        "Lists all files currently stored in the Gemini API file manager. This shows "
        "files that have been previously uploaded and are available for use in "
        "conversations. Each file entry includes its URI, display name, MIME type, "
        "size, and upload date. Note: This tool is only available when using Gemini "
        "API authentication (not Vertex AI)."
    )
    params_model = ListFilesParams
    capability = "listing"

    def validate_params(self, params: ListFilesParams) -> None:
        if params.page_size is not None and params.page_size <= 0:
            self.reject("page_size must be a positive number", params)
        self.check_capability(params)

    def create_invocation(self, params: ListFilesParams) -> ListFilesInvocation:
        return ListFilesInvocation(params, self.config, self.client)
