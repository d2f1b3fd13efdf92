"""
Remote file manager interface.

Tools never talk HTTP themselves; they call a RemoteFileManager. This keeps
the invocation lifecycle testable with a mock adapter and lets other
transports slot in.

Contract:
    - Every operation accepts the caller's cancellation token unmodified
      and fails fast (OperationCancelledError) once it fires
    - Failures are raised as exceptions; the invocation converts them
    - list_files() is a lazy, one-shot iterator that may raise before the
      first element or mid-sequence
"""

from abc import ABC, abstractmethod
from collections.abc import Iterator
from pathlib import Path

from depot.cancellation import CancellationToken
from depot.schema import RemoteFile


class RemoteFileManager(ABC):
    """
    Abstract transport for the remote file store.

    Subclasses must implement upload(), download() and list_files().
    """

    @abstractmethod
    def upload(
        self,
        local_path: Path | str,
        display_name: str | None = None,
        token: CancellationToken | None = None,
    ) -> RemoteFile:
        """
        Upload a local file.

        Args:
            local_path: Absolute path of the file to upload
            display_name: Optional human-readable name for the remote copy
            token: Cancellation token from the caller

        Returns:
            Descriptor of the stored file
        """
        ...

    @abstractmethod
    def download(
        self,
        file_id: str,
        local_path: Path | str,
        token: CancellationToken | None = None,
    ) -> None:
        """
        Download a remote file to local_path (written as a side effect).

        Args:
            file_id: Remote identifier ("files/abc", "abc", or a file URI)
            local_path: Absolute target path; its parent must exist
            token: Cancellation token from the caller
        """
        ...

    @abstractmethod
    def list_files(
        self,
        page_size: int | None = None,
        token: CancellationToken | None = None,
    ) -> Iterator[RemoteFile]:
        """
        Iterate over stored files.

        Args:
            page_size: Per-page size hint forwarded to the service
            token: Cancellation token from the caller

        Returns:
            One-shot iterator over file descriptors, in service order
        """
        ...

    def close(self) -> None:
        """Release transport resources. The default does nothing."""
