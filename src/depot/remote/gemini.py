"""
Gemini API Files client.

Implements RemoteFileManager over the Gemini REST API using httpx:
    - upload: resumable protocol ("start", then "upload, finalize")
    - list_files: GET /v1beta/files, following nextPageToken
    - download: GET /v1beta/files/{id}:download?alt=media, streamed to disk

Cancellation:
    The token is polled before every request, between upload chunks,
    between list pages and between download chunks. No retries are
    attempted; the first failure is raised to the invocation.

Downloads are written to a temporary file in the target directory and
moved into place only when complete, so a failed or cancelled download
never leaves a partial file at the target path.
"""

import logging
import mimetypes
import os
import tempfile
from collections.abc import Iterator
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import httpx
from pydantic import ValidationError

from depot.cancellation import CancellationToken, check_cancelled
from depot.errors import RemoteApiError, RemoteRequestError, RemoteResponseError
from depot.remote.base import RemoteFileManager
from depot.schema import DEFAULT_BASE_URL, AuthMode, DepotConfig, RemoteFile

logger = logging.getLogger(__name__)

API_VERSION = "v1beta"
UPLOAD_CHUNK_SIZE = 256 * 1024
DOWNLOAD_CHUNK_SIZE = 64 * 1024


def normalize_file_id(file_id: str) -> str:
    """
    Normalize a remote identifier to the "files/<id>" resource name.

    Accepts "files/abc", "abc", or a full file URI such as
    "https://generativelanguage.googleapis.com/v1beta/files/abc".

    Raises:
        ValueError: If the identifier is empty or a URI without a files/ segment
    """
    text = file_id.strip()
    if not text:
        msg = "File identifier is empty"
        raise ValueError(msg)

    if "://" in text:
        path = urlparse(text).path
        index = path.find("files/")
        if index < 0:
            msg = f"Not a file URI: {file_id}"
            raise ValueError(msg)
        text = path[index:]

    text = text.split(":", 1)[0].rstrip("/")
    if not text.startswith("files/"):
        text = f"files/{text}"
    return text


class GeminiFileManager(RemoteFileManager):
    """
    Gemini API file manager over httpx.

    Usage:
        with GeminiFileManager(api_key="...") as files:
            remote = files.upload("/project/video.mp4", "demo video")
            for f in files.list_files(page_size=20):
                print(f.name)

    Attributes:
        base_url: Root URL of the API
    """

    def __init__(
        self,
        api_key: str | None = None,
        access_token: str | None = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 60.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        headers: dict[str, str] = {}
        if api_key:
            headers["x-goog-api-key"] = api_key
        elif access_token:
            headers["Authorization"] = f"Bearer {access_token}"

        self.base_url = base_url.rstrip("/")
        self._client = httpx.Client(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout,
            follow_redirects=True,
            transport=transport,
        )

    @classmethod
    def from_config(
        cls,
        config: DepotConfig,
        transport: httpx.BaseTransport | None = None,
    ) -> "GeminiFileManager":
        """Create a client using the config's credentials and endpoint."""
        api_key = None
        access_token = None
        if config.auth_mode is AuthMode.LOGIN_WITH_GOOGLE:
            access_token = config.access_token
        else:
            api_key = config.resolved_api_key()

        return cls(
            api_key=api_key,
            access_token=access_token,
            base_url=config.base_url,
            timeout=float(config.timeout_seconds),
            transport=transport,
        )

    # =========================================================================
    # RemoteFileManager
    # =========================================================================

    def upload(
        self,
        local_path: Path | str,
        display_name: str | None = None,
        token: CancellationToken | None = None,
    ) -> RemoteFile:
        """Upload a file with the resumable protocol."""
        path = Path(local_path)
        check_cancelled(token, "upload")

        size = path.stat().st_size
        mime_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        metadata: dict[str, Any] = {"file": {}}
        if display_name:
            metadata["file"]["displayName"] = display_name

        start = self._send(
            "POST",
            f"/upload/{API_VERSION}/files",
            operation="upload",
            token=token,
            headers={
                "X-Goog-Upload-Protocol": "resumable",
                "X-Goog-Upload-Command": "start",
                "X-Goog-Upload-Header-Content-Length": str(size),
                "X-Goog-Upload-Header-Content-Type": mime_type,
            },
            json=metadata,
        )

        upload_url = start.headers.get("x-goog-upload-url")
        if not upload_url:
            raise RemoteResponseError(
                message="Upload session URL missing from response",
                operation="upload",
            )

        finish = self._send(
            "POST",
            upload_url,
            operation="upload",
            token=token,
            headers={
                "Content-Length": str(size),
                "X-Goog-Upload-Offset": "0",
                "X-Goog-Upload-Command": "upload, finalize",
            },
            content=self._iter_file(path, token),
        )

        payload = self._json(finish, "upload")
        remote = self._parse_file(payload.get("file", payload), "upload")
        logger.info("Uploaded %s as %s", path, remote.name)
        return remote

    def download(
        self,
        file_id: str,
        local_path: Path | str,
        token: CancellationToken | None = None,
    ) -> None:
        """Stream a file's media to local_path."""
        name = normalize_file_id(file_id)
        target = Path(local_path)
        check_cancelled(token, "download")

        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{target.name}.",
            suffix=".part",
            dir=target.parent,
        )
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as out:
                url = f"/{API_VERSION}/{name}:download"
                logger.debug("GET %s (stream)", url)
                try:
                    with self._client.stream("GET", url, params={"alt": "media"}) as response:
                        self._raise_for_status(response, "download")
                        for chunk in response.iter_bytes(DOWNLOAD_CHUNK_SIZE):
                            check_cancelled(token, "download")
                            out.write(chunk)
                except httpx.RequestError as e:
                    raise self._request_error(e, "download") from e
            os.replace(tmp_path, target)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise

        logger.info("Downloaded %s to %s", name, target)

    def list_files(
        self,
        page_size: int | None = None,
        token: CancellationToken | None = None,
    ) -> Iterator[RemoteFile]:
        """Lazily iterate over every page of stored files."""
        page_token: str | None = None
        while True:
            params: dict[str, Any] = {}
            if page_size is not None:
                params["pageSize"] = page_size
            if page_token:
                params["pageToken"] = page_token

            response = self._send(
                "GET",
                f"/{API_VERSION}/files",
                operation="list",
                token=token,
                params=params,
            )
            payload = self._json(response, "list")

            files = payload.get("files", [])
            if not isinstance(files, list):
                raise RemoteResponseError(
                    message="Expected 'files' to be a list",
                    operation="list",
                )
            for item in files:
                yield self._parse_file(item, "list")

            page_token = payload.get("nextPageToken")
            if not page_token:
                break

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    def __enter__(self) -> "GeminiFileManager":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # =========================================================================
    # Helpers
    # =========================================================================

    def _send(
        self,
        method: str,
        url: str,
        *,
        operation: str,
        token: CancellationToken | None,
        **kwargs: Any,
    ) -> httpx.Response:
        check_cancelled(token, operation)
        logger.debug("%s %s", method, url)
        try:
            response = self._client.request(method, url, **kwargs)
        except httpx.RequestError as e:
            raise self._request_error(e, operation) from e
        self._raise_for_status(response, operation)
        return response

    @staticmethod
    def _request_error(error: httpx.RequestError, operation: str) -> RemoteRequestError:
        detail = str(error) or type(error).__name__
        if isinstance(error, httpx.TimeoutException):
            return RemoteRequestError(
                message=f"Request timed out: {detail}",
                operation=operation,
                underlying_error=detail,
            )
        return RemoteRequestError(operation=operation, underlying_error=detail)

    @staticmethod
    def _raise_for_status(response: httpx.Response, operation: str) -> None:
        if not response.is_error:
            return

        response.read()
        api_message = ""
        try:
            body = response.json()
            if isinstance(body, dict) and isinstance(body.get("error"), dict):
                api_message = str(body["error"].get("message", ""))
        except ValueError:
            pass
        if not api_message:
            api_message = response.text.strip()[:200]

        raise RemoteApiError(
            operation=operation,
            status_code=response.status_code,
            api_message=api_message,
        )

    @staticmethod
    def _json(response: httpx.Response, operation: str) -> dict[str, Any]:
        try:
            payload = response.json()
        except ValueError as e:
            raise RemoteResponseError(
                message=f"Response is not valid JSON: {e}",
                operation=operation,
            ) from e
        if not isinstance(payload, dict):
            raise RemoteResponseError(
                message="Expected a JSON object in response",
                operation=operation,
            )
        return payload

    @staticmethod
    def _parse_file(item: Any, operation: str) -> RemoteFile:
        try:
            return RemoteFile.model_validate(item)
        except ValidationError as e:
            raise RemoteResponseError(
                message=f"Malformed file descriptor: {e.error_count()} validation error(s)",
                operation=operation,
            ) from e

    @staticmethod
    def _iter_file(path: Path, token: CancellationToken | None) -> Iterator[bytes]:
        with path.open("rb") as f:
            while True:
                chunk = f.read(UPLOAD_CHUNK_SIZE)
                if not chunk:
                    break
                check_cancelled(token, "upload")
                yield chunk

    def __repr__(self) -> str:
        return f"<GeminiFileManager: {self.base_url}>"
