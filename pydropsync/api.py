"""API client for Dropbox."""

from __future__ import annotations

import json
import posixpath
import random
import socket
import threading
import time
import uuid
from datetime import datetime
from typing import Any

import httpx

from .config import config
from .exceptions import (
    DropboxAPIError,
    DropboxAuthenticationError,
    DropboxConfigError,
    DropboxDownloadError,
    DropboxInvalidResponseError,
    DropboxNetworkError,
    DropboxNotFoundError,
    DropboxPermissionError,
    DropboxRateLimitError,
    DropboxUploadError,
)
from .models import (
    FileMetadata,
    ListFolderResult,
    LongpollResult,
    Metadata,
    WriteMode,
    metadata_from_dict,
)
from .utils import (
    DEFAULT_LONGPOLL_READ_TIMEOUT,
    DEFAULT_MAX_RETRIES,
    DEFAULT_RETRY_DELAY,
    format_api_timestamp,
)


def client_identifier() -> str:
    """User agent naming this machine, so sessions can be told apart."""
    try:
        hostname = socket.gethostname()
    except OSError:
        hostname = ""
    return f"pydropsync-{hostname or f'unknown-{uuid.uuid4()}'}"


class DropboxClient:
    """Client for the Dropbox HTTP API (v2)."""

    def __init__(
        self,
        api_key: str | None = None,
        api_url: str | None = None,
        content_url: str | None = None,
        notify_url: str | None = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        timeout: float = 30.0,
        longpoll_timeout: float = DEFAULT_LONGPOLL_READ_TIMEOUT,
    ):
        """Initialize Dropbox API client.

        Args:
            api_key: Optional access token (uses config if not provided)
            api_url: Optional RPC endpoint base URL
            content_url: Optional content upload/download base URL
            notify_url: Optional long-poll base URL
            max_retries: Maximum number of retry attempts (default: 3)
            retry_delay: Initial delay between retries in seconds (default: 1.0)
            timeout: Request timeout in seconds (default: 30.0)
            longpoll_timeout: Read timeout of long-poll requests in seconds
        """
        self.api_key = api_key or config.api_key
        self.api_url = (api_url or config.api_url).rstrip("/")
        self.content_url = (content_url or config.content_url).rstrip("/")
        self.notify_url = (notify_url or config.notify_url).rstrip("/")
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.timeout = timeout
        self.longpoll_timeout = longpoll_timeout

        if not self.api_key:
            raise DropboxConfigError(
                "Access token not configured. "
                "Please set DROPBOX_ACCESS_TOKEN environment variable."
            )

        self.user_agent = client_identifier()
        self._client: httpx.Client | None = None
        self._longpoll_client: httpx.Client | None = None
        self._client_lock = threading.Lock()

    def _get_client(self) -> httpx.Client:
        """Get or create the httpx client for authenticated requests.

        Shared by the batch workers, so creation happens under a lock.
        """
        with self._client_lock:
            if self._client is None or self._client.is_closed:
                self._client = httpx.Client(
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "User-Agent": self.user_agent,
                    },
                    timeout=httpx.Timeout(self.timeout),
                    follow_redirects=True,
                )
            return self._client

    def _get_longpoll_client(self) -> httpx.Client:
        """Get or create the httpx client for long polls.

        Long polls are unauthenticated and hold the connection open for
        minutes, so they get their own client and read timeout.
        """
        with self._client_lock:
            if self._longpoll_client is None or self._longpoll_client.is_closed:
                self._longpoll_client = httpx.Client(
                    headers={"User-Agent": self.user_agent},
                    timeout=httpx.Timeout(self.timeout, read=self.longpoll_timeout),
                )
            return self._longpoll_client

    def close(self) -> None:
        """Close the clients and release connections."""
        with self._client_lock:
            for client in (self._client, self._longpoll_client):
                if client is not None and not client.is_closed:
                    client.close()
            self._client = None
            self._longpoll_client = None

    def __enter__(self) -> DropboxClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # =========================
    # Request plumbing
    # =========================

    def _calculate_retry_delay(self, attempt: int) -> float:
        """Calculate delay before next retry using exponential backoff.

        Args:
            attempt: Current attempt number (0-based)

        Returns:
            Delay in seconds
        """
        base_delay = self.retry_delay * (2**attempt)
        # Add jitter: +/- 25% of base delay
        jitter = base_delay * 0.25 * (2 * random.random() - 1)
        return base_delay + jitter

    @staticmethod
    def _error_summary(response: httpx.Response) -> str:
        """Extract the API's ``error_summary`` from an error response."""
        try:
            if response.content:
                data = response.json()
                if isinstance(data, dict):
                    return str(data.get("error_summary") or data.get("error") or "")
        except ValueError:
            pass
        return response.text[:200] if response.content else ""

    def _handle_http_error(
        self, e: httpx.HTTPStatusError, attempt: int
    ) -> tuple[Exception, bool]:
        """Map an HTTP error to an exception and decide whether to retry.

        Args:
            e: The HTTP error exception
            attempt: Current attempt number

        Returns:
            Tuple of (exception to raise, should_retry)
        """
        status_code = e.response.status_code
        summary = self._error_summary(e.response)

        if status_code == 401:
            raise DropboxAuthenticationError(
                f"Invalid or expired access token: {summary}"
            ) from e
        elif status_code == 403:
            raise DropboxPermissionError(
                f"Access forbidden - check your permissions: {summary}"
            ) from e
        elif status_code == 409:
            # Endpoint-specific errors, e.g. "path/not_found/.."
            if "not_found" in summary:
                raise DropboxNotFoundError(f"Path not found: {summary}") from e
            raise DropboxAPIError(f"API request failed: {summary}") from e
        elif status_code == 429:
            error = DropboxRateLimitError("Rate limit exceeded - please try again later")
            return (error, attempt < self.max_retries)

        error_msg = f"API request failed with status {status_code}"
        if summary:
            error_msg = f"{error_msg}: {summary}"
        error = DropboxAPIError(error_msg)
        # Retry on 5xx server errors
        should_retry = 500 <= status_code < 600 and attempt < self.max_retries
        return (error, should_retry)

    def _send(
        self,
        url: str,
        client: httpx.Client | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        """POST a request with retry logic.

        Args:
            url: Full endpoint URL
            client: httpx client to use (defaults to the authenticated one)
            **kwargs: Additional arguments passed to httpx

        Returns:
            The successful response

        Raises:
            DropboxAPIError: If the request fails after all retries
        """
        client = client or self._get_client()
        last_exception: Exception | None = None

        for attempt in range(self.max_retries + 1):
            try:
                response = client.post(url, **kwargs)
                response.raise_for_status()
                return response

            except httpx.HTTPStatusError as e:
                error, should_retry = self._handle_http_error(e, attempt)
                last_exception = error

                if should_retry:
                    delay = self._calculate_retry_delay(attempt)
                    # Special handling for rate limits: use Retry-After header
                    if isinstance(error, DropboxRateLimitError):
                        retry_after = e.response.headers.get("Retry-After")
                        if retry_after and retry_after.isdigit():
                            delay = float(retry_after)
                    time.sleep(delay)
                    continue
                raise error from e
            except httpx.RequestError as e:
                error = DropboxNetworkError(f"Network error: {e}")
                last_exception = error
                if attempt < self.max_retries:
                    time.sleep(self._calculate_retry_delay(attempt))
                    continue
                raise error from e

        # If we get here, we've exhausted all retries
        if last_exception:
            raise last_exception
        raise DropboxAPIError("Request failed after all retry attempts")

    @staticmethod
    def _parse_json(response: httpx.Response) -> Any:
        if not response.content:
            return {}
        content_type = response.headers.get("Content-Type", "")
        if "application/json" not in content_type:
            raise DropboxInvalidResponseError(
                f"Unexpected response type: {content_type}"
            )
        try:
            return response.json()
        except ValueError as e:
            raise DropboxInvalidResponseError("Invalid JSON response from server") from e

    def _rpc(self, route: str, payload: dict[str, Any] | None = None) -> Any:
        """Call an RPC-style endpoint with a JSON body."""
        response = self._send(f"{self.api_url}/{route}", json=payload)
        return self._parse_json(response)

    @staticmethod
    def _api_arg(arg: dict[str, Any]) -> str:
        # HTTP headers must stay ASCII; json.dumps escapes the rest
        return json.dumps(arg, ensure_ascii=True)

    # =========================
    # Metadata Operations
    # =========================

    def get_metadata(self, path: str) -> Metadata:
        """Get metadata for a single path.

        Raises:
            DropboxNotFoundError: If nothing exists at ``path``
        """
        data = self._rpc(
            "files/get_metadata",
            {"path": path, "include_deleted": False, "include_media_info": False},
        )
        return metadata_from_dict(data)

    def find(self, parent_path: str, name: str) -> Metadata | None:
        """Look up the entry called ``name`` inside ``parent_path``.

        Args:
            parent_path: Remote folder ("" for the root)
            name: Exact entry name

        Returns:
            Metadata of the entry, or None if it does not exist
        """
        try:
            return self.get_metadata(posixpath.join(parent_path or "/", name))
        except DropboxNotFoundError:
            return None

    def list_folder(
        self,
        path: str,
        recursive: bool = False,
        include_deleted: bool = False,
        include_mounted_folders: bool = True,
    ) -> ListFolderResult:
        """List the first page of a folder.

        Args:
            path: Remote folder ("" for the root)
            recursive: Include everything below the folder
            include_deleted: Include entries for deleted files and folders
            include_mounted_folders: Include shared folders mounted in the tree

        Returns:
            First page; use list_folder_continue while ``has_more``
        """
        data = self._rpc(
            "files/list_folder",
            {
                "path": path,
                "recursive": recursive,
                "include_deleted": include_deleted,
                "include_mounted_folders": include_mounted_folders,
                "include_media_info": False,
            },
        )
        return ListFolderResult.from_api_response(data)

    def list_folder_continue(self, cursor: str) -> ListFolderResult:
        """Fetch the next page of a listing or of the change feed."""
        data = self._rpc("files/list_folder/continue", {"cursor": cursor})
        return ListFolderResult.from_api_response(data)

    def get_latest_cursor(
        self,
        path: str,
        recursive: bool = False,
        include_deleted: bool = False,
        include_mounted_folders: bool = True,
    ) -> str:
        """Cursor marking the current state of a folder, without listing it."""
        data = self._rpc(
            "files/list_folder/get_latest_cursor",
            {
                "path": path,
                "recursive": recursive,
                "include_deleted": include_deleted,
                "include_mounted_folders": include_mounted_folders,
                "include_media_info": False,
            },
        )
        cursor = data.get("cursor") if isinstance(data, dict) else None
        if not cursor:
            raise DropboxInvalidResponseError(f"No cursor in response: {data}")
        return cursor

    def list_folder_longpoll(self, cursor: str, timeout: int = 30) -> LongpollResult:
        """Wait until the folder behind ``cursor`` changes.

        Args:
            cursor: Cursor from get_latest_cursor or list_folder_continue
            timeout: Seconds the server may hold the request (30-480)

        Returns:
            LongpollResult with ``changes`` and an optional ``backoff``
        """
        response = self._send(
            f"{self.notify_url}/files/list_folder/longpoll",
            client=self._get_longpoll_client(),
            json={"cursor": cursor, "timeout": timeout},
        )
        return LongpollResult.from_api_response(self._parse_json(response))

    # =========================
    # File Operations
    # =========================

    def create_folder(self, path: str) -> Metadata:
        """Create a remote folder (parents are created as needed)."""
        data = self._rpc("files/create_folder_v2", {"path": path, "autorename": False})
        return metadata_from_dict({".tag": "folder", **data.get("metadata", {})})

    def upload(
        self,
        path: str,
        data: bytes,
        client_modified: datetime,
        mode: WriteMode = WriteMode.ADD,
    ) -> Metadata:
        """Upload file content in a single request.

        Args:
            path: Remote file path
            data: File content
            client_modified: Local modification time to store with the file
            mode: ADD to create only, OVERWRITE to replace

        Returns:
            Metadata of the stored file

        Raises:
            DropboxUploadError: If the upload fails
        """
        arg = {
            "path": path,
            "mode": mode.value,
            "autorename": False,
            "client_modified": format_api_timestamp(client_modified),
            "mute": True,
        }
        try:
            response = self._send(
                f"{self.content_url}/files/upload",
                headers={
                    "Dropbox-API-Arg": self._api_arg(arg),
                    "Content-Type": "application/octet-stream",
                },
                content=data,
            )
        except (DropboxAuthenticationError, DropboxPermissionError):
            raise
        except DropboxAPIError as e:
            raise DropboxUploadError(f"Upload of {path} failed: {e}") from e

        return FileMetadata.from_dict(self._parse_json(response))

    def download(self, path: str) -> bytes:
        """Download the content of a remote file.

        Raises:
            DropboxNotFoundError: If the file does not exist
            DropboxDownloadError: If the download fails otherwise
        """
        try:
            response = self._send(
                f"{self.content_url}/files/download",
                headers={"Dropbox-API-Arg": self._api_arg({"path": path})},
            )
        except (
            DropboxAuthenticationError,
            DropboxPermissionError,
            DropboxNotFoundError,
        ):
            raise
        except DropboxAPIError as e:
            raise DropboxDownloadError(f"Download of {path} failed: {e}") from e
        return response.content

    def delete(self, path: str) -> Metadata:
        """Delete a remote file or folder.

        Raises:
            DropboxNotFoundError: If nothing exists at ``path``
        """
        data = self._rpc("files/delete_v2", {"path": path})
        return metadata_from_dict(data.get("metadata", {".tag": "deleted"}))
