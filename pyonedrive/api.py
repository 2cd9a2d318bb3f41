"""API client for OneDrive (Microsoft Graph)."""

from __future__ import annotations

import logging
import random
import time
from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager
from typing import TYPE_CHECKING, Any

import httpx

from .config import config
from .exceptions import (
    OneDriveAPIError,
    OneDriveAuthenticationError,
    OneDriveConfigError,
    OneDriveDownloadError,
    OneDriveInvalidResponseError,
    OneDriveNetworkError,
    OneDriveNotFoundError,
    OneDrivePermissionError,
    OneDriveRateLimitError,
)
from .models import ChildrenPage, DriveItem
from .utils import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_MAX_RETRIES,
    DEFAULT_RETRY_DELAY,
    endpoint_path,
)

if TYPE_CHECKING:
    from .sync.scanner import RemoteEntry

logger = logging.getLogger(__name__)


def _parse_error_body(
    response: httpx.Response,
) -> tuple[str | None, str | None, str | None]:
    """Extract (code, message, request_id) from a Graph error response."""
    try:
        data = response.json()
    except ValueError:
        return None, None, None
    if not isinstance(data, dict) or not isinstance(data.get("error"), dict):
        return None, None, None

    error = data["error"]
    inner = error.get("innerError") or {}
    return error.get("code"), error.get("message"), inner.get("request-id")


class OneDriveClient:
    """Client for the OneDrive part of the Microsoft Graph API.

    Authentication is a plain bearer token; acquiring and refreshing it is
    left to the caller.
    """

    def __init__(
        self,
        access_token: str | None = None,
        api_url: str | None = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize the OneDrive client.

        Args:
            access_token: Graph access token (uses config if not provided)
            api_url: Graph base URL (uses config if not provided)
            max_retries: Maximum number of retry attempts (default: 3)
            retry_delay: Initial delay between retries in seconds (default: 1.0)
            timeout: Request timeout in seconds (default: 30.0)
            transport: Optional httpx transport, mainly for tests
        """
        self.access_token = access_token or config.access_token
        self.api_url = (api_url or config.api_url).rstrip("/")
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.timeout = timeout
        self._transport = transport

        if not self.access_token:
            raise OneDriveConfigError(
                "Access token not configured. "
                "Please set ONEDRIVE_ACCESS_TOKEN environment variable."
            )

        self._client: httpx.Client | None = None

    def _get_client(self) -> httpx.Client:
        """Get or create the httpx client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.Client(
                headers={"Authorization": f"Bearer {self.access_token}"},
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    def close(self) -> None:
        """Close the client and release connections."""
        if self._client is not None and not self._client.is_closed:
            self._client.close()
            self._client = None

    def __enter__(self) -> OneDriveClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _calculate_retry_delay(self, attempt: int) -> float:
        """Calculate delay before next retry using exponential backoff.

        Args:
            attempt: Current attempt number (0-based)

        Returns:
            Delay in seconds
        """
        base_delay = self.retry_delay * (2**attempt)
        # +/- 25% jitter to avoid thundering herd
        jitter = base_delay * 0.25 * (2 * random.random() - 1)
        return base_delay + jitter

    def _error_from_response(self, response: httpx.Response) -> OneDriveAPIError:
        """Map an error response to the matching exception."""
        status_code = response.status_code
        code, message, request_id = _parse_error_body(response)

        if status_code == 401:
            cls: type[OneDriveAPIError] = OneDriveAuthenticationError
            default = "Invalid or expired access token"
        elif status_code == 403:
            cls = OneDrivePermissionError
            default = "Access forbidden - check your permissions"
        elif status_code == 404:
            cls = OneDriveNotFoundError
            default = "Item not found"
        elif status_code == 429:
            cls = OneDriveRateLimitError
            default = "Rate limit exceeded - please try again later"
        else:
            cls = OneDriveAPIError
            default = f"API request failed with status {status_code}"

        return cls(message or default, code=code, request_id=request_id)

    def _should_retry(self, error: OneDriveAPIError, status_code: int | None) -> bool:
        if isinstance(error, (OneDriveNetworkError, OneDriveRateLimitError)):
            return True
        return status_code is not None and 500 <= status_code < 600

    def _request(self, method: str, endpoint: str, **kwargs: Any) -> Any:
        """Make an API request with retry logic.

        Args:
            method: HTTP method
            endpoint: Endpoint path relative to the API URL
            **kwargs: Additional arguments passed to httpx

        Returns:
            Decoded JSON body ({} for empty responses)

        Raises:
            OneDriveAPIError: If the request fails after all retries
        """
        url = f"{self.api_url}/{endpoint.lstrip('/')}"
        client = self._get_client()
        last_exception: OneDriveAPIError | None = None

        for attempt in range(self.max_retries + 1):
            status_code: int | None = None
            try:
                response = client.request(method, url, **kwargs)
                status_code = response.status_code
                if status_code > 202:
                    raise self._error_from_response(response)

                content_type = response.headers.get("Content-Type", "")
                if not response.content:
                    return {}
                if "application/json" not in content_type:
                    raise OneDriveInvalidResponseError(
                        f"Unexpected response type: {content_type}"
                    )
                try:
                    return response.json()
                except ValueError as e:
                    raise OneDriveInvalidResponseError(
                        "Invalid JSON response from server"
                    ) from e

            except httpx.RequestError as e:
                error: OneDriveAPIError = OneDriveNetworkError(f"Network error: {e}")
                cause: Exception = e
            except OneDriveInvalidResponseError:
                raise
            except OneDriveAPIError as e:
                error = e
                cause = e

            last_exception = error
            if attempt < self.max_retries and self._should_retry(error, status_code):
                delay = self._calculate_retry_delay(attempt)
                if isinstance(error, OneDriveRateLimitError):
                    retry_after = response.headers.get("Retry-After", "")
                    if retry_after.isdigit():
                        delay = float(retry_after)
                logger.debug(
                    "Retrying %s %s in %.1fs after error: %s",
                    method,
                    endpoint,
                    delay,
                    error,
                )
                time.sleep(delay)
                continue

            if cause is error:
                raise error
            raise error from cause

        # Only reachable with max_retries < 0
        if last_exception:
            raise last_exception
        raise OneDriveAPIError("Request failed after all retry attempts")

    # =========================
    # Item Operations
    # =========================

    def get_drive_item(self, path: str) -> DriveItem:
        """Get metadata of a single item by path.

        Args:
            path: Path relative to the drive root ("" for the root)

        Returns:
            The drive item
        """
        data = self._request("GET", "/me/drive/" + endpoint_path(path))
        return DriveItem.from_dict(data)

    def list_children(
        self, folder_path: str, continuation: str | None = None
    ) -> ChildrenPage:
        """Fetch one page of a folder's children.

        Args:
            folder_path: Folder path relative to the drive root
            continuation: Query portion of a previous page's next link

        Returns:
            The page, with ``continuation`` set if more pages follow
        """
        query = (continuation,) if continuation else ()
        data = self._request(
            "GET", "/me/drive/" + endpoint_path(folder_path, "children", *query)
        )
        return ChildrenPage.from_api_response(data)

    def list_folder(self, folder_path: str) -> list[DriveItem]:
        """List all children of a folder, following pagination.

        Raises:
            OneDriveAPIError: If any page fails
        """
        items: list[DriveItem] = []
        continuation: str | None = None
        while True:
            page = self.list_children(folder_path, continuation)
            items.extend(page.items)
            continuation = page.continuation
            if continuation is None:
                return items

    def get_logged_user(self) -> Any:
        """Return the profile of the token owner."""
        return self._request("GET", "/me")

    # =========================
    # Download Operations
    # =========================

    def _iter_content(
        self, response: httpx.Response, item_id: str, chunk_size: int
    ) -> Iterator[bytes]:
        try:
            for chunk in response.iter_bytes(chunk_size=chunk_size):
                if chunk:
                    yield chunk
        except httpx.RequestError as e:
            raise OneDriveNetworkError(
                f"Network error while downloading {item_id}: {e}"
            ) from e
        except httpx.StreamError as e:
            raise OneDriveDownloadError(f"Download of {item_id} failed: {e}") from e

    @contextmanager
    def download_item(
        self, item_id: str, chunk_size: int = DEFAULT_CHUNK_SIZE
    ) -> Iterator[Iterator[bytes]]:
        """Open a streaming download of an item's content.

        Graph answers with a redirect to a pre-authenticated URL, which is
        followed automatically.

        Args:
            item_id: Drive item id
            chunk_size: Size of yielded chunks

        Yields:
            Iterator of content chunks

        Raises:
            OneDriveDownloadError: If the server rejects the download
            OneDriveNetworkError: On transport failures, also mid-stream
        """
        url = f"{self.api_url}/me/drive/items/{item_id}/content"
        client = self._get_client()

        try:
            with client.stream("GET", url) as response:
                if response.status_code > 202:
                    response.read()
                    error = self._error_from_response(response)
                    raise OneDriveDownloadError(
                        f"Download failed: {error}",
                        code=error.code,
                        request_id=error.request_id,
                    )
                yield self._iter_content(response, item_id, chunk_size)
        except httpx.RequestError as e:
            raise OneDriveNetworkError(
                f"Network error while downloading {item_id}: {e}"
            ) from e

    def download(
        self, entry: RemoteEntry, chunk_size: int = DEFAULT_CHUNK_SIZE
    ) -> AbstractContextManager[Iterator[bytes]]:
        """Open a streaming download for a remote sync entry.

        This is the download half of the remote store interface used by the
        sync engine.
        """
        return self.download_item(entry.id, chunk_size=chunk_size)

    def get_item_content(self, item_id: str) -> bytes:
        """Download an item's content into memory."""
        with self.download_item(item_id) as chunks:
            return b"".join(chunks)
