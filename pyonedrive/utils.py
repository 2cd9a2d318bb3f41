"""Utility functions for OneDrive access."""

import itertools
from datetime import datetime
from typing import Optional

# =============================================================================
# Constants for file operations
# =============================================================================

# Number of parallel download workers
DEFAULT_MAX_WORKERS: int = 5

# Chunk size used when streaming downloads and hashing files (64 KB)
DEFAULT_CHUNK_SIZE: int = 64 * 1024

# Retry configuration for transient errors
DEFAULT_MAX_RETRIES: int = 3
DEFAULT_RETRY_DELAY: float = 1.0  # seconds


# =============================================================================
# Endpoint helpers
# =============================================================================


def endpoint_query(*query: str) -> str:
    """Join raw query fragments into a query string.

    Examples:
        >>> endpoint_query()
        ''
        >>> endpoint_query("$top=2", "$skiptoken=abc")
        '?$top=2&$skiptoken=abc'
    """
    if not query:
        return ""
    return "?" + "&".join(query)


def endpoint_select(*names: str) -> str:
    """Build a ``$select`` query fragment.

    Examples:
        >>> endpoint_select("id", "name")
        '$select=id,name'
        >>> endpoint_select()
        ''
    """
    if not names:
        return ""
    return "$select=" + ",".join(names)


def endpoint_path(path: str, endpoint: str = "", *query: str) -> str:
    """Build a drive-relative endpoint for a path.

    Args:
        path: Folder or file path relative to the drive root, without
            leading or trailing slashes ("" is the root)
        endpoint: Optional sub-resource such as "children"
        *query: Raw query fragments

    Examples:
        >>> endpoint_path("Music/mp3", "children")
        'root:/Music/mp3:/children'
        >>> endpoint_path("", "children", "$top=10")
        'root/children?$top=10'
        >>> endpoint_path("Music")
        'root:/Music'
    """
    path = path.strip("/")
    if path == "":
        result = "root/" + endpoint if endpoint else "root"
    else:
        result = "root:/" + path
        if endpoint:
            result += ":/" + endpoint
    return result + endpoint_query(*query)


def split_next_link(next_link: str) -> Optional[str]:
    """Return only the query portion of an ``@odata.nextLink``.

    Examples:
        >>> split_next_link("https://graph/x/children?$skiptoken=abc&$top=2")
        '$skiptoken=abc&$top=2'
        >>> split_next_link("https://graph/x/children") is None
        True
    """
    if "?" not in next_link:
        return None
    return next_link.split("?", 1)[1] or None


# =============================================================================
# Timestamp parsing utilities
# =============================================================================


def parse_iso_timestamp(timestamp_str: Optional[str]) -> Optional[datetime]:
    """Parse an ISO 8601 timestamp as returned by Graph.

    Args:
        timestamp_str: Timestamp such as "2025-01-15T10:30:00.123Z"

    Returns:
        Timezone-aware datetime, or None if missing or unparsable
    """
    if not timestamp_str:
        return None

    if timestamp_str.endswith("Z"):
        timestamp_str = timestamp_str[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(timestamp_str)
    except ValueError:
        # Graph may send 7 fractional digits, fromisoformat wants at most 6
        if "." in timestamp_str:
            head, _, tail = timestamp_str.partition(".")
            digits = "".join(itertools.takewhile(str.isdigit, tail))
            zone = tail[len(digits) :]
            try:
                return datetime.fromisoformat(f"{head}.{digits[:6]}{zone}")
            except ValueError:
                return None
        return None


# =============================================================================
# Size formatting utilities
# =============================================================================


def format_size(size_bytes: int) -> str:
    """Format file size in human-readable format.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted size string (e.g., "1.5 MB", "256 B")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / 1024 / 1024:.1f} MB"
    else:
        return f"{size_bytes / 1024 / 1024 / 1024:.1f} GB"
