"""Utility functions for pydropsync."""

from datetime import datetime, timezone
from typing import Optional

# =============================================================================
# Constants for sync operations
# =============================================================================

# Period between two local snapshots in the push loop
DEFAULT_PUSH_INTERVAL: float = 1.0

# Delay before the supervisor restarts a failed cycle
DEFAULT_RESTART_DELAY: float = 10.0

# Server-side wait budget for a change-feed long poll (seconds)
DEFAULT_LONGPOLL_TIMEOUT: int = 120

# Read timeout for the long-poll HTTP client; must exceed the poll budget
# plus the up to 90 seconds of jitter the server adds
DEFAULT_LONGPOLL_READ_TIMEOUT: float = 300.0

# Upper bound on concurrent downloads during the initial batch pull
DEFAULT_BATCH_WORKERS: int = 8

# Maximum random delay before submitting each batch download (seconds)
DEFAULT_BATCH_JITTER: float = 0.01

# Pause between two listing pages in the batch pull (seconds)
DEFAULT_BATCH_PAGE_PAUSE: float = 0.1

# Retry configuration for transient errors
DEFAULT_MAX_RETRIES: int = 3
DEFAULT_RETRY_DELAY: float = 1.0  # seconds


# =============================================================================
# Timestamp utilities
# =============================================================================


def parse_iso_timestamp(timestamp_str: Optional[str]) -> Optional[datetime]:
    """Parse an ISO 8601 timestamp returned by the API.

    Args:
        timestamp_str: Timestamp string (e.g., "2025-01-15T10:30:00Z")

    Returns:
        Timezone-aware datetime in UTC or None if parsing fails
    """
    if not timestamp_str:
        return None

    try:
        # The 'Z' suffix indicates UTC time
        if timestamp_str.endswith("Z"):
            timestamp_str = timestamp_str[:-1] + "+00:00"
        dt = datetime.fromisoformat(timestamp_str)
    except (ValueError, AttributeError):
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_api_timestamp(dt: datetime) -> str:
    """Format a datetime the way the API expects ``client_modified``.

    The API only accepts second precision in UTC with a ``Z`` suffix.

    Examples:
        >>> format_api_timestamp(datetime(2025, 1, 15, 10, 30, 5, 999, timezone.utc))
        '2025-01-15T10:30:05Z'
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def timestamp_from_ns(mtime_ns: int) -> datetime:
    """Convert a filesystem ``st_mtime_ns`` value to an aware UTC datetime."""
    return datetime.fromtimestamp(mtime_ns / 1_000_000_000, tz=timezone.utc)


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
