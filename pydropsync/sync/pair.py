"""Sync pair: the local and remote roots being mirrored, plus loop tuning."""

from dataclasses import dataclass, field
from pathlib import Path

from ..utils import (
    DEFAULT_BATCH_JITTER,
    DEFAULT_BATCH_PAGE_PAUSE,
    DEFAULT_BATCH_WORKERS,
    DEFAULT_LONGPOLL_TIMEOUT,
    DEFAULT_PUSH_INTERVAL,
    DEFAULT_RESTART_DELAY,
)


def normalize_remote_root(remote: str) -> str:
    """Normalize a remote root path.

    The store addresses its own root as the empty string, so ``"/"``
    becomes ``""``; any other path keeps its leading slash and loses a
    trailing one.

    Raises:
        ValueError: If the path is not absolute

    Examples:
        >>> normalize_remote_root("/")
        ''
        >>> normalize_remote_root("/Apps/mirror/")
        '/Apps/mirror'
    """
    if remote in ("", "/"):
        return ""
    if not remote.startswith("/"):
        raise ValueError(f"Remote path must be absolute: {remote}")
    return remote.rstrip("/")


@dataclass(frozen=True)
class SyncPair:
    """A local directory mirrored against a remote folder.

    Examples:
        >>> pair = SyncPair(Path("/data"), "/Apps/mirror")
        >>> pair.remote
        '/Apps/mirror'
    """

    local: Path
    """Absolute local root directory"""

    remote: str
    """Absolute remote root path ("" for the store root)"""

    push_interval: float = DEFAULT_PUSH_INTERVAL
    """Seconds between two local snapshots"""

    restart_delay: float = DEFAULT_RESTART_DELAY
    """Seconds to back off before restarting a failed cycle"""

    longpoll_timeout: int = DEFAULT_LONGPOLL_TIMEOUT
    """Server-side wait budget of a change-feed long poll"""

    max_workers: int = DEFAULT_BATCH_WORKERS
    """Concurrent downloads during the initial batch pull"""

    batch_jitter: float = DEFAULT_BATCH_JITTER
    """Maximum random delay before each batch download is submitted"""

    batch_page_pause: float = field(default=DEFAULT_BATCH_PAGE_PAUSE, repr=False)
    """Pause between two listing pages of the batch pull"""

    def __post_init__(self) -> None:
        object.__setattr__(self, "remote", normalize_remote_root(self.remote))
        if self.max_workers < 1:
            raise ValueError("max_workers must be at least 1")
