"""Remote-to-local reconciliation driven by the change feed."""

import logging
import threading
from typing import Optional

from .location import PathMapper
from .loop import SyncLoop
from .operations import SyncOperations
from .remote import RemoteStore

logger = logging.getLogger(__name__)


class PullLoop(SyncLoop):
    """Long-polls the remote change feed and mirrors every change locally.

    The cursor starts at the latest state on every run; changes made while
    the loop was not running are caught up by the batch pull instead.
    """

    name = "pull"

    def __init__(
        self,
        client: RemoteStore,
        operations: SyncOperations,
        mapper: PathMapper,
        longpoll_timeout: int = 120,
    ):
        """Initialize pull loop.

        Args:
            client: Remote store client
            operations: Sync operations used to apply changes
            mapper: Path mapper of the sync pair
            longpoll_timeout: Server-side wait budget per poll (seconds)
        """
        self.client = client
        self.operations = operations
        self.mapper = mapper
        self.longpoll_timeout = longpoll_timeout
        self.cursor: Optional[str] = None

    def start(self) -> None:
        """Obtain a cursor for the current remote state."""
        self.cursor = self.client.get_latest_cursor(
            self.mapper.root().remote,
            recursive=True,
            include_deleted=True,
            include_mounted_folders=True,
        )
        logger.debug("Pull loop starting from latest cursor")

    def step(self, stop_event: Optional[threading.Event] = None) -> int:
        """Wait for remote changes and apply them.

        Args:
            stop_event: Makes the server-requested backoff interruptible

        Returns:
            Number of feed entries applied
        """
        if self.cursor is None:
            self.start()

        result = self.client.list_folder_longpoll(
            self.cursor, timeout=self.longpoll_timeout
        )

        # The poll may outlive the cycle that started it
        if stop_event is not None and stop_event.is_set():
            logger.debug("Pull loop stopped during long poll, discarding result")
            return 0

        applied = 0
        if result.changes:
            applied = self._drain_changes()

        if result.backoff:
            logger.debug(f"Server requested {result.backoff}s backoff")
            if stop_event is None:
                stop_event = threading.Event()
            stop_event.wait(result.backoff)

        return applied

    def _drain_changes(self) -> int:
        """Page through the feed from the current cursor until caught up."""
        applied = 0
        while True:
            page = self.client.list_folder_continue(self.cursor)
            for metadata in page.entries:
                logger.debug(
                    f"Remote change: {type(metadata).__name__} {metadata.path}"
                )
                self.operations.apply_remote_entry(self.mapper, metadata)
                applied += 1
            self.cursor = page.cursor
            if not page.has_more:
                break

        logger.info("Applied %d remote change(s)", applied)
        return applied
