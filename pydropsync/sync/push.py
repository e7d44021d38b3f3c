"""Local-to-remote reconciliation by periodic snapshot diffing."""

import logging
import threading
from dataclasses import dataclass, field
from typing import Optional

from .location import Location, PathMapper
from .loop import SyncLoop
from .operations import SyncOperations
from .scanner import DirectoryScanner, Snapshot

logger = logging.getLogger(__name__)


@dataclass
class SnapshotDiff:
    """Differences between two snapshots of the local tree."""

    removed: list[Location] = field(default_factory=list)
    """Entries that disappeared"""

    changed: list[Location] = field(default_factory=list)
    """Entries that are new or whose modification time increased"""

    def is_empty(self) -> bool:
        return not self.removed and not self.changed


def diff_snapshots(previous: Snapshot, current: Snapshot) -> SnapshotDiff:
    """Compare two snapshots.

    Args:
        previous: Snapshot of the last cycle
        current: Fresh snapshot

    Returns:
        SnapshotDiff with both lists sorted by remote path, parents first
    """
    removed = [loc for loc in previous if loc not in current]
    changed = [
        loc
        for loc, mtime_ns in current.items()
        if loc not in previous or mtime_ns > previous[loc]
    ]
    return SnapshotDiff(
        removed=sorted(removed, key=lambda loc: loc.remote),
        changed=sorted(changed, key=lambda loc: loc.remote),
    )


class PushLoop(SyncLoop):
    """Pushes local changes to the remote store.

    The first step only records a baseline snapshot. Every later step takes
    a new snapshot, deletes remotely what vanished locally, and offers every
    new or modified entry (with its descendants) for upload.
    """

    name = "push"

    def __init__(
        self,
        operations: SyncOperations,
        mapper: PathMapper,
        interval: float = 1.0,
        scanner: Optional[DirectoryScanner] = None,
    ):
        """Initialize push loop.

        Args:
            operations: Sync operations used for uploads and deletes
            mapper: Path mapper of the sync pair
            interval: Seconds between two steps
            scanner: Directory scanner (created from ``mapper`` if omitted)
        """
        self.operations = operations
        self.mapper = mapper
        self.interval = interval
        self.scanner = scanner or DirectoryScanner(mapper)
        self._previous: Optional[Snapshot] = None

    @property
    def previous(self) -> Optional[Snapshot]:
        """Snapshot of the last step, None before the baseline."""
        return self._previous

    def start(self) -> None:
        self._previous = None
        self.mapper.root().ensure_directory()

    def pause(self, stop_event: threading.Event) -> None:
        stop_event.wait(self.interval)

    def step(self, stop_event: Optional[threading.Event] = None) -> dict:
        """Run one snapshot-diff cycle.

        Returns:
            Dictionary with ``uploads`` and ``deletes`` counts
        """
        stats = {"uploads": 0, "deletes": 0}
        current = self.scanner.snapshot()

        if self._previous is None:
            logger.debug(f"Baseline snapshot with {len(current)} entries")
            self._previous = current
            return stats

        previous = self._previous
        diff = diff_snapshots(previous, current)
        if not diff.is_empty():
            logger.debug(
                f"Local changes: {len(diff.removed)} removed, "
                f"{len(diff.changed)} changed"
            )

        handled: set[Location] = set()
        for removed in diff.removed:
            for location in self.scanner.descendants_in(previous, removed):
                if location in handled:
                    continue
                handled.add(location)
                if self.operations.delete(location):
                    stats["deletes"] += 1

        for changed in diff.changed:
            if changed in handled:
                continue
            for location in changed.all_descendants():
                if location in handled:
                    continue
                handled.add(location)
                if self.operations.upload(location):
                    stats["uploads"] += 1

        self._previous = current

        if stats["uploads"] or stats["deletes"]:
            logger.info(
                "Pushed %d upload(s) and %d delete(s)",
                stats["uploads"],
                stats["deletes"],
            )
        return stats
