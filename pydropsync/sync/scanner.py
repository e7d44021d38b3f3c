"""Directory scanning utilities for sync operations."""

import logging
import time
from collections.abc import Iterator
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .location import Location, PathMapper

logger = logging.getLogger(__name__)

Snapshot = dict["Location", int]
"""Every local entry under the root mapped to its mtime in nanoseconds"""


def walk_local(directory: Path) -> Iterator[Path]:
    """Yield a directory and everything below it, parents before children.

    A directory that cannot be listed is logged and treated as empty, so
    one unreadable branch never aborts the whole walk.

    Args:
        directory: Directory to walk

    Yields:
        ``directory`` itself, then each descendant path
    """
    yield directory

    try:
        children = sorted(directory.iterdir())
    except OSError as e:
        logger.warning(f"Cannot list {directory}: {e}")
        return

    for item in children:
        # Symlinked directories are listed but not followed
        if item.is_dir() and not item.is_symlink():
            yield from walk_local(item)
        else:
            yield item


class DirectoryScanner:
    """Takes snapshots of the local side of a sync pair.

    Examples:
        >>> scanner = DirectoryScanner(PathMapper(pair))
        >>> snapshot = scanner.snapshot()
        >>> # {Location(local='/data', remote='/Apps/mirror'): 1700000000000000000, ...}
    """

    def __init__(self, mapper: "PathMapper"):
        """Initialize directory scanner.

        Args:
            mapper: Path mapper of the sync pair to scan
        """
        self.mapper = mapper

    def snapshot(self) -> Snapshot:
        """Walk the local root and record each entry's modification time.

        Entries that vanish between listing and stat are left out.

        Returns:
            Mapping of Location to local mtime in nanoseconds
        """
        scan_start = time.time()
        root = self.mapper.root()
        snapshot: Snapshot = {}

        for path in walk_local(root.local):
            try:
                mtime_ns = path.stat().st_mtime_ns
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.warning(f"Cannot stat {path}: {e}")
                continue
            snapshot[self.mapper.from_local(path)] = mtime_ns

        logger.debug(
            "Local scan took %.2fs for %d entries",
            time.time() - scan_start,
            len(snapshot),
        )
        return snapshot

    def descendants_in(self, snapshot: Snapshot, location: "Location") -> list["Location"]:
        """Entries of ``snapshot`` at or below ``location``, sorted by path.

        Used to expand a removed directory from what was known about it
        before it vanished from disk.
        """
        prefix = f"{location.remote}/"
        return sorted(
            (
                loc
                for loc in snapshot
                if loc.remote == location.remote or loc.remote.startswith(prefix)
            ),
            key=lambda loc: loc.remote,
        )
