"""Bidirectional mapping between local and remote paths.

A :class:`Location` is one entry of the mirror seen from both sides: the
local filesystem path and the remote store path. Locations are recomputed
on demand from the roots of a :class:`~pydropsync.sync.pair.SyncPair` and
are identified by their remote path alone.
"""

import logging
import posixpath
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Union

from ..models import Metadata
from ..utils import timestamp_from_ns
from .hasher import hash_file
from .pair import SyncPair
from .scanner import walk_local

logger = logging.getLogger(__name__)

EPOCH = datetime.fromtimestamp(0, tz=timezone.utc)


@dataclass(frozen=True, eq=False)
class Location:
    """A local path and its remote counterpart."""

    local: Path
    """Absolute local path"""

    remote: str
    """Absolute remote path ("" is the store root)"""

    mapper: "PathMapper" = field(repr=False)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Location) and self.remote == other.remote

    def __hash__(self) -> int:
        return hash(self.remote)

    def __repr__(self) -> str:
        return f"Location(local={str(self.local)!r}, remote={self.remote!r})"

    @property
    def name(self) -> str:
        """Last component of the remote path."""
        return posixpath.basename(self.remote)

    @property
    def relative_path(self) -> str:
        """Path below the sync root, with forward slashes ("" for the root)."""
        root = self.mapper.pair.remote
        return self.remote[len(root) :].lstrip("/")

    # Local filesystem queries

    def exists(self) -> bool:
        return self.local.exists()

    def is_dir(self) -> bool:
        return self.local.is_dir()

    def is_hidden(self) -> bool:
        """Whether this entry or one of its parents below the root is a dot file."""
        return any(part.startswith(".") for part in self.relative_path.split("/"))

    def mtime_ns(self) -> int:
        """Local modification time in nanoseconds, 0 if the entry is absent."""
        try:
            return self.local.stat().st_mtime_ns
        except FileNotFoundError:
            return 0

    def modified_time(self) -> datetime:
        """Local modification time as an aware UTC datetime.

        Returns the Unix epoch if the entry does not exist.
        """
        mtime_ns = self.mtime_ns()
        return timestamp_from_ns(mtime_ns) if mtime_ns else EPOCH

    def content_hash(self) -> str:
        """Content hash of the local file, or "" if there is none."""
        if not self.local.is_file():
            return ""
        return hash_file(self.local)

    # Path helpers

    def remote_parent(self) -> str:
        """Remote path of the parent folder.

        The store names its root "", so a parent of "/" maps to "".
        """
        if not self.remote:
            return ""
        parent = posixpath.dirname(self.remote)
        return "" if parent == "/" else parent

    def ensure_parent_directory(self) -> bool:
        """Create the local directory chain this entry lives in.

        For a directory that is the directory itself, for anything else its
        parent.

        Returns:
            True if a directory had to be created
        """
        target = self.local if self.is_dir() else self.local.parent
        if target.is_dir():
            return False
        target.mkdir(parents=True, exist_ok=True)
        return True

    def ensure_directory(self) -> bool:
        """Create this entry as a local directory.

        Returns:
            True if the directory had to be created
        """
        if self.local.is_dir():
            return False
        self.local.mkdir(parents=True, exist_ok=True)
        return True

    def all_descendants(self) -> list["Location"]:
        """This entry plus, for a directory, everything below it."""
        if not self.is_dir():
            return [self]
        return [self.mapper.from_local(path) for path in walk_local(self.local)]


class PathMapper:
    """Builds :class:`Location` objects for one sync pair.

    Examples:
        >>> mapper = PathMapper(SyncPair(Path("/data"), "/Apps/mirror"))
        >>> mapper.from_local(Path("/data/docs/a.txt")).remote
        '/Apps/mirror/docs/a.txt'
        >>> mapper.from_remote("/apps/MIRROR/docs/a.txt").local
        PosixPath('/data/docs/a.txt')
    """

    def __init__(self, pair: SyncPair):
        self.pair = pair

    def root(self) -> Location:
        return Location(local=self.pair.local, remote=self.pair.remote, mapper=self)

    def from_local(self, path: Union[Path, str]) -> Location:
        """Location of a local path below the local root.

        Raises:
            ValueError: If the path is outside the local root
        """
        path = Path(path)
        relative = path.relative_to(self.pair.local).as_posix()
        if relative == ".":
            return self.root()
        return Location(
            local=path, remote=f"{self.pair.remote}/{relative}", mapper=self
        )

    def from_remote(self, path: str) -> Location:
        """Location of a remote path below the remote root.

        The root prefix is matched case-insensitively, like the store does.

        Raises:
            ValueError: If the path is outside the remote root
        """
        root = self.pair.remote
        if path.lower() == root.lower():
            return self.root()
        prefix = f"{root}/"
        if not path.lower().startswith(prefix.lower()):
            raise ValueError(f"Remote path {path!r} is outside of {root or '/'!r}")
        relative = path[len(prefix) :]
        return Location(
            local=self.pair.local.joinpath(*relative.split("/")),
            remote=f"{root}/{relative}",
            mapper=self,
        )

    def from_metadata(self, metadata: Metadata) -> Location:
        return self.from_remote(metadata.path)
