"""Upload and download eligibility rules.

Content hashes decide whether two sides are already in sync. When they
differ, the side with the strictly newer modification time wins. Equal
timestamps with different content are reported as a conflict and nothing
is transferred in either direction until one of the timestamps changes.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..models import FileMetadata, FolderMetadata
from .location import Location
from .remote import RemoteStore

logger = logging.getLogger(__name__)


class SyncAction(str, Enum):
    """Actions that can be taken for a location."""

    UPLOAD = "upload"
    """Upload local entry to remote"""

    DOWNLOAD = "download"
    """Download remote entry to local"""

    SKIP = "skip"
    """Skip (no action needed or allowed)"""

    CONFLICT = "conflict"
    """Content differs but timestamps are equal; nobody wins"""


@dataclass
class SyncDecision:
    """Represents a decision about how to sync a location."""

    action: SyncAction
    """Action to take"""

    reason: str
    """Human-readable reason for this decision"""

    location: Location
    """Location the decision is about"""

    is_new: bool = False
    """Upload creates the remote file instead of overwriting it"""

    remote: Optional[FileMetadata] = None
    """Remote file metadata the decision was based on (if any)"""

    @property
    def should_transfer(self) -> bool:
        return self.action in (SyncAction.UPLOAD, SyncAction.DOWNLOAD)


class FileComparator:
    """Decides whether a location may be uploaded or downloaded."""

    def __init__(self, client: RemoteStore):
        """Initialize file comparator.

        Args:
            client: Remote store used for metadata lookups
        """
        self.client = client

    def remote_file(self, location: Location) -> Optional[FileMetadata]:
        """Remote file metadata at the same path, None if absent or a folder."""
        metadata = self.client.find(location.remote_parent(), location.name)
        if isinstance(metadata, FileMetadata):
            return metadata
        return None

    def remote_folder_exists(self, location: Location) -> bool:
        """Whether the remote parent lists a folder at this location's path."""
        wanted = location.remote.lower()
        result = self.client.list_folder(location.remote_parent())
        while True:
            for metadata in result.entries:
                if (
                    isinstance(metadata, FolderMetadata)
                    and metadata.path_lower.lower() == wanted
                ):
                    return True
            if not result.has_more:
                return False
            result = self.client.list_folder_continue(result.cursor)

    def uploadable(self, location: Location) -> SyncDecision:
        """Decide whether the local entry should be uploaded.

        Args:
            location: Location to check

        Returns:
            SyncDecision with action UPLOAD, SKIP or CONFLICT
        """
        if not location.exists():
            return self._skip(location, "Local entry does not exist")
        if location.is_hidden():
            return self._skip(location, "Hidden entry")
        if not location.remote:
            return self._skip(location, "Remote root always exists")

        if location.is_dir():
            if self.remote_folder_exists(location):
                return self._skip(location, "Remote folder exists")
            return SyncDecision(
                action=SyncAction.UPLOAD,
                reason="New local folder",
                location=location,
                is_new=True,
            )

        remote = self.remote_file(location)
        if remote is None:
            return SyncDecision(
                action=SyncAction.UPLOAD,
                reason="New local file",
                location=location,
                is_new=True,
            )

        return self._compare(location, remote, SyncAction.UPLOAD)

    def downloadable(self, location: Location) -> SyncDecision:
        """Decide whether the remote entry should be downloaded.

        Args:
            location: Location to check

        Returns:
            SyncDecision with action DOWNLOAD, SKIP or CONFLICT
        """
        if location.is_dir():
            return SyncDecision(
                action=SyncAction.DOWNLOAD,
                reason="Directory",
                location=location,
            )

        remote = self.remote_file(location)
        if remote is None:
            return self._skip(location, "Remote file does not exist")

        return self._compare(location, remote, SyncAction.DOWNLOAD)

    def _compare(
        self, location: Location, remote: FileMetadata, direction: SyncAction
    ) -> SyncDecision:
        """Compare a local entry with the remote file at the same path."""
        if remote.content_hash.lower() == location.content_hash():
            return self._skip(location, "Files are identical (same hash)", remote)

        local_time = location.modified_time()
        remote_time = remote.client_modified

        if local_time == remote_time:
            logger.debug(
                "Stalemate on %s: content differs, both modified at %s",
                location.remote,
                local_time.isoformat(),
            )
            return SyncDecision(
                action=SyncAction.CONFLICT,
                reason="Same timestamp but different content",
                location=location,
                remote=remote,
            )

        if direction == SyncAction.UPLOAD and local_time > remote_time:
            return SyncDecision(
                action=SyncAction.UPLOAD,
                reason="Local file is newer",
                location=location,
                remote=remote,
            )
        if direction == SyncAction.DOWNLOAD and remote_time > local_time:
            return SyncDecision(
                action=SyncAction.DOWNLOAD,
                reason="Remote file is newer",
                location=location,
                remote=remote,
            )

        side = "Remote" if direction == SyncAction.UPLOAD else "Local"
        return self._skip(location, f"{side} file is newer", remote)

    @staticmethod
    def _skip(
        location: Location, reason: str, remote: Optional[FileMetadata] = None
    ) -> SyncDecision:
        return SyncDecision(
            action=SyncAction.SKIP, reason=reason, location=location, remote=remote
        )
