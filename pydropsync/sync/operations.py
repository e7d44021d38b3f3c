"""Transfers between the local mirror and the remote store."""

import logging
import shutil
import time
from typing import Optional

from ..exceptions import DropboxFileNotFoundError, DropboxNotFoundError
from ..models import DeletedMetadata, FileMetadata, FolderMetadata, Metadata, WriteMode
from ..utils import format_size
from .comparator import FileComparator
from .location import Location, PathMapper
from .remote import RemoteStore

logger = logging.getLogger(__name__)


class SyncOperations:
    """Upload, download and delete, each gated by the eligibility rules.

    Every operation re-checks eligibility right before transferring, so
    calling it again after a successful transfer is a no-op.
    """

    def __init__(
        self, client: RemoteStore, comparator: Optional[FileComparator] = None
    ):
        """Initialize sync operations.

        Args:
            client: Remote store client
            comparator: Eligibility rules (created from ``client`` if omitted)
        """
        self.client = client
        self.comparator = comparator or FileComparator(client)

    def upload(self, location: Location) -> bool:
        """Upload a local file or create a remote folder if eligible.

        Args:
            location: Location to upload

        Returns:
            True if something was transferred
        """
        decision = self.comparator.uploadable(location)
        if not decision.should_transfer:
            logger.debug(f"Not uploading {location.remote}: {decision.reason}")
            return False

        action_start = time.time()
        if location.is_dir():
            logger.debug(f"Creating remote folder {location.remote}...")
            self.client.create_folder(location.remote)
        else:
            mode = WriteMode.ADD if decision.is_new else WriteMode.OVERWRITE
            client_modified = location.modified_time()
            try:
                data = location.local.read_bytes()
            except FileNotFoundError as e:
                raise DropboxFileNotFoundError(
                    f"Local file vanished before upload: {location.local}"
                ) from e
            logger.debug(
                f"Uploading {location.remote} ({format_size(len(data))}, "
                f"mode={mode.value})..."
            )
            self.client.upload(
                location.remote,
                data,
                client_modified=client_modified,
                mode=mode,
            )

        logger.debug(
            "Upload of %s took %.2fs", location.remote, time.time() - action_start
        )
        return True

    def download(self, location: Location) -> bool:
        """Download a remote file over the local one if eligible.

        The local file is overwritten in place, readers may observe a
        partially written file.

        Args:
            location: Location to download

        Returns:
            True if file content was transferred
        """
        decision = self.comparator.downloadable(location)
        if not decision.should_transfer:
            logger.debug(f"Not downloading {location.remote}: {decision.reason}")
            return False

        location.ensure_parent_directory()
        if location.is_dir():
            return False

        action_start = time.time()
        logger.debug(f"Downloading {location.remote}...")
        data = self.client.download(location.remote)
        location.local.write_bytes(data)
        logger.debug(
            "Download of %s (%s) took %.2fs",
            location.remote,
            format_size(len(data)),
            time.time() - action_start,
        )
        return True

    def delete(self, location: Location) -> bool:
        """Delete the remote counterpart of a location.

        Args:
            location: Location whose remote entry should go

        Returns:
            True if something was deleted, False if it was already gone
        """
        try:
            self.client.delete(location.remote)
        except DropboxNotFoundError:
            logger.debug(f"Remote {location.remote} already deleted")
            return False
        logger.debug(f"Deleted remote {location.remote}")
        return True

    def delete_local(self, location: Location) -> bool:
        """Remove a local file or directory tree if present.

        Returns:
            True if something was removed
        """
        path = location.local
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        elif path.exists() or path.is_symlink():
            path.unlink(missing_ok=True)
        else:
            return False
        logger.debug(f"Deleted local {path}")
        return True

    def apply_remote_entry(self, mapper: PathMapper, metadata: Metadata) -> bool:
        """Mirror one remote listing or change-feed entry locally.

        Args:
            mapper: Path mapper of the sync pair
            metadata: Remote entry

        Returns:
            True if the local side changed
        """
        location = mapper.from_metadata(metadata)
        if isinstance(metadata, FileMetadata):
            return self.download(location)
        if isinstance(metadata, FolderMetadata):
            return location.ensure_directory()
        if isinstance(metadata, DeletedMetadata):
            return self.delete_local(location)
        raise TypeError(f"Unsupported metadata: {metadata!r}")
