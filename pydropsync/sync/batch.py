"""One-shot bulk pull of the whole remote tree."""

import logging
import random
import time
from concurrent.futures import Future, ThreadPoolExecutor, as_completed

from ..exceptions import DropboxNotFoundError
from ..models import FileMetadata, Metadata
from .location import PathMapper
from .operations import SyncOperations
from .remote import RemoteStore

logger = logging.getLogger(__name__)


class BatchInitializer:
    """Lists the entire remote tree and mirrors every entry locally.

    Downloads run on a bounded thread pool; each submission is preceded by
    a small random delay so that a large listing does not turn into a burst
    of simultaneous requests.
    """

    def __init__(
        self,
        client: RemoteStore,
        operations: SyncOperations,
        mapper: PathMapper,
        max_workers: int = 8,
        jitter: float = 0.01,
        page_pause: float = 0.1,
    ):
        """Initialize batch initializer.

        Args:
            client: Remote store client
            operations: Sync operations used for downloads
            mapper: Path mapper of the sync pair
            max_workers: Number of parallel download workers
            jitter: Maximum random delay before each submission (seconds)
            page_pause: Pause between two listing pages (seconds)
        """
        self.client = client
        self.operations = operations
        self.mapper = mapper
        self.max_workers = max_workers
        self.jitter = jitter
        self.page_pause = page_pause

    def _fetch(self, metadata: Metadata) -> bool:
        changed = self.operations.apply_remote_entry(self.mapper, metadata)
        return changed and isinstance(metadata, FileMetadata)

    def run(self) -> int:
        """Mirror the whole remote tree locally.

        A missing remote root is created. Other listing errors propagate;
        a failing entry is logged and does not affect the others.

        Returns:
            Number of files actually downloaded
        """
        start_time = time.time()
        root = self.mapper.root()
        futures: dict[Future, Metadata] = {}

        try:
            result = self.client.list_folder(
                root.remote,
                recursive=True,
                include_deleted=False,
                include_mounted_folders=True,
            )
        except DropboxNotFoundError:
            logger.info(f"Remote folder {root.remote} does not exist, creating it")
            self.client.create_folder(root.remote)
            return 0

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            page_num = 1
            while True:
                logger.debug(
                    "Received page %d with %d entries", page_num, len(result.entries)
                )
                for metadata in result.entries:
                    if self.jitter > 0:
                        time.sleep(random.uniform(0, self.jitter))
                    futures[executor.submit(self._fetch, metadata)] = metadata

                if not result.has_more:
                    break
                if self.page_pause > 0:
                    time.sleep(self.page_pause)
                result = self.client.list_folder_continue(result.cursor)
                page_num += 1

            downloaded = 0
            for future in as_completed(futures):
                metadata = futures[future]
                try:
                    if future.result():
                        downloaded += 1
                except Exception as e:
                    logger.warning(f"Failed to fetch {metadata.path}: {e}")

        logger.info(
            "Batch pull downloaded %d of %d entries in %.2fs",
            downloaded,
            len(futures),
            time.time() - start_time,
        )
        return downloaded
