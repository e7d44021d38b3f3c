"""The remote store interface the sync engine depends on."""

from datetime import datetime
from typing import Optional, Protocol

from ..models import ListFolderResult, LongpollResult, Metadata, WriteMode


class RemoteStore(Protocol):
    """Operations the sync engine needs from a remote store.

    :class:`~pydropsync.api.DropboxClient` implements this protocol.
    Implementations must be safe to call from several threads at once.
    """

    def find(self, parent_path: str, name: str) -> Optional[Metadata]:
        """Metadata of the entry called ``name`` in ``parent_path``, if any."""
        ...

    def list_folder(
        self,
        path: str,
        recursive: bool = False,
        include_deleted: bool = False,
        include_mounted_folders: bool = True,
    ) -> ListFolderResult: ...

    def list_folder_continue(self, cursor: str) -> ListFolderResult: ...

    def get_latest_cursor(
        self,
        path: str,
        recursive: bool = False,
        include_deleted: bool = False,
        include_mounted_folders: bool = True,
    ) -> str: ...

    def list_folder_longpoll(self, cursor: str, timeout: int = 30) -> LongpollResult:
        """Block until the feed has changes past ``cursor`` or time runs out."""
        ...

    def create_folder(self, path: str) -> Metadata: ...

    def upload(
        self,
        path: str,
        data: bytes,
        client_modified: datetime,
        mode: WriteMode = WriteMode.ADD,
    ) -> Metadata: ...

    def download(self, path: str) -> bytes: ...

    def delete(self, path: str) -> Metadata:
        """Delete a file or folder.

        Raises:
            DropboxNotFoundError: If nothing exists at ``path``
        """
        ...
