"""Shared fixtures for the pydropsync tests."""

import posixpath
import tempfile
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import pytest

from pydropsync.exceptions import DropboxAPIError, DropboxNotFoundError
from pydropsync.models import (
    FileMetadata,
    FolderMetadata,
    ListFolderResult,
    LongpollResult,
    Metadata,
    WriteMode,
)
from pydropsync.sync import PathMapper, SyncPair
from pydropsync.sync.hasher import hash_bytes


class InMemoryStore:
    """Remote store kept in memory, keyed case-insensitively like Dropbox."""

    def __init__(self):
        self.files: dict[str, tuple[str, bytes, datetime]] = {}
        self.folders: dict[str, str] = {}
        self.uploads: list[tuple[str, WriteMode]] = []
        self.deletes: list[str] = []
        self._lock = threading.Lock()

    # Test helpers

    def put_file(
        self, path: str, data: bytes, client_modified: Optional[datetime] = None
    ) -> None:
        client_modified = client_modified or datetime(2020, 1, 1, tzinfo=timezone.utc)
        self._add_parents(path)
        self.files[path.lower()] = (path, data, client_modified)

    def put_folder(self, path: str) -> None:
        self._add_parents(path)
        self.folders[path.lower()] = path

    def content(self, path: str) -> bytes:
        return self.files[path.lower()][1]

    def _add_parents(self, path: str) -> None:
        parent = posixpath.dirname(path)
        while parent not in ("", "/"):
            self.folders.setdefault(parent.lower(), parent)
            parent = posixpath.dirname(parent)

    def _metadata(self, key: str) -> Metadata:
        if key in self.files:
            path, data, client_modified = self.files[key]
            return FileMetadata(
                path=path,
                path_lower=key,
                content_hash=hash_bytes(data),
                client_modified=client_modified,
                size=len(data),
            )
        return FolderMetadata(path=self.folders[key], path_lower=key)

    # RemoteStore protocol

    def find(self, parent_path: str, name: str) -> Optional[Metadata]:
        key = posixpath.join(parent_path or "/", name).lower()
        with self._lock:
            if key in self.files or key in self.folders:
                return self._metadata(key)
        return None

    def list_folder(
        self,
        path: str,
        recursive: bool = False,
        include_deleted: bool = False,
        include_mounted_folders: bool = True,
    ) -> ListFolderResult:
        prefix = f"{path.lower()}/" if path else "/"
        with self._lock:
            keys = sorted(
                key
                for key in list(self.folders) + list(self.files)
                if key.startswith(prefix)
                and (recursive or "/" not in key[len(prefix) :])
            )
            entries = [self._metadata(key) for key in keys]
        return ListFolderResult(entries=entries, cursor="cursor-1", has_more=False)

    def list_folder_continue(self, cursor: str) -> ListFolderResult:
        return ListFolderResult(entries=[], cursor=cursor, has_more=False)

    def get_latest_cursor(
        self,
        path: str,
        recursive: bool = False,
        include_deleted: bool = False,
        include_mounted_folders: bool = True,
    ) -> str:
        return "cursor-0"

    def list_folder_longpoll(self, cursor: str, timeout: int = 30) -> LongpollResult:
        return LongpollResult(changes=False)

    def create_folder(self, path: str) -> Metadata:
        with self._lock:
            self.put_folder(path)
            return self._metadata(path.lower())

    def upload(
        self,
        path: str,
        data: bytes,
        client_modified: datetime,
        mode: WriteMode = WriteMode.ADD,
    ) -> Metadata:
        key = path.lower()
        with self._lock:
            if mode == WriteMode.ADD and key in self.files:
                if self.files[key][1] != data:
                    raise DropboxAPIError("path/conflict/file/..")
            self.uploads.append((path, mode))
            self.put_file(path, data, client_modified)
            return self._metadata(key)

    def download(self, path: str) -> bytes:
        key = path.lower()
        with self._lock:
            if key not in self.files:
                raise DropboxNotFoundError(f"Path not found: {path}")
            return self.files[key][1]

    def delete(self, path: str) -> Metadata:
        key = path.lower()
        with self._lock:
            if key not in self.files and key not in self.folders:
                raise DropboxNotFoundError(f"Path not found: {path}")
            metadata = self._metadata(key)
            self.deletes.append(path)
            prefix = f"{key}/"
            for table in (self.files, self.folders):
                for other in [k for k in table if k == key or k.startswith(prefix)]:
                    del table[other]
            return metadata


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def store():
    """Create an in-memory remote store with the remote root folder."""
    store = InMemoryStore()
    store.put_folder("/Mirror")
    return store


@pytest.fixture
def pair(temp_dir):
    """Create a sync pair between a temp directory and /Mirror."""
    local = temp_dir / "local"
    local.mkdir()
    return SyncPair(
        local=local,
        remote="/Mirror",
        push_interval=0.0,
        restart_delay=0.0,
        batch_jitter=0.0,
        batch_page_pause=0.0,
    )


@pytest.fixture
def mapper(pair):
    """Create a path mapper for the sync pair."""
    return PathMapper(pair)
