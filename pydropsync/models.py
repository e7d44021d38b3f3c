"""Data models for Dropbox API responses."""

import posixpath
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Union

from .exceptions import DropboxInvalidResponseError
from .utils import parse_iso_timestamp


class WriteMode(str, Enum):
    """How an upload treats an existing remote file."""

    ADD = "add"
    """Create a new file; never replace an existing one"""

    OVERWRITE = "overwrite"
    """Replace whatever is stored at the path"""


@dataclass
class FileMetadata:
    """A remote file."""

    path: str
    """Display path (original case)"""

    path_lower: str
    """Lowercased path, the store's case-insensitive key"""

    content_hash: str
    """Block content hash as lowercase hex"""

    client_modified: datetime
    """Modification time supplied by the uploading client (UTC)"""

    size: int = 0
    id: str = ""
    rev: str = ""

    @property
    def name(self) -> str:
        return posixpath.basename(self.path)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FileMetadata":
        client_modified = parse_iso_timestamp(data.get("client_modified"))
        return cls(
            path=data.get("path_display") or data.get("path_lower", ""),
            path_lower=data.get("path_lower", ""),
            content_hash=data.get("content_hash", ""),
            client_modified=client_modified
            or datetime.fromtimestamp(0, tz=timezone.utc),
            size=data.get("size", 0),
            id=data.get("id", ""),
            rev=data.get("rev", ""),
        )


@dataclass
class FolderMetadata:
    """A remote folder."""

    path: str
    path_lower: str
    id: str = ""

    @property
    def name(self) -> str:
        return posixpath.basename(self.path)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FolderMetadata":
        return cls(
            path=data.get("path_display") or data.get("path_lower", ""),
            path_lower=data.get("path_lower", ""),
            id=data.get("id", ""),
        )


@dataclass
class DeletedMetadata:
    """A change-feed entry for something that no longer exists."""

    path: str
    path_lower: str

    @property
    def name(self) -> str:
        return posixpath.basename(self.path)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DeletedMetadata":
        return cls(
            path=data.get("path_display") or data.get("path_lower", ""),
            path_lower=data.get("path_lower", ""),
        )


Metadata = Union[FileMetadata, FolderMetadata, DeletedMetadata]

_METADATA_TYPES: dict[str, Any] = {
    "file": FileMetadata,
    "folder": FolderMetadata,
    "deleted": DeletedMetadata,
}


def metadata_from_dict(data: dict[str, Any]) -> Metadata:
    """Build the right metadata type from a tagged API dictionary.

    Raises:
        DropboxInvalidResponseError: If the ``.tag`` is missing or unknown
    """
    tag = data.get(".tag")
    metadata_type = _METADATA_TYPES.get(tag or "")
    if metadata_type is None:
        raise DropboxInvalidResponseError(f"Unknown metadata type: {tag!r}")
    return metadata_type.from_dict(data)


@dataclass
class ListFolderResult:
    """One page of a folder listing or of the change feed."""

    entries: list[Metadata] = field(default_factory=list)
    cursor: str = ""
    has_more: bool = False

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> "ListFolderResult":
        return cls(
            entries=[metadata_from_dict(entry) for entry in data.get("entries", [])],
            cursor=data.get("cursor", ""),
            has_more=bool(data.get("has_more", False)),
        )


@dataclass
class LongpollResult:
    """Outcome of a change-feed long poll."""

    changes: bool
    """Whether the feed has new entries past the polled cursor"""

    backoff: Optional[int] = None
    """Seconds the server asks us to wait before polling again"""

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> "LongpollResult":
        return cls(changes=bool(data.get("changes", False)), backoff=data.get("backoff"))
