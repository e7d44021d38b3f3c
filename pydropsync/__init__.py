"""pydropsync - keep a local directory mirrored with a Dropbox folder."""

__version__ = "1.0.1"

from .api import DropboxClient  # noqa: E402
from .exceptions import (  # noqa: E402
    DropboxAPIError,
    DropboxAuthenticationError,
    DropboxConfigError,
    DropboxDownloadError,
    DropboxFileNotFoundError,
    DropboxInvalidResponseError,
    DropboxNetworkError,
    DropboxNotFoundError,
    DropboxPermissionError,
    DropboxRateLimitError,
    DropboxUploadError,
)
from .sync.hasher import ContentHasher, hash_bytes, hash_file  # noqa: E402

__all__ = [
    "__version__",
    "DropboxClient",
    "DropboxAPIError",
    "DropboxAuthenticationError",
    "DropboxConfigError",
    "DropboxDownloadError",
    "DropboxFileNotFoundError",
    "DropboxInvalidResponseError",
    "DropboxNetworkError",
    "DropboxNotFoundError",
    "DropboxPermissionError",
    "DropboxRateLimitError",
    "DropboxUploadError",
    "ContentHasher",
    "hash_bytes",
    "hash_file",
]
