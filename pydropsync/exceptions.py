"""Exceptions raised by the Dropbox client and the sync engine."""


class DropboxAPIError(Exception):
    """Base exception for all errors talking to the remote store."""


class DropboxAuthenticationError(DropboxAPIError):
    """Access token missing, expired or rejected."""


class DropboxConfigError(DropboxAPIError):
    """Client configuration is incomplete or invalid."""


class DropboxPermissionError(DropboxAPIError):
    """The token is not allowed to access the requested resource."""


class DropboxNotFoundError(DropboxAPIError):
    """The remote path does not exist (or was already deleted)."""


class DropboxRateLimitError(DropboxAPIError):
    """Too many requests; the server asked us to slow down."""


class DropboxNetworkError(DropboxAPIError):
    """Connection-level failure (DNS, timeout, reset...)."""


class DropboxInvalidResponseError(DropboxAPIError):
    """The server returned something that is not the expected JSON."""


class DropboxUploadError(DropboxAPIError):
    """Uploading file content failed."""


class DropboxDownloadError(DropboxAPIError):
    """Downloading file content failed."""


class DropboxFileNotFoundError(DropboxAPIError):
    """A local file scheduled for upload does not exist."""
