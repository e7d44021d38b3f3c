"""Streaming block content hash.

The remote store identifies file content with a two-level SHA-256: the
input is split into 4 MiB blocks, every block is hashed on its own, and the
concatenation of the block digests is hashed again. Two files are in sync
exactly when their content hashes are equal, whatever their timestamps.

Examples:
    >>> ContentHasher().finalize()
    'e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855'
    >>> ContentHasher().ingest(b"he").ingest(b"llo").finalize() == (
    ...     ContentHasher().ingest(b"hello").finalize()
    ... )
    True
"""

import hashlib
from pathlib import Path
from typing import Union

BLOCK_SIZE: int = 4 * 1024 * 1024

# Read buffer used when hashing files; memory use is bounded by this
# plus one hashlib context per level
READ_SIZE: int = 64 * 1024


class ContentHasher:
    """Accumulates bytes and produces the block content hash.

    Block boundaries depend only on the cumulative byte count, so the result
    does not depend on how the input is split across ``ingest`` calls.
    """

    def __init__(self) -> None:
        self._overall = hashlib.sha256()
        self._block = hashlib.sha256()
        self._block_pos = 0

    @property
    def block_pos(self) -> int:
        """Number of bytes consumed in the current (unfinished) block."""
        return self._block_pos

    def ingest(self, data: Union[bytes, bytearray, memoryview]) -> "ContentHasher":
        """Feed bytes into the hash.

        Args:
            data: Next chunk of input

        Returns:
            self, so calls can be chained
        """
        view = memoryview(data)
        offset = 0
        while offset < len(view):
            take = min(BLOCK_SIZE - self._block_pos, len(view) - offset)
            self._block.update(view[offset : offset + take])
            self._block_pos += take
            offset += take
            if self._block_pos == BLOCK_SIZE:
                self._finish_block()
        return self

    def _finish_block(self) -> None:
        self._overall.update(self._block.digest())
        self._block = hashlib.sha256()
        self._block_pos = 0

    def finalize(self) -> str:
        """Return the hex digest of everything ingested so far.

        The hasher is left untouched, so more data can still be ingested.
        """
        overall = self._overall.copy()
        if self._block_pos > 0:
            overall.update(self._block.digest())
        return overall.hexdigest()

    def reset(self) -> None:
        """Forget all ingested data."""
        self._overall = hashlib.sha256()
        self._block = hashlib.sha256()
        self._block_pos = 0

    def copy(self) -> "ContentHasher":
        """Return an independent hasher with the same state."""
        clone = ContentHasher()
        clone._overall = self._overall.copy()
        clone._block = self._block.copy()
        clone._block_pos = self._block_pos
        return clone


def hash_bytes(data: bytes) -> str:
    """Content hash of an in-memory byte string."""
    return ContentHasher().ingest(data).finalize()


def hash_file(path: Path, read_size: int = READ_SIZE) -> str:
    """Content hash of a file, streamed with a fixed-size read buffer.

    Args:
        path: File to hash
        read_size: Bytes read per iteration

    Returns:
        Lowercase hex digest

    Raises:
        OSError: If the file cannot be read
    """
    hasher = ContentHasher()
    with open(path, "rb") as f:
        while True:
            chunk = f.read(read_size)
            if not chunk:
                break
            hasher.ingest(chunk)
    return hasher.finalize()
