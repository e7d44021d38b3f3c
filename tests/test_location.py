"""Unit tests for locations and the path mapper."""

import os
from datetime import datetime, timezone
from pathlib import Path

import pytest

from pydropsync.models import DeletedMetadata, FileMetadata
from pydropsync.sync import PathMapper, SyncPair
from pydropsync.sync.hasher import hash_bytes
from pydropsync.sync.location import EPOCH


class TestPathMapper:
    """Tests for PathMapper class."""

    @pytest.fixture
    def mapper(self):
        return PathMapper(SyncPair(local=Path("/data"), remote="/Apps/Mirror"))

    def test_root(self, mapper):
        root = mapper.root()
        assert root.local == Path("/data")
        assert root.remote == "/Apps/Mirror"
        assert root.relative_path == ""

    def test_from_local(self, mapper):
        location = mapper.from_local(Path("/data/docs/a.txt"))
        assert location.remote == "/Apps/Mirror/docs/a.txt"
        assert location.relative_path == "docs/a.txt"
        assert location.name == "a.txt"

    def test_from_local_root(self, mapper):
        assert mapper.from_local("/data") == mapper.root()

    def test_from_local_outside_root(self, mapper):
        with pytest.raises(ValueError):
            mapper.from_local(Path("/elsewhere/a.txt"))

    def test_from_remote(self, mapper):
        location = mapper.from_remote("/Apps/Mirror/docs/a.txt")
        assert location.local == Path("/data/docs/a.txt")

    def test_from_remote_root_prefix_is_case_insensitive(self, mapper):
        """Test that lowercased feed paths map onto the configured root."""
        location = mapper.from_remote("/apps/mirror/Docs/A.txt")
        assert location.local == Path("/data/Docs/A.txt")
        assert location.remote == "/Apps/Mirror/Docs/A.txt"

    def test_from_remote_outside_root(self, mapper):
        with pytest.raises(ValueError, match="outside"):
            mapper.from_remote("/Apps/Other/a.txt")
        with pytest.raises(ValueError):
            mapper.from_remote("/Apps/Mirrored/a.txt")

    def test_from_metadata(self, mapper):
        metadata = DeletedMetadata(path="/Apps/Mirror/x", path_lower="/apps/mirror/x")
        assert mapper.from_metadata(metadata).local == Path("/data/x")

    def test_round_trip_identity(self, mapper):
        location = mapper.from_local(Path("/data/a/b/c.txt"))
        assert mapper.from_remote(location.remote) == location
        assert mapper.from_remote(location.remote).local == location.local

    def test_store_root_pair(self):
        mapper = PathMapper(SyncPair(local=Path("/data"), remote="/"))
        assert mapper.root().remote == ""
        assert mapper.from_local(Path("/data/a.txt")).remote == "/a.txt"
        assert mapper.from_remote("/a.txt").local == Path("/data/a.txt")


class TestLocation:
    """Tests for Location class."""

    def test_identity_is_remote_path(self, mapper, pair):
        first = mapper.from_local(pair.local / "a.txt")
        second = mapper.from_remote("/Mirror/a.txt")
        assert first == second
        assert len({first, second}) == 1

    def test_remote_parent(self, mapper, pair):
        assert mapper.from_local(pair.local / "a" / "b.txt").remote_parent() == (
            "/Mirror/a"
        )
        assert mapper.from_local(pair.local / "a.txt").remote_parent() == "/Mirror"
        assert mapper.root().remote_parent() == ""

    def test_remote_parent_of_top_level_entry_in_store_root(self, temp_dir):
        mapper = PathMapper(SyncPair(local=temp_dir, remote="/"))
        assert mapper.from_local(temp_dir / "a.txt").remote_parent() == ""

    def test_is_hidden(self, mapper, pair):
        assert mapper.from_local(pair.local / ".git" / "config").is_hidden()
        assert mapper.from_local(pair.local / ".DS_Store").is_hidden()
        assert not mapper.from_local(pair.local / "docs" / "a.txt").is_hidden()
        assert not mapper.root().is_hidden()

    def test_missing_entry(self, mapper, pair):
        location = mapper.from_local(pair.local / "missing.txt")
        assert not location.exists()
        assert location.mtime_ns() == 0
        assert location.modified_time() == EPOCH
        assert location.content_hash() == ""

    def test_file_queries(self, mapper, pair):
        path = pair.local / "a.txt"
        path.write_bytes(b"hello")
        os.utime(path, (1_700_000_000, 1_700_000_000))
        location = mapper.from_local(path)

        assert location.exists()
        assert not location.is_dir()
        assert location.content_hash() == hash_bytes(b"hello")
        assert location.modified_time() == datetime.fromtimestamp(
            1_700_000_000, tz=timezone.utc
        )

    def test_directory_has_no_content_hash(self, mapper, pair):
        (pair.local / "docs").mkdir()
        assert mapper.from_local(pair.local / "docs").content_hash() == ""

    def test_ensure_parent_directory(self, mapper, pair):
        location = mapper.from_local(pair.local / "a" / "b" / "c.txt")
        assert location.ensure_parent_directory() is True
        assert (pair.local / "a" / "b").is_dir()
        assert location.ensure_parent_directory() is False

    def test_ensure_directory(self, mapper, pair):
        location = mapper.from_local(pair.local / "a" / "b")
        assert location.ensure_directory() is True
        assert (pair.local / "a" / "b").is_dir()
        assert location.ensure_directory() is False

    def test_all_descendants(self, mapper, pair):
        (pair.local / "docs" / "sub").mkdir(parents=True)
        (pair.local / "docs" / "a.txt").write_text("a")
        (pair.local / "docs" / "sub" / "b.txt").write_text("b")

        remotes = [loc.remote for loc in mapper.from_local(pair.local / "docs").all_descendants()]

        assert remotes == [
            "/Mirror/docs",
            "/Mirror/docs/a.txt",
            "/Mirror/docs/sub",
            "/Mirror/docs/sub/b.txt",
        ]

    def test_all_descendants_of_file(self, mapper, pair):
        (pair.local / "a.txt").write_text("a")
        location = mapper.from_local(pair.local / "a.txt")
        assert location.all_descendants() == [location]


class TestFileMetadataLocation:
    """Tests mapping remote file metadata to locations."""

    def test_display_path_preserves_case(self, mapper, pair):
        metadata = FileMetadata(
            path="/Mirror/Docs/Report.PDF",
            path_lower="/mirror/docs/report.pdf",
            content_hash="",
            client_modified=EPOCH,
        )
        assert mapper.from_metadata(metadata).local == pair.local / "Docs" / "Report.PDF"
