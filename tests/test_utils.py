"""Unit tests for utility functions."""

from datetime import datetime, timedelta, timezone

from pydropsync.utils import (
    format_api_timestamp,
    format_size,
    parse_iso_timestamp,
    timestamp_from_ns,
)


class TestParseIsoTimestamp:
    """Tests for parse_iso_timestamp function."""

    def test_utc_suffix(self):
        """Test parsing a timestamp with the Z suffix."""
        result = parse_iso_timestamp("2025-01-15T10:30:00Z")
        assert result == datetime(2025, 1, 15, 10, 30, tzinfo=timezone.utc)

    def test_offset_is_converted_to_utc(self):
        """Test that explicit offsets are normalized to UTC."""
        result = parse_iso_timestamp("2025-01-15T12:30:00+02:00")
        assert result == datetime(2025, 1, 15, 10, 30, tzinfo=timezone.utc)
        assert result.utcoffset() == timedelta(0)

    def test_naive_timestamp_assumed_utc(self):
        """Test that a timestamp without zone is taken as UTC."""
        result = parse_iso_timestamp("2025-01-15T10:30:00")
        assert result.tzinfo is not None
        assert result == datetime(2025, 1, 15, 10, 30, tzinfo=timezone.utc)

    def test_empty_and_invalid(self):
        """Test that missing or malformed values give None."""
        assert parse_iso_timestamp(None) is None
        assert parse_iso_timestamp("") is None
        assert parse_iso_timestamp("yesterday") is None


class TestFormatApiTimestamp:
    """Tests for format_api_timestamp function."""

    def test_truncates_to_seconds(self):
        dt = datetime(2025, 1, 15, 10, 30, 5, 999999, tzinfo=timezone.utc)
        assert format_api_timestamp(dt) == "2025-01-15T10:30:05Z"

    def test_converts_to_utc(self):
        dt = datetime(2025, 1, 15, 12, 0, tzinfo=timezone(timedelta(hours=2)))
        assert format_api_timestamp(dt) == "2025-01-15T10:00:00Z"

    def test_naive_datetime(self):
        assert format_api_timestamp(datetime(2025, 1, 15)) == "2025-01-15T00:00:00Z"

    def test_parse_of_formatted_value(self):
        """Test that formatted timestamps parse back to the same second."""
        dt = datetime(2024, 2, 29, 23, 59, 59, tzinfo=timezone.utc)
        assert parse_iso_timestamp(format_api_timestamp(dt)) == dt


class TestTimestampFromNs:
    """Tests for timestamp_from_ns function."""

    def test_epoch(self):
        assert timestamp_from_ns(0) == datetime(1970, 1, 1, tzinfo=timezone.utc)

    def test_whole_seconds(self):
        result = timestamp_from_ns(1_700_000_000 * 1_000_000_000)
        assert result == datetime.fromtimestamp(1_700_000_000, tz=timezone.utc)


class TestFormatSize:
    """Tests for format_size function."""

    def test_bytes(self):
        assert format_size(0) == "0 B"
        assert format_size(1023) == "1023 B"

    def test_kilobytes(self):
        assert format_size(1536) == "1.5 KB"

    def test_megabytes(self):
        assert format_size(4 * 1024 * 1024) == "4.0 MB"

    def test_gigabytes(self):
        assert format_size(3 * 1024**3) == "3.0 GB"
