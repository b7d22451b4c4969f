"""Tests for timestamp parsing and formatting."""

from datetime import datetime, timedelta, timezone

from studyplan.utils.timestamps import ensure_aware_utc, format_timestamp, parse_timestamp


class TestParseTimestamp:
    def test_iso_with_z(self):
        assert parse_timestamp("2025-01-15T10:00:00Z") == datetime(2025, 1, 15, 10, 0, tzinfo=timezone.utc)

    def test_offset_is_converted_to_utc(self):
        assert parse_timestamp("2025-01-15T12:00:00+02:00") == datetime(2025, 1, 15, 10, 0, tzinfo=timezone.utc)

    def test_date_only_is_midnight_utc(self):
        assert parse_timestamp("2025-01-15") == datetime(2025, 1, 15, tzinfo=timezone.utc)

    def test_loose_format_falls_back_to_general_parser(self):
        assert parse_timestamp("Jan 15 2025 10:00") == datetime(2025, 1, 15, 10, 0, tzinfo=timezone.utc)

    def test_garbage_and_empty_values(self):
        assert parse_timestamp("tomorrowish") is None
        assert parse_timestamp("   ") is None
        assert parse_timestamp(None) is None


class TestFormatTimestamp:
    def test_milliseconds_and_z_suffix(self):
        dt = datetime(2025, 1, 15, 10, 0, 0, 123456, tzinfo=timezone.utc)
        assert format_timestamp(dt) == "2025-01-15T10:00:00.123Z"

    def test_naive_is_treated_as_utc(self):
        assert format_timestamp(datetime(2025, 1, 15, 10, 0)) == "2025-01-15T10:00:00.000Z"

    def test_other_zones_are_converted(self):
        plus_two = timezone(timedelta(hours=2))
        assert ensure_aware_utc(datetime(2025, 1, 15, 12, 0, tzinfo=plus_two)) == datetime(
            2025, 1, 15, 10, 0, tzinfo=timezone.utc
        )
