"""Tests for audit_spine.core.timestamps."""

from datetime import UTC, datetime

from audit_spine.core.timestamps import from_iso8601, to_iso8601, utc_now


class TestTimestamps:
    def test_utc_now_is_aware(self):
        assert utc_now().tzinfo is UTC

    def test_iso_roundtrip(self):
        dt = datetime(2026, 3, 1, 8, 30, 15, 123456, tzinfo=UTC)
        assert from_iso8601(to_iso8601(dt)) == dt

    def test_none_passthrough(self):
        assert to_iso8601(None) is None
        assert from_iso8601(None) is None
