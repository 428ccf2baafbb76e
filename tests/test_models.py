"""Tests for data models."""

import pytest

from cache_warmer.models import (
    Outcome,
    OutcomeStatus,
    Statistics,
    UrlRecord,
    parse_priority,
)


class TestParsePriority:
    """Test cases for sitemap priority parsing."""

    def test_missing_priority_defaults(self):
        assert parse_priority(None) == 0.5
        assert parse_priority("") == 0.5

    def test_valid_priority(self):
        assert parse_priority("0.8") == pytest.approx(0.8)

    def test_invalid_priority_defaults(self):
        assert parse_priority("high") == 0.5
        assert parse_priority("nan") == 0.5

    def test_priority_is_clamped(self):
        assert parse_priority("1.7") == 1.0
        assert parse_priority("-3") == 0.0


class TestUrlRecord:
    """Test cases for UrlRecord."""

    def test_defaults(self):
        record = UrlRecord(url="https://example.test/")
        assert record.priority == 0.5
        assert record.last_modified is None

    def test_record_is_immutable(self):
        record = UrlRecord(url="https://example.test/")
        with pytest.raises(AttributeError):
            record.url = "https://other.test/"


class TestStatistics:
    """Test cases for run statistics."""

    def test_record_outcomes(self):
        stats = Statistics(total=4)
        stats.record(Outcome(url="a", status=OutcomeStatus.SUCCESS, cache_generated=True))
        stats.record(Outcome(url="b", status=OutcomeStatus.SUCCESS_NO_CACHE))
        stats.record(Outcome(url="c", status=OutcomeStatus.HTTP_ERROR, http_status=500))
        stats.record(Outcome(url="d", status=OutcomeStatus.NETWORK_ERROR))

        assert stats.success == 2
        assert stats.cache_generated == 1
        assert stats.failed == 2

    def test_merge(self):
        first = Statistics(total=2, success=1, cache_generated=1, failed=1, execution_time_seconds=1.5)
        second = Statistics(total=3, success=3, cache_generated=0, failed=0, execution_time_seconds=2.0)
        first.merge(second)

        assert first.total == 5
        assert first.success == 4
        assert first.cache_generated == 1
        assert first.failed == 1
        assert first.execution_time_seconds == pytest.approx(3.5)

    def test_to_dict(self):
        stats = Statistics(total=2, success=1, failed=1, execution_time_seconds=12.3456)
        assert stats.to_dict() == {
            "total": 2,
            "success": 1,
            "cache_generated": 0,
            "failed": 1,
            "execution_time_seconds": 12.35,
        }

    def test_outcome_ok(self):
        assert Outcome(url="a", status=OutcomeStatus.SUCCESS).ok is True
        assert Outcome(url="a", status=OutcomeStatus.SUCCESS_NO_CACHE).ok is True
        assert Outcome(url="a", status=OutcomeStatus.HTTP_ERROR).ok is False
        assert Outcome(url="a", status=OutcomeStatus.NETWORK_ERROR).ok is False
