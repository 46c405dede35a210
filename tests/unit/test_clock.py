"""Tests for the injectable clocks."""

from datetime import date, datetime, timedelta, timezone

import pytest

from payroll_kernel.domain.clock import DeterministicClock, SystemClock


class TestDeterministicClock:

    def test_fixed_until_advanced(self, clock):
        assert clock.now() == clock.now()
        assert clock.today() == date(2024, 7, 1)

    def test_advance(self, clock):
        start = clock.now()
        moved = clock.advance(days=30, seconds=60)
        assert moved == start + timedelta(days=30, seconds=60)
        assert clock.now() == moved
        assert clock.today() == date(2024, 7, 31)

    def test_default_instant(self):
        expected = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
        assert DeterministicClock().now() == expected

    def test_naive_datetime_rejected(self):
        with pytest.raises(ValueError, match="timezone-aware"):
            DeterministicClock(datetime(2024, 7, 1, 9, 30))


class TestSystemClock:

    def test_timezone_aware(self):
        assert SystemClock().now().tzinfo is not None
        ist = timezone(timedelta(hours=5, minutes=30))
        assert SystemClock(ist).now().utcoffset() == timedelta(hours=5, minutes=30)
