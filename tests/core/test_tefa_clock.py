"""
Tests for tefa.core.time — Clock protocol.
"""

from datetime import datetime, timedelta, timezone

import pytest

from tefa.core.time import Clock, FixedClock, SystemClock


class TestSystemClock:
    def test_returns_utc_datetime(self):
        dt = SystemClock().now_utc()
        assert dt.tzinfo == timezone.utc

    def test_satisfies_protocol(self):
        clock: Clock = SystemClock()
        assert isinstance(clock.now_utc(), datetime)


class TestFixedClock:
    def test_returns_fixed_time(self):
        fixed = datetime(2026, 3, 2, 7, 30, tzinfo=timezone.utc)
        clock = FixedClock(fixed)
        assert clock.now_utc() == fixed
        assert clock.now_utc() == fixed

    def test_rejects_naive_datetime(self):
        with pytest.raises(ValueError, match="timezone-aware"):
            FixedClock(datetime(2026, 1, 1))

    def test_advance(self):
        fixed = datetime(2026, 3, 2, 7, 30, tzinfo=timezone.utc)
        clock = FixedClock(fixed)
        clock.advance(90)
        assert clock.now_utc() == fixed + timedelta(seconds=90)
