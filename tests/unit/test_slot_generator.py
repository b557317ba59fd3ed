"""
Unit tests for slot_generator.py - candidate start instants.
"""

from datetime import UTC, datetime, timedelta

import pytest

from scheduling.errors import InvalidRequestError
from scheduling.models import TimeInterval
from scheduling.services.slot_generator import generate

OPEN_INTERVAL = TimeInterval(
    start=datetime(2025, 6, 10, 7, 0, tzinfo=UTC),
    end=datetime(2025, 6, 10, 16, 0, tzinfo=UTC),
)


class TestGenerate:

    def test_nine_hour_day_with_half_hour_slots(self):
        """09:00-18:00 with 30/30 yields 18 starts, the last at 17:30 local."""
        candidates = list(generate(OPEN_INTERVAL, 30, 30))

        assert len(candidates) == 18
        assert candidates[0] == OPEN_INTERVAL.start
        assert candidates[-1] == datetime(2025, 6, 10, 15, 30, tzinfo=UTC)

    def test_every_candidate_fits_inside_interval(self):
        for duration, granularity in [(30, 30), (45, 15), (60, 30), (25, 10), (90, 60)]:
            for start in generate(OPEN_INTERVAL, duration, granularity):
                assert start >= OPEN_INTERVAL.start
                assert start + timedelta(minutes=duration) <= OPEN_INTERVAL.end

    def test_duration_longer_than_interval_is_empty(self):
        short = TimeInterval(start=OPEN_INTERVAL.start, end=OPEN_INTERVAL.start + timedelta(minutes=20))

        assert list(generate(short, 30, 15)) == []
        assert len(generate(short, 30, 15)) == 0

    def test_duration_equal_to_interval_yields_one(self):
        exact = TimeInterval(start=OPEN_INTERVAL.start, end=OPEN_INTERVAL.start + timedelta(minutes=30))

        assert list(generate(exact, 30, 30)) == [exact.start]

    def test_granularity_finer_than_duration(self):
        candidates = list(generate(OPEN_INTERVAL, 60, 15))

        assert candidates[1] - candidates[0] == timedelta(minutes=15)
        assert candidates[-1] == OPEN_INTERVAL.end - timedelta(minutes=60)

    def test_len_matches_iteration(self):
        for duration, granularity in [(30, 30), (45, 20), (60, 7)]:
            candidates = generate(OPEN_INTERVAL, duration, granularity)
            assert len(candidates) == len(list(candidates))

    def test_restartable(self):
        """Each iteration re-derives the sequence from its inputs."""
        candidates = generate(OPEN_INTERVAL, 30, 30)

        assert list(candidates) == list(candidates)

    @pytest.mark.parametrize("duration,granularity", [(0, 30), (-30, 30), (30, 0), (30, -5)])
    def test_non_positive_values_rejected(self, duration, granularity):
        with pytest.raises(InvalidRequestError):
            generate(OPEN_INTERVAL, duration, granularity)
