"""
Slot Generator - candidate start instants inside an open interval.

generate() returns a SlotCandidates value: an immutable iterable that
re-derives its start instants from (interval, duration, granularity) every
time it is iterated. Iteration is lazy, ascending and finite.
"""

from collections.abc import Iterator
from dataclasses import dataclass
from datetime import datetime, timedelta

from scheduling.errors import InvalidRequestError
from scheduling.models import TimeInterval


@dataclass(frozen=True)
class SlotCandidates:
    interval: TimeInterval
    duration: timedelta
    step: timedelta

    def __iter__(self) -> Iterator[datetime]:
        start = self.interval.start
        while start + self.duration <= self.interval.end:
            yield start
            start += self.step

    def __len__(self) -> int:
        room = self.interval.duration - self.duration
        if room < timedelta(0):
            return 0
        return room // self.step + 1


def generate(interval: TimeInterval, duration_minutes: int, granularity_minutes: int) -> SlotCandidates:
    """
    Candidate start instants at granularity steps from interval.start.

    A candidate is emitted only while start + duration <= interval.end, so a
    duration longer than the interval yields an empty sequence.

    Raises:
        InvalidRequestError: non-positive duration or granularity
    """
    if duration_minutes <= 0:
        raise InvalidRequestError(
            "Service duration must be a positive number of minutes",
            {"duration_minutes": duration_minutes},
        )
    if granularity_minutes <= 0:
        raise InvalidRequestError(
            "Slot granularity must be a positive number of minutes",
            {"granularity_minutes": granularity_minutes},
        )

    return SlotCandidates(
        interval=interval,
        duration=timedelta(minutes=duration_minutes),
        step=timedelta(minutes=granularity_minutes),
    )
