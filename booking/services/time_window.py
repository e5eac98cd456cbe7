"""
time_window.py
--------------
Half-open time interval [start, end) used for every scheduling decision.

Two windows overlap iff a.start < b.end and b.start < a.end, so windows that
merely touch (one ends exactly when the other starts) never conflict.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta

from django.utils import timezone

from ..exceptions import InvalidWindow


@dataclass(frozen=True)
class TimeWindow:
    start: datetime
    end: datetime

    def __post_init__(self):
        if self.start is None or self.end is None:
            raise InvalidWindow("Both start and end times are required.")
        if timezone.is_naive(self.start) != timezone.is_naive(self.end):
            raise InvalidWindow("Start and end must both carry a timezone, or neither.")
        if self.start >= self.end:
            raise InvalidWindow()

    @classmethod
    def from_duration(cls, start: datetime, minutes: int) -> "TimeWindow":
        return cls(start, start + timedelta(minutes=minutes))

    def overlaps(self, other: "TimeWindow") -> bool:
        return self.start < other.end and other.start < self.end

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment < self.end

    def describe(self) -> str:
        """
        Short local-time label, e.g. "14:00–15:00".
        """
        start, end = self.start, self.end
        if timezone.is_aware(start):
            start, end = timezone.localtime(start), timezone.localtime(end)
        return f"{start:%H:%M}–{end:%H:%M}"
