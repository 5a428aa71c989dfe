"""
Time Range Model
================

Time points and the (start, end-or-count) descriptor that drives frame
generation.

Every frame time is derived by adding ``index * interval_minutes`` minutes
to a base time point. Base time points are UTC with minute resolution and a
minute component that is a multiple of the interval.

Example:
    from datetime import datetime, timezone
    from raster_playback.models.time_range import TimeRange

    start = datetime(2025, 5, 12, 16, 40, tzinfo=timezone.utc)
    end = datetime(2025, 5, 12, 18, 30, tzinfo=timezone.utc)

    time_range = TimeRange.from_bounds(start, end)
    print(time_range.total_frames)  # 12
"""

import math
from datetime import datetime, timedelta, timezone
from typing import Optional

from pydantic import BaseModel, Field, field_validator


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up."""
    return int(math.floor(value + 0.5))


def to_utc(value: datetime) -> datetime:
    """Normalize to an aware UTC datetime. Naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def floor_to_interval(value: datetime, interval_minutes: int = 10) -> datetime:
    """
    Floor a datetime to the start of its interval.

    Seconds and microseconds are dropped and the minute is floored to a
    multiple of ``interval_minutes``.
    """
    if interval_minutes < 1:
        raise ValueError("interval_minutes must be >= 1")
    value = to_utc(value)
    minute = (value.minute // interval_minutes) * interval_minutes
    return value.replace(minute=minute, second=0, microsecond=0)


def frame_count_between(
    start: datetime,
    end: datetime,
    interval_minutes: int = 10,
) -> int:
    """
    Number of frames covering ``start`` through ``end`` inclusive.

    Computed as ``max(1, round((end - start) / interval)) + 1`` so a range
    always yields at least two frames.
    """
    span_minutes = (to_utc(end) - to_utc(start)) / timedelta(minutes=1)
    steps = round_half_up(span_minutes / interval_minutes)
    return max(1, steps) + 1


class TimeRange(BaseModel):
    """
    Time range descriptor for one probe run.

    Attributes:
        base: First frame time (UTC, floored to the interval)
        total_frames: Number of candidate frames in the range
        interval_minutes: Spacing between frames
        end: Explicit end instant when the range was given by bounds
    """

    base: datetime = Field(..., description="First frame time (UTC)")
    total_frames: int = Field(..., ge=1, description="Candidate frame count")
    interval_minutes: int = Field(default=10, ge=1, description="Frame spacing")
    end: Optional[datetime] = Field(default=None, description="Explicit end, if any")

    model_config = {"frozen": True}

    @field_validator("base", "end")
    @classmethod
    def _normalize(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is None:
            return None
        return to_utc(value).replace(second=0, microsecond=0)

    @classmethod
    def from_bounds(
        cls,
        start: datetime,
        end: datetime,
        interval_minutes: int = 10,
    ) -> "TimeRange":
        """Build a range from explicit start and end instants."""
        base = floor_to_interval(start, interval_minutes)
        return cls(
            base=base,
            total_frames=frame_count_between(base, end, interval_minutes),
            interval_minutes=interval_minutes,
            end=end,
        )

    @classmethod
    def from_count(
        cls,
        start: datetime,
        count: int,
        interval_minutes: int = 10,
    ) -> "TimeRange":
        """Build a range of ``count`` frames beginning at ``start``."""
        return cls(
            base=floor_to_interval(start, interval_minutes),
            total_frames=count,
            interval_minutes=interval_minutes,
        )

    def frame_time(self, index: int) -> datetime:
        """Time of the frame at ``index``."""
        return self.base + timedelta(minutes=index * self.interval_minutes)

    @property
    def last_time(self) -> datetime:
        """Time of the final candidate frame."""
        return self.frame_time(self.total_frames - 1)
