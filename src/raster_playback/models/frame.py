"""
Frame Data Model
=================

Internal frame representation shared by the prober, catalog and scheduler.

Design Rules:
    - Derived once from (base, index, interval) and never mutated
    - Carries an opaque locator; the engine never opens the resource
    - Display fields are always zero-padded strings
"""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class DisplayTime:
    """
    Zero-padded calendar fields of a frame time, for human display.

    Attributes:
        year: Four-digit year
        month: Two-digit month (01-12)
        day: Two-digit day of month
        hour: Two-digit hour (UTC)
        minute: Two-digit minute
    """

    year: str
    month: str
    day: str
    hour: str
    minute: str

    @classmethod
    def from_datetime(cls, value: datetime) -> "DisplayTime":
        return cls(
            year=f"{value.year:04d}",
            month=f"{value.month:02d}",
            day=f"{value.day:02d}",
            hour=f"{value.hour:02d}",
            minute=f"{value.minute:02d}",
        )

    def as_dict(self) -> dict:
        return {
            "year": self.year,
            "month": self.month,
            "day": self.day,
            "hour": self.hour,
            "minute": self.minute,
        }

    def label(self) -> str:
        """Render as ``YYYY-MM-DD HH:MM UTC``."""
        return f"{self.year}-{self.month}-{self.day} {self.hour}:{self.minute} UTC"


@dataclass(frozen=True, slots=True)
class FrameAddress:
    """
    Address of one time-indexed data resource.

    Attributes:
        index: Position of the frame within its time range (>= 0)
        locator: Opaque resource locator (only valid inside the configured namespace)
        time_point: UTC instant the frame represents
    """

    index: int
    locator: str
    time_point: datetime

    @property
    def fields(self) -> DisplayTime:
        """Display fields for this frame."""
        return DisplayTime.from_datetime(self.time_point)

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "locator": self.locator,
            "time": self.time_point.isoformat().replace("+00:00", "Z"),
            **self.fields.as_dict(),
        }

    def __repr__(self) -> str:
        return (
            f"FrameAddress(index={self.index}, "
            f"time={self.time_point:%Y-%m-%dT%H:%MZ})"
        )
