"""
Frame Locator
=============

Pure mapping from (base time, frame index, interval) to a frame address.

The locator is built by rendering a positional path template with the
zero-padded year/month/day/hour/minute fields of the frame time and
prepending the configured resource namespace. The result is only
meaningful inside that namespace.

Design Rules:
    - No state, no I/O
    - Equal inputs always yield an identical locator (probe cache keys rely on it)
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List

from raster_playback.models.frame import DisplayTime, FrameAddress
from raster_playback.models.time_range import TimeRange, to_utc


DEFAULT_ROOT = "https://tmrwwxappspuma.blob.core.windows.net/prod-chimp-inference-viz/GOES_EAST_FD/"
DEFAULT_PATH_TEMPLATE = "{year}/{month}/{day}/{hour}/{year}{month}{day}_{hour}{minute}Z.zarrpyramid"


@dataclass(frozen=True, slots=True)
class LocatorTemplate:
    """
    Resource namespace plus a positional path template.

    Attributes:
        root: Namespace prefix (kept verbatim)
        path: Template using ``{year}``, ``{month}``, ``{day}``, ``{hour}``
            and ``{minute}`` placeholders
    """

    root: str = DEFAULT_ROOT
    path: str = DEFAULT_PATH_TEMPLATE

    def render(self, fields: DisplayTime) -> str:
        return self.root + self.path.format(**fields.as_dict())


DEFAULT_TEMPLATE = LocatorTemplate()


def time_fields(value: datetime) -> DisplayTime:
    """Zero-padded calendar fields of ``value`` in UTC."""
    return DisplayTime.from_datetime(to_utc(value))


def address(
    base: datetime,
    index: int,
    interval_minutes: int = 10,
    template: LocatorTemplate = DEFAULT_TEMPLATE,
) -> FrameAddress:
    """
    Derive the address of frame ``index`` counted from ``base``.

    Args:
        base: Base time point of the range
        index: Frame index (>= 0)
        interval_minutes: Spacing between frames
        template: Locator template

    Returns:
        FrameAddress with locator and time point
    """
    time_point = to_utc(base).replace(second=0, microsecond=0) + timedelta(
        minutes=index * interval_minutes
    )
    return FrameAddress(
        index=index,
        locator=template.render(time_fields(time_point)),
        time_point=time_point,
    )


def addresses_for(
    time_range: TimeRange,
    template: LocatorTemplate = DEFAULT_TEMPLATE,
) -> List[FrameAddress]:
    """All candidate addresses of a time range, in index order."""
    return [
        address(time_range.base, index, time_range.interval_minutes, template)
        for index in range(time_range.total_frames)
    ]
