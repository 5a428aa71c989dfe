"""
Addressing Module
=================

Pure frame addressing and time helpers.

    - address: (base, index, interval) -> FrameAddress
    - LocatorTemplate: namespace + positional path template
    - default_base_time: "now minus lag, floored to the interval"
    - parse_time_param: tolerant parsing of external time inputs

Example:
    from datetime import datetime, timezone
    from raster_playback.addressing import address

    base = datetime(2025, 5, 12, 16, 40, tzinfo=timezone.utc)
    frame = address(base, 2, 10)
    print(frame.locator)  # .../2025/05/12/17/20250512_1700Z.zarrpyramid
"""

from raster_playback.addressing.locator import (
    DEFAULT_TEMPLATE,
    LocatorTemplate,
    address,
    addresses_for,
    time_fields,
)
from raster_playback.addressing.params import (
    DEFAULT_INTERVAL_MINUTES,
    DEFAULT_LAG_HOURS,
    default_base_time,
    parse_time_param,
)
from raster_playback.models.time_range import floor_to_interval, frame_count_between


__all__ = [
    "DEFAULT_TEMPLATE",
    "LocatorTemplate",
    "address",
    "addresses_for",
    "time_fields",
    "DEFAULT_INTERVAL_MINUTES",
    "DEFAULT_LAG_HOURS",
    "default_base_time",
    "parse_time_param",
    "floor_to_interval",
    "frame_count_between",
]
