"""
Range Parameters
================

Helpers that turn external, possibly malformed, time inputs into time
points.

Malformed input is never fatal: it is logged and treated as absent so that
the caller falls back to the default range.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from dateutil import parser as date_parser

from raster_playback.models.time_range import floor_to_interval, to_utc


logger = logging.getLogger(__name__)

DEFAULT_LAG_HOURS = 14.0
DEFAULT_INTERVAL_MINUTES = 10


def default_base_time(
    now: datetime,
    lag_hours: float = DEFAULT_LAG_HOURS,
    interval_minutes: int = DEFAULT_INTERVAL_MINUTES,
) -> datetime:
    """
    Base time used when no explicit range is supplied.

    ``now`` minus ``lag_hours``, floored to the interval boundary.
    """
    return floor_to_interval(to_utc(now) - timedelta(hours=lag_hours), interval_minutes)


def parse_time_param(value: Optional[object]) -> Optional[datetime]:
    """
    Parse an external time parameter.

    Accepts ``datetime`` objects and ISO-8601 strings (``YYYY-MM-DD`` or
    ``YYYY-MM-DDThh:mm[:ss][Z|±hh:mm]``). Returns None for missing or
    malformed input.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return to_utc(value)
    if not isinstance(value, str):
        logger.warning(f"Ignoring time parameter of type {type(value).__name__}")
        return None

    token = value.strip()
    if not token:
        return None
    try:
        return to_utc(date_parser.isoparse(token))
    except (ValueError, OverflowError) as e:
        logger.warning(f"Invalid time parameter {token!r}: {e}")
        return None
