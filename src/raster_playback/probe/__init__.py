"""
Probe Module
============

Availability probing and the resulting frame catalog.

This module provides the preload layer of the playback engine:
    - ExistenceCheck: Transport protocol (HTTP HEAD or static)
    - AvailabilityProber: Batched, bounded-concurrency existence checks
    - FrameCatalog: Immutable, sparse set of confirmed frames
    - ProbeResult: Run-scoped outcome installed atomically by the session

Example:
    from raster_playback.probe import AvailabilityProber, HttpExistenceCheck

    async with HttpExistenceCheck(timeout=10.0) as check:
        prober = AvailabilityProber(check, batch_size=3)
        result = await prober.run(time_range)

    for frame in result.catalog:
        print(frame.index, frame.locator)
"""

from raster_playback.probe.catalog import FrameCatalog
from raster_playback.probe.transport import (
    ExistenceCheck,
    HttpExistenceCheck,
    StaticExistenceCheck,
)
from raster_playback.probe.prober import (
    AvailabilityProber,
    ProbeMetrics,
    ProbeResult,
    progress_percent,
)


__all__ = [
    "FrameCatalog",
    "ExistenceCheck",
    "HttpExistenceCheck",
    "StaticExistenceCheck",
    "AvailabilityProber",
    "ProbeMetrics",
    "ProbeResult",
    "progress_percent",
]
