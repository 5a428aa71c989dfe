"""
RasterPlayback
==============

Temporal frame preloading and animation playback engine for time-indexed
raster layers.

This package turns a time range into per-frame locators, checks which of
them actually exist with bounded concurrency, and plays the surviving frames
as a cyclic, gap-skipping animation.

Components:
    - addressing: Deterministic time -> locator mapping
    - probe: Availability prober and the immutable frame catalog
    - playback: Timed, cancellable playback scheduler
    - session: Triggers and playback controls for one viewing session
    - render: Rendering surface and display-time sinks

Example:
    from raster_playback.config import settings
    from raster_playback.session import SessionController

    # The service is started via the FastAPI application
    # See main.py for entry point
"""

__version__ = "0.1.0"
__author__ = "RasterPlayback Project"

__all__ = [
    "__version__",
]
