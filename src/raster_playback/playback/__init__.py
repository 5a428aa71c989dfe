"""
Playback Module
===============

Timed playback over a frame catalog.

    - PlaybackScheduler: IDLE/PLAYING/PAUSED/STOPPED state machine with a
      single cancellable tick timer
    - next_index: gap-skipping, cyclic successor lookup
"""

from raster_playback.playback.scheduler import PlaybackScheduler, next_index

__all__ = [
    "PlaybackScheduler",
    "next_index",
]
