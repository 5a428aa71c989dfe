"""
Session Module
==============

Session orchestration for the playback engine.

    - SessionController: range/default/completion triggers, playback controls
    - resolve_range: tolerant conversion of external start/end parameters
"""

from raster_playback.session.controller import SessionController, resolve_range, utc_now

__all__ = [
    "SessionController",
    "resolve_range",
    "utc_now",
]
