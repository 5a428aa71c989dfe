"""
Session Conditions
==================

Fixed set of machine-readable session conditions.

Every failure inside the engine degrades to one of these values instead of
propagating as an exception.
"""

from enum import Enum


class SessionCondition(str, Enum):
    """
    Observable condition of a playback session.

    Attributes:
        IDLE: No range has been probed yet
        PRELOADING: A probe run is in flight
        READY: Catalog installed, playback not running
        PLAYING: Playback loop active
        NO_DATA: The last probe run found no usable frames
        NO_VALID_FRAMES: Playback stopped because no next frame could be found
    """

    IDLE = "IDLE"
    PRELOADING = "PRELOADING"
    READY = "READY"
    PLAYING = "PLAYING"
    NO_DATA = "NO_DATA"
    NO_VALID_FRAMES = "NO_VALID_FRAMES"
