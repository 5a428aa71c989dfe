"""
Data Models
===========

Typed models for the playback engine.

This module re-exports all data models for convenient access.

Models:
    Frames:
        - FrameAddress: Address of one time-indexed resource
        - DisplayTime: Zero-padded calendar fields for display

    Time:
        - TimeRange: (start, end-or-count) descriptor for a probe run

    Status:
        - PreloadStatus: Progress of the current probe run
        - SchedulerState: Discrete playback states
        - PlaybackState: Snapshot of the playback cursor
        - SessionCondition: Observable session condition

    Display:
        - LayerStyle: Opaque style parameters for the rendering surface
"""

from raster_playback.models.frame import DisplayTime, FrameAddress
from raster_playback.models.time_range import TimeRange
from raster_playback.models.status import PlaybackState, PreloadStatus, SchedulerState
from raster_playback.models.conditions import SessionCondition
from raster_playback.models.layer import LayerStyle

__all__ = [
    # Frames
    "FrameAddress",
    "DisplayTime",
    # Time
    "TimeRange",
    # Status
    "PreloadStatus",
    "SchedulerState",
    "PlaybackState",
    "SessionCondition",
    # Display
    "LayerStyle",
]
