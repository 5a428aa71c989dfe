"""
Status Models
=============

Read-only status values published by the prober and the scheduler.

Core Concepts:
    - PreloadStatus: Progress of the current probe run
    - SchedulerState: Discrete playback states (IDLE, PLAYING, PAUSED, STOPPED)
    - PlaybackState: Snapshot of the playback cursor

Transitions:
    IDLE → PLAYING:    start with a non-empty catalog and a start index
    PLAYING → PLAYING: tick advances to the next occupied index
    PLAYING → PAUSED:  pause request, pending tick cancelled
    PAUSED → PLAYING:  resume request
    PLAYING → STOPPED: no occupied index reachable
    any → IDLE:        reset
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class PreloadStatus(BaseModel):
    """
    Progress of one probe run.

    Monotonic within a run; reset only when a new run starts.

    Attributes:
        progress_percent: Share of candidate frames checked so far
        complete: Whether the run has finished
        in_flight: Whether the run is currently checking frames
    """

    progress_percent: int = Field(
        default=0,
        ge=0,
        le=100,
        description="Share of candidate frames checked (0-100)",
    )

    complete: bool = Field(
        default=False,
        description="Whether the probe run has finished",
    )

    in_flight: bool = Field(
        default=False,
        description="Whether checks are currently outstanding",
    )

    model_config = {"frozen": True}


class SchedulerState(str, Enum):
    """
    Discrete playback states.

    Attributes:
        IDLE: No playback started (or reset)
        PLAYING: Tick timer armed
        PAUSED: Stopped by request, cursor preserved
        STOPPED: Stopped because no valid frame could be found
    """

    IDLE = "IDLE"
    PLAYING = "PLAYING"
    PAUSED = "PAUSED"
    STOPPED = "STOPPED"


class PlaybackState(BaseModel):
    """
    Snapshot of the playback cursor.

    Attributes:
        current_frame_index: Active frame, None before any successful probe
        is_playing: Whether the tick timer is armed
        speed_ms: Milliseconds between ticks
        state: Scheduler state
    """

    current_frame_index: Optional[int] = Field(
        default=None,
        ge=0,
        description="Active frame index (a catalog key once playback starts)",
    )

    is_playing: bool = Field(
        default=False,
        description="Whether playback is running",
    )

    speed_ms: int = Field(
        default=1500,
        gt=0,
        description="Milliseconds between frames",
    )

    state: SchedulerState = Field(
        default=SchedulerState.IDLE,
        description="Scheduler state",
    )

    model_config = {"frozen": True, "use_enum_values": False}
