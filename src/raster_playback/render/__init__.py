"""
Render Module
=============

Sinks for the active frame.

    - RenderingSurface / DisplayTimeSink: consumer protocols
    - LayerBinding: one (frame, layer, active) instruction
    - bind_frames: bindings for every catalog frame and layer
    - RecordingSurface / RecordingDisplaySink: in-memory sinks
"""

from raster_playback.render.surface import (
    DisplayTimeSink,
    LayerBinding,
    RecordingDisplaySink,
    RecordingSurface,
    RenderingSurface,
    bind_frames,
)


__all__ = [
    "DisplayTimeSink",
    "LayerBinding",
    "RecordingDisplaySink",
    "RecordingSurface",
    "RenderingSurface",
    "bind_frames",
]
