"""
Rendering Sinks
===============

Interfaces through which the session publishes the active frame.

The rendering surface receives every known frame once per layer, with
exactly one frame flagged active; the display-time sink receives the
zero-padded calendar fields of the active frame.

DESIGN RULES:
    - Sinks only receive read-only values
    - The engine never draws; surfaces decide how bindings are shown
"""

from collections import deque
from dataclasses import dataclass
from typing import Deque, List, Optional, Protocol, Sequence

from raster_playback.models.frame import DisplayTime
from raster_playback.models.layer import LayerStyle
from raster_playback.probe.catalog import FrameCatalog


@dataclass(frozen=True, slots=True)
class LayerBinding:
    """
    One (frame, layer) instruction for the rendering surface.

    Attributes:
        frame_index: Catalog index of the frame
        locator: Opaque resource locator of the frame
        layer: Style parameters for the layer
        active: Whether this frame is the one to show
    """

    frame_index: int
    locator: str
    layer: LayerStyle
    active: bool

    def to_dict(self) -> dict:
        return {
            "frame_index": self.frame_index,
            "locator": self.locator,
            "layer": self.layer.model_dump(mode="json"),
            "active": self.active,
        }


class RenderingSurface(Protocol):
    """Protocol for surfaces that display frames."""

    def show(self, bindings: Sequence[LayerBinding]) -> None:
        """Replace the displayed bindings."""
        ...


class DisplayTimeSink(Protocol):
    """Protocol for consumers of the active frame time."""

    def show_time(self, fields: DisplayTime) -> None:
        """Display the calendar fields of the active frame."""
        ...


def bind_frames(
    catalog: FrameCatalog,
    layers: Sequence[LayerStyle],
    active_index: Optional[int],
) -> List[LayerBinding]:
    """
    Build bindings for every catalog frame and layer.

    Args:
        catalog: Frames known to exist
        layers: Layers to render for each frame
        active_index: Frame to flag active (None = no active frame)

    Returns:
        Bindings ordered by layer, then by frame index
    """
    return [
        LayerBinding(
            frame_index=frame.index,
            locator=frame.locator,
            layer=layer,
            active=frame.index == active_index,
        )
        for layer in layers
        for frame in catalog.frames()
    ]


class RecordingSurface:
    """
    In-memory rendering surface.

    Keeps the latest bindings so they can be served to remote viewers.

    Attributes:
        bindings: Latest bindings
        version: Incremented on every update
    """

    def __init__(self) -> None:
        self.bindings: List[LayerBinding] = []
        self.version: int = 0

    def show(self, bindings: Sequence[LayerBinding]) -> None:
        self.bindings = list(bindings)
        self.version += 1

    def active_bindings(self) -> List[LayerBinding]:
        """Bindings flagged active (one per layer)."""
        return [binding for binding in self.bindings if binding.active]

    @property
    def active_index(self) -> Optional[int]:
        for binding in self.bindings:
            if binding.active:
                return binding.frame_index
        return None


class RecordingDisplaySink:
    """
    In-memory display-time sink.

    Attributes:
        current: Latest fields, None before the first frame
        history: Most recent values received, oldest first
    """

    def __init__(self, history_size: int = 100) -> None:
        self.current: Optional[DisplayTime] = None
        self.history: Deque[DisplayTime] = deque(maxlen=history_size)

    def show_time(self, fields: DisplayTime) -> None:
        self.current = fields
        self.history.append(fields)
