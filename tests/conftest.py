"""
Test Configuration
==================

Pytest fixtures and test configuration for RasterPlayback.
"""

import asyncio
from datetime import datetime, timezone
from typing import Iterable

import pytest

from raster_playback.addressing import DEFAULT_TEMPLATE, address, addresses_for
from raster_playback.models import LayerStyle, TimeRange
from raster_playback.probe import FrameCatalog


BASE_TIME = datetime(2025, 5, 12, 16, 40, tzinfo=timezone.utc)


def make_catalog(indices: Iterable[int], total_frames: int, base: datetime = BASE_TIME) -> FrameCatalog:
    """Catalog with the given occupied indices."""
    return FrameCatalog((address(base, i) for i in indices), total_frames=total_frames)


def locators_for(indices: Iterable[int], total_frames: int, base: datetime = BASE_TIME) -> list:
    """Locators of the given indices within a range starting at ``base``."""
    frames = addresses_for(TimeRange.from_count(base, total_frames), DEFAULT_TEMPLATE)
    wanted = set(indices)
    return [frame.locator for frame in frames if frame.index in wanted]


class SlowCheck:
    """Existence check that sleeps and records concurrency."""

    def __init__(self, delay: float = 0.01, missing: Iterable[str] = ()) -> None:
        self.delay = delay
        self.missing = set(missing)
        self.in_flight = 0
        self.max_in_flight = 0
        self.events: list = []

    async def exists(self, locator: str) -> bool:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        self.events.append(("start", locator))
        try:
            await asyncio.sleep(self.delay)
        finally:
            self.in_flight -= 1
            self.events.append(("end", locator))
        return locator not in self.missing


@pytest.fixture
def base_time():
    """Provide the base time used across scenarios."""
    return BASE_TIME


@pytest.fixture
def sample_layers():
    """Provide two display layers."""
    return [
        LayerStyle(name="difference", colormap="redteal", clim=(-1.0, 1.0)),
        LayerStyle(name="swath", variable="tms_swath", colormap="wind", opacity=0.4),
    ]


@pytest.fixture
def sample_range_payload():
    """Provide a sample range request body."""
    return {
        "start": "2025-05-12T16:40:00Z",
        "end": "2025-05-12T18:30:00Z",
    }
