"""
API Request Schemas
===================

Pydantic models for requests accepted by the HTTP service.

Range bounds are kept as raw strings: malformed values are treated as
absent by the session rather than rejected, so a bad bookmark still
yields the default range.

Example:
    POST /range
    {
        "start": "2025-05-12T16:40:00Z",
        "end": "2025-05-12T18:30:00Z"
    }
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from raster_playback.models.layer import LayerStyle


class RangeRequest(BaseModel):
    """
    Range trigger parameters.

    Attributes:
        start: ISO-8601 start instant or date
        end: ISO-8601 end instant or date
    """

    start: Optional[str] = Field(default=None, description="Range start (ISO-8601)")
    end: Optional[str] = Field(default=None, description="Range end (ISO-8601)")

    class Config:
        """Pydantic model configuration."""

        json_schema_extra = {
            "example": {
                "start": "2025-05-12T16:40:00Z",
                "end": "2025-05-12T18:30:00Z",
            }
        }


class SpeedRequest(BaseModel):
    """Playback speed change."""

    speed_ms: int = Field(..., gt=0, description="Milliseconds between frames")


class LayersRequest(BaseModel):
    """Replacement set of rendered layers."""

    layers: List[LayerStyle] = Field(..., description="Layers rendered for each frame")
