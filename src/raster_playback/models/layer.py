"""
Layer Style
===========

Opaque style parameters handed to the rendering surface.

The engine does not interpret these values; they come from configuration or
from the controls and are passed through unchanged.
"""

from typing import Dict, List, Tuple

from pydantic import BaseModel, Field


class LayerStyle(BaseModel):
    """
    Selection and style parameters for one rendered layer.

    Attributes:
        name: Layer identifier
        variable: Variable selected from the resource
        colormap: Colormap identifier
        opacity: Layer opacity in [0, 1]
        clim: Numeric (low, high) display range
        selector: Dimension selection passed to the surface
    """

    name: str = Field(..., description="Layer identifier")
    variable: str = Field(default="precip_rate", description="Selected variable")
    colormap: str = Field(default="rainbow", description="Colormap identifier")
    opacity: float = Field(default=0.75, ge=0.0, le=1.0, description="Opacity")
    clim: Tuple[float, float] = Field(default=(0.0, 10.0), description="Display range")
    selector: Dict[str, List[int]] = Field(default_factory=dict, description="Selection")

    model_config = {"frozen": True}
