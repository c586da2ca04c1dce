"""
API request models using Pydantic.
"""
from typing import List, Literal, Optional
from pydantic import BaseModel, Field

from plot_capture.domain.models import Coordinate, GeodeticText


class StartTaskSessionRequest(BaseModel):
    """Start drawing the boundary requested by a polygon task."""
    task_id: str = Field(description="Polygon task identifier")
    plot_id: str = Field(description="Plot the task refers to")


class PolygonRequest(BaseModel):
    """Drawn vertices in tap order (open ring)."""
    points: List[Coordinate] = Field(
        description="Vertices as latitude/longitude pairs",
        examples=[[
            {"latitude": 10.0, "longitude": 105.8},
            {"latitude": 10.0, "longitude": 105.8001},
            {"latitude": 10.0001, "longitude": 105.8001},
        ]],
    )


class ConvertGeometryRequest(BaseModel):
    """Geometry text to parse and re-serialize."""
    source: GeodeticText
    target: Optional[Literal["wkt", "geojson"]] = Field(
        default=None,
        description="Output format; defaults to the other format",
    )
