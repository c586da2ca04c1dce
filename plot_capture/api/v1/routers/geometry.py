"""
API router for stateless geometry helpers.
"""
from fastapi import APIRouter, HTTPException, status

from plot_capture.api.rate_limit import RATE_LIMIT_RESPONSE
from plot_capture.api.v1.models.requests import ConvertGeometryRequest, PolygonRequest
from plot_capture.api.v1.models.responses import AreaResponse, ConvertGeometryResponse
from plot_capture.utils.geometry import (
    compute_area,
    compute_geodesic_area,
    parse_geodetic,
    to_geojson_string,
    to_wkt,
    to_wkt_point,
)


router = APIRouter(
    prefix="/geometry",
    tags=["geometry"],
    responses=RATE_LIMIT_RESPONSE,
)


@router.post(
    "/area",
    response_model=AreaResponse,
    summary="Compute polygon area",
)
async def polygon_area(request: PolygonRequest) -> AreaResponse:
    """
    Compute the area of a drawn polygon.

    Fewer than three points yield zero area.
    """
    area = compute_area(request.points)
    return AreaResponse(
        area_m2=area,
        geodesic_area_m2=round(compute_geodesic_area(request.points), 2),
        area_ha=round(area / 10000, 4),
    )


@router.post(
    "/convert",
    response_model=ConvertGeometryResponse,
    summary="Convert between WKT and GeoJSON",
    responses={400: {"description": "Geometry text could not be parsed"}},
)
async def convert_geometry(request: ConvertGeometryRequest) -> ConvertGeometryResponse:
    points = parse_geodetic(request.source)
    if points is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Could not parse {request.source.format} geometry",
        )

    target = request.target or ("geojson" if request.source.format == "wkt" else "wkt")
    if len(points) == 1:
        if target != "wkt":
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Points can only be converted to WKT",
            )
        text = to_wkt_point(points[0])
    else:
        text = to_wkt(points) if target == "wkt" else to_geojson_string(points)

    return ConvertGeometryResponse(points=points, format=target, text=text)
