"""Helpers for ArcGIS JSON geometries."""

from typing import Any


def geometry_center(geometry: dict[str, Any] | None) -> tuple[float, float] | None:
    """Get a representative (latitude, longitude) for an ArcGIS geometry.

    Points use their own coordinate, polygons the mean vertex of their first
    ring, and polylines the middle vertex of their first path. Coordinates
    are expected in WGS84 (``outSR=4326``).

    Args:
        geometry: ArcGIS JSON geometry

    Returns:
        (latitude, longitude) or None if the geometry is empty or unknown
    """
    if not geometry:
        return None

    if geometry.get("x") is not None and geometry.get("y") is not None:
        return float(geometry["y"]), float(geometry["x"])

    rings = geometry.get("rings")
    if rings and rings[0]:
        ring = rings[0]
        sum_x = sum(point[0] for point in ring)
        sum_y = sum(point[1] for point in ring)
        return sum_y / len(ring), sum_x / len(ring)

    paths = geometry.get("paths")
    if paths and paths[0]:
        path = paths[0]
        middle = path[len(path) // 2]
        return float(middle[1]), float(middle[0])

    return None
