"""Records exchanged with ArcGIS feature and geocoding services."""

import copy
from dataclasses import dataclass
from typing import Any

from property_search.arcgis.geometry import geometry_center


@dataclass(frozen=True)
class GeoPoint:
    """A WGS84 coordinate with an optional display label."""

    latitude: float
    longitude: float
    label: str | None = None


@dataclass(frozen=True)
class FieldInfo:
    """A queryable field of a feature layer."""

    name: str
    type: str
    alias: str | None = None


@dataclass
class FeatureRecord:
    """One feature returned by a feature service."""

    attributes: dict[str, Any]
    geometry: dict[str, Any] | None = None

    def copy(self) -> "FeatureRecord":
        """Return an independent copy of the record."""
        return FeatureRecord(
            attributes=copy.deepcopy(self.attributes),
            geometry=copy.deepcopy(self.geometry),
        )

    def center(self) -> GeoPoint | None:
        """Get a representative point of the record's geometry."""
        center = geometry_center(self.geometry)
        if center is None:
            return None
        return GeoPoint(latitude=center[0], longitude=center[1])
