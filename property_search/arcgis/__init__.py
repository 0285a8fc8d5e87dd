"""ArcGIS feature, address index and geocoding service clients."""

from .client import AddressIndexService, FeatureQueryService, GeocodingService
from .geometry import geometry_center
from .models import FeatureRecord, FieldInfo, GeoPoint

__all__ = [
    "AddressIndexService",
    "FeatureQueryService",
    "GeocodingService",
    "geometry_center",
    "FeatureRecord",
    "FieldInfo",
    "GeoPoint",
]
