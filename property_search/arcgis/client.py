"""ArcGIS REST feature service clients."""

import logging
from typing import Any

import httpx

from property_search.arcgis.models import FeatureRecord, FieldInfo, GeoPoint
from property_search.exceptions import ServiceError, UnrestrictedFilterError
from property_search.safety import is_unrestricted

logger = logging.getLogger(__name__)

# Spatial queries restrict by geometry, not by predicate
SPATIAL_WHERE = "1=1"


def escape_literal(value: str) -> str:
    """Escape a value for use inside a single-quoted SQL literal."""
    return value.replace("'", "''")


async def fetch_json(
    client: httpx.AsyncClient, service_name: str, url: str, params: dict[str, Any]
) -> dict[str, Any]:
    """GET an ArcGIS JSON resource.

    ArcGIS reports most failures as an ``{"error": {...}}`` body with HTTP 200,
    so the body is checked as well as the status.

    Raises:
        ServiceError: On transport failure, a non-object body or an error payload
    """
    try:
        response = await client.get(url, params=params)
        response.raise_for_status()
        data = response.json()
    except httpx.HTTPStatusError as e:
        logger.error(f"{service_name} HTTP error: {e}")
        raise ServiceError(service_name, f"HTTP {e.response.status_code}") from e
    except httpx.HTTPError as e:
        logger.error(f"{service_name} request failed: {e}")
        raise ServiceError(service_name, str(e)) from e
    except ValueError as e:
        logger.error(f"{service_name} returned invalid JSON: {e}")
        raise ServiceError(service_name, "Invalid JSON response") from e

    if not isinstance(data, dict):
        logger.error(f"{service_name} returned a non-object body: {type(data).__name__}")
        raise ServiceError(service_name, "Unexpected response shape")

    if data.get("error"):
        error = data["error"]
        message = error.get("message") if isinstance(error, dict) else str(error)
        logger.error(f"{service_name} error payload: {error}")
        raise ServiceError(service_name, message or "Request failed")

    return data


class FeatureQueryService:
    """Query client for an ArcGIS feature layer."""

    service_name = "feature service"

    def __init__(self, endpoint: str, client: httpx.AsyncClient | None = None) -> None:
        """Initialize the feature service client.

        Args:
            endpoint: Feature layer URL (ending in the layer index)
            client: Shared HTTP client, one is created if omitted
        """
        self.endpoint = endpoint.rstrip("/")
        self.client = client or httpx.AsyncClient()

    async def query(
        self,
        where: str,
        order_by: str | None = None,
        limit: int | None = None,
        point: GeoPoint | None = None,
    ) -> list[FeatureRecord]:
        """Run a query against the layer.

        Args:
            where: SQL predicate
            order_by: Optional ``orderByFields`` value
            limit: Optional ``resultRecordCount`` value
            point: Restrict to features intersecting this point

        Returns:
            Matching feature records

        Raises:
            UnrestrictedFilterError: If a non-spatial query has a tautological predicate
            ServiceError: If the service fails or answers with an error payload
        """
        if point is None and is_unrestricted(where):
            raise UnrestrictedFilterError(where)

        params: dict[str, Any] = {
            "f": "json",
            "where": where,
            "outFields": "*",
            "returnGeometry": "true",
            "outSR": "4326",
        }
        if point is not None:
            params.update(
                {
                    "geometry": f"{point.longitude},{point.latitude}",
                    "geometryType": "esriGeometryPoint",
                    "spatialRel": "esriSpatialRelIntersects",
                    "inSR": "4326",
                }
            )
        if order_by:
            params["orderByFields"] = order_by
        if limit:
            params["resultRecordCount"] = str(limit)

        logger.debug(f"Querying {self.endpoint}: {params}")
        data = await self._request(f"{self.endpoint}/query", params)

        features = [
            FeatureRecord(
                attributes=feature.get("attributes") or {},
                geometry=feature.get("geometry"),
            )
            for feature in data.get("features") or []
        ]
        logger.debug(f"{self.service_name} returned {len(features)} features")
        return features

    async def describe_fields(self) -> list[FieldInfo]:
        """Read the layer's field catalogue from its metadata.

        Returns:
            Queryable fields with their declared types
        """
        data = await self._request(self.endpoint, {"f": "json"})
        return [
            FieldInfo(
                name=item["name"],
                type=item.get("type", "esriFieldTypeString").removeprefix("esriFieldType"),
                alias=item.get("alias"),
            )
            for item in data.get("fields") or []
            if item.get("name")
        ]

    async def _request(self, url: str, params: dict[str, Any]) -> dict[str, Any]:
        return await fetch_json(self.client, self.service_name, url, params)

    async def aclose(self) -> None:
        await self.client.aclose()


class AddressIndexService(FeatureQueryService):
    """Feature layer of address points searched by a single field."""

    service_name = "address index"

    def __init__(
        self,
        endpoint: str,
        search_field: str = "FullAdd",
        display_field: str | None = None,
        exact_match: bool = False,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(endpoint, client=client)
        self.search_field = search_field
        self.display_field = display_field or search_field
        self.exact_match = exact_match

    def build_where(self, address: str) -> str:
        """Build the exact or substring predicate for an address."""
        value = escape_literal(address.upper())
        if self.exact_match:
            return f"UPPER({self.search_field}) = '{value}'"
        return f"UPPER({self.search_field}) LIKE '%{value}%'"

    async def find(self, address: str) -> GeoPoint | None:
        """Find the first address point matching the address.

        Returns:
            The point with its display label, or None if nothing matched
        """
        features = await self.query(self.build_where(address), limit=1)
        if not features:
            return None

        feature = features[0]
        center = feature.center()
        if center is None:
            return None

        label = feature.attributes.get(self.display_field) or address
        return GeoPoint(latitude=center.latitude, longitude=center.longitude, label=str(label))


class GeocodingService:
    """ArcGIS geocode server client."""

    service_name = "geocoder"

    def __init__(self, url: str, client: httpx.AsyncClient | None = None) -> None:
        self.url = url.rstrip("/")
        self.client = client or httpx.AsyncClient()

    async def geocode(self, address: str) -> GeoPoint | None:
        """Geocode a single-line address.

        Args:
            address: Free-text address

        Returns:
            Best candidate with its canonical address, or None if not found

        Raises:
            ServiceError: If the geocoder fails or answers with an error payload
        """
        params = {
            "f": "json",
            "SingleLine": address,
            "outFields": "*",
            "outSR": "4326",
            "maxLocations": "1",
        }
        logger.debug(f"Geocoding address: {address}")
        data = await fetch_json(self.client, self.service_name, f"{self.url}/findAddressCandidates", params)

        candidates = data.get("candidates") or []
        if not isinstance(candidates, list):
            raise ServiceError(self.service_name, "Unexpected response shape")
        if not candidates:
            return None

        best = candidates[0]
        if not isinstance(best, dict):
            raise ServiceError(self.service_name, "Unexpected candidate shape")
        location = best.get("location") or {}
        if not isinstance(location, dict):
            raise ServiceError(self.service_name, "Candidate location is not an object")
        if location.get("x") is None or location.get("y") is None:
            return None

        try:
            latitude, longitude = float(location["y"]), float(location["x"])
        except (TypeError, ValueError) as e:
            raise ServiceError(self.service_name, "Invalid candidate location") from e

        return GeoPoint(
            latitude=latitude,
            longitude=longitude,
            label=best.get("address") or address,
        )

    async def aclose(self) -> None:
        await self.client.aclose()
