"""Strategies for resolving a query against the feature services."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from property_search.arcgis.client import (
    SPATIAL_WHERE,
    AddressIndexService,
    FeatureQueryService,
    GeocodingService,
    escape_literal,
)
from property_search.safety import ensure_restricted
from .models import FeatureRecord, GeoPoint, SearchContext, StructuredFilter

logger = logging.getLogger(__name__)


@dataclass
class StrategyResult:
    """Records produced by a strategy and how they were found."""

    features: list[FeatureRecord] = field(default_factory=list)
    filter_used: str | None = None
    location: GeoPoint | None = None


class ResolutionStrategy(ABC):
    """Abstract base class for filter-executing strategies."""

    def __init__(self, feature_service: FeatureQueryService):
        self.feature_service = feature_service

    @abstractmethod
    async def run(self, text: str, context: SearchContext) -> StrategyResult:
        """Resolve the text into feature records."""
        pass

    async def execute(self, structured: StructuredFilter) -> StrategyResult:
        """Run a filtered query after checking it is restricted."""
        where = ensure_restricted(structured.where)
        features = await self.feature_service.query(
            where,
            order_by=structured.order_by,
            limit=structured.limit,
        )
        return StrategyResult(features=features, filter_used=where)


class IdentifierLookup(ResolutionStrategy):
    """Equality lookup on the identifier field."""

    def build_filter(self, identifier: str, context: SearchContext) -> StructuredFilter:
        value = escape_literal(identifier.strip())
        return StructuredFilter(where=f"{context.identifier_field} = '{value}'", limit=1)

    async def run(self, text: str, context: SearchContext) -> StrategyResult:
        logger.info(f"Looking up parcel by ID: {text} (field: {context.identifier_field})")
        result = await self.execute(self.build_filter(text, context))

        if result.features:
            center = result.features[0].center()
            if center is not None:
                result.location = GeoPoint(
                    latitude=center.latitude,
                    longitude=center.longitude,
                    label=f"ID: {text.strip()}",
                )
        return result


class FallbackTextSearch(ResolutionStrategy):
    """Case-insensitive substring search on the address field."""

    def build_filter(self, term: str, context: SearchContext) -> StructuredFilter:
        value = escape_literal(term.strip().upper())
        return StructuredFilter(where=f"UPPER({context.address_field}) LIKE '%{value}%'")

    async def run(self, text: str, context: SearchContext) -> StrategyResult:
        logger.info(f"Falling back to LIKE search on {context.address_field}")
        return await self.execute(self.build_filter(text, context))


class AddressResolution:
    """Address point lookup, geocoding and exact point intersection.

    The address index is tried first, then the geocoder. A found point is
    intersected with the parcel layer without any buffer, so at most one
    parcel comes back.
    """

    def __init__(
        self,
        feature_service: FeatureQueryService,
        geocoder: GeocodingService | None = None,
        address_index: AddressIndexService | None = None,
    ):
        self.feature_service = feature_service
        self.geocoder = geocoder
        self.address_index = address_index

    async def locate(self, address: str) -> GeoPoint | None:
        """Find a coordinate for the address.

        Returns:
            The point, or None if neither the index nor the geocoder knows it
        """
        if self.address_index is not None:
            logger.info(f"Searching address index: {self.address_index.endpoint}")
            point = await self.address_index.find(address)
            if point is not None:
                logger.debug(f"Address index result: {point}")
                return point

        if self.geocoder is not None:
            point = await self.geocoder.geocode(address)
            logger.debug(f"Geocoder result: {point}")
            return point

        return None

    async def intersect(self, point: GeoPoint) -> StrategyResult:
        """Get the single feature containing the point."""
        logger.info(f"Spatial query at: {point.latitude}, {point.longitude}")
        features = await self.feature_service.query(SPATIAL_WHERE, limit=1, point=point)
        logger.info(f"Spatial query result: {len(features)} features")
        return StrategyResult(features=features, location=point)

    async def run(self, text: str, context: SearchContext) -> StrategyResult | None:
        """Locate and intersect.

        Returns:
            The intersection result, or None if no coordinate was found
        """
        point = await self.locate(text.strip())
        if point is None:
            return None
        return await self.intersect(point)
