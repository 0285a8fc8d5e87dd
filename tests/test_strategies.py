"""Tests for resolution strategies."""

import pytest

from conftest import parcel
from property_search.arcgis.client import SPATIAL_WHERE
from property_search.exceptions import ServiceError, UnrestrictedFilterError
from property_search.query.models import GeoPoint, StructuredFilter
from property_search.query.strategies import (
    AddressResolution,
    FallbackTextSearch,
    IdentifierLookup,
)


class TestIdentifierLookup:
    """Test equality lookup on the identifier field."""

    def test_build_filter(self, feature_service, context):
        lookup = IdentifierLookup(feature_service)
        structured = lookup.build_filter(" 12-345 ", context)
        assert structured == StructuredFilter(where="PARCELID = '12-345'", limit=1)

    def test_build_filter_escapes_quotes(self, feature_service, context):
        lookup = IdentifierLookup(feature_service)
        assert lookup.build_filter("AB'12", context).where == "PARCELID = 'AB''12'"

    @pytest.mark.asyncio
    async def test_run_sets_location(self, feature_service, context):
        feature_service.query.return_value = [parcel("12-345", "306 CEDAR LN")]
        lookup = IdentifierLookup(feature_service)

        result = await lookup.run("12-345", context)

        feature_service.query.assert_awaited_once_with("PARCELID = '12-345'", order_by=None, limit=1)
        assert result.filter_used == "PARCELID = '12-345'"
        assert result.location == GeoPoint(latitude=26.7, longitude=-80.1, label="ID: 12-345")

    @pytest.mark.asyncio
    async def test_run_no_match(self, feature_service, context):
        result = await IdentifierLookup(feature_service).run("99999", context)
        assert result.features == []
        assert result.location is None


class TestFallbackTextSearch:
    """Test substring search on the address field."""

    def test_build_filter(self, feature_service, context):
        search = FallbackTextSearch(feature_service)
        structured = search.build_filter("Cedar Lane", context)
        assert structured.where == "UPPER(PROPERTYADDRESS) LIKE '%CEDAR LANE%'"
        assert structured.limit is None

    @pytest.mark.asyncio
    async def test_run(self, feature_service, context):
        feature_service.query.return_value = [parcel("1", "A"), parcel("2", "B")]

        result = await FallbackTextSearch(feature_service).run("o'neil", context)

        assert len(result.features) == 2
        assert result.filter_used == "UPPER(PROPERTYADDRESS) LIKE '%O''NEIL%'"

    @pytest.mark.asyncio
    async def test_execute_refuses_unrestricted(self, feature_service):
        search = FallbackTextSearch(feature_service)

        with pytest.raises(UnrestrictedFilterError):
            await search.execute(StructuredFilter(where="1=1"))
        feature_service.query.assert_not_awaited()


class TestAddressResolution:
    """Test locating an address and intersecting its point."""

    @pytest.mark.asyncio
    async def test_index_hit_skips_geocoder(self, feature_service, geocoder, address_index, cedar_point):
        address_index.find.return_value = cedar_point
        resolution = AddressResolution(feature_service, geocoder=geocoder, address_index=address_index)

        assert await resolution.locate("306 Cedar Lane") == cedar_point
        geocoder.geocode.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_index_miss_uses_geocoder(self, feature_service, geocoder, address_index, cedar_point):
        geocoder.geocode.return_value = cedar_point
        resolution = AddressResolution(feature_service, geocoder=geocoder, address_index=address_index)

        assert await resolution.locate("306 Cedar Lane") == cedar_point
        address_index.find.assert_awaited_once_with("306 Cedar Lane")

    @pytest.mark.asyncio
    async def test_not_located(self, feature_service, geocoder, context):
        resolution = AddressResolution(feature_service, geocoder=geocoder)

        assert await resolution.run("1 Nowhere Rd", context) is None
        feature_service.query.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_intersect(self, feature_service, geocoder, cedar_point, context):
        geocoder.geocode.return_value = cedar_point
        feature_service.query.return_value = [parcel("12-345", "306 CEDAR LN")]
        resolution = AddressResolution(feature_service, geocoder=geocoder)

        result = await resolution.run("306 Cedar Lane", context)

        feature_service.query.assert_awaited_once_with(SPATIAL_WHERE, limit=1, point=cedar_point)
        assert len(result.features) == 1
        assert result.location == cedar_point
        assert result.filter_used is None

    @pytest.mark.asyncio
    async def test_geocoder_error_propagates(self, feature_service, geocoder):
        geocoder.geocode.side_effect = ServiceError("geocoder", "HTTP 503")
        resolution = AddressResolution(feature_service, geocoder=geocoder)

        with pytest.raises(ServiceError):
            await resolution.locate("306 Cedar Lane")
