"""Shared fixtures for pipeline tests."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from property_search.arcgis.models import FeatureRecord, GeoPoint
from property_search.llm.base import CompletionResult
from property_search.query.models import SearchContext


def parcel(parcel_id: str, address: str, x: float = -80.1, y: float = 26.7) -> FeatureRecord:
    """Create a parcel record with a point geometry."""
    return FeatureRecord(
        attributes={"PARCELID": parcel_id, "PROPERTYADDRESS": address},
        geometry={"x": x, "y": y},
    )


@pytest.fixture
def feature_service():
    """Create a feature service mock returning no features."""
    service = MagicMock()
    service.endpoint = "https://gis.example.com/FeatureServer/0"
    service.query = AsyncMock(return_value=[])
    service.describe_fields = AsyncMock(return_value=[])
    return service


@pytest.fixture
def geocoder():
    """Create a geocoder mock that finds nothing."""
    service = MagicMock()
    service.geocode = AsyncMock(return_value=None)
    return service


@pytest.fixture
def address_index():
    """Create an address index mock that finds nothing."""
    service = MagicMock()
    service.endpoint = "https://gis.example.com/AddressPoints/FeatureServer/0"
    service.find = AsyncMock(return_value=None)
    return service


@pytest.fixture
def provider():
    """Create an LLM provider mock answering with an empty object."""
    mock = MagicMock()
    mock.name = "mock"
    mock.model = "primary-model"
    mock.fallback_model = "backup-model"
    mock.complete = AsyncMock(return_value=CompletionResult(content="{}", model="primary-model"))
    return mock


@pytest.fixture
def context():
    return SearchContext(identifier_field="PARCELID", address_field="PROPERTYADDRESS")


@pytest.fixture
def cedar_point():
    return GeoPoint(latitude=26.7, longitude=-80.1, label="306 CEDAR LN")
