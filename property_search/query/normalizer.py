"""Normalization of raw results into outcomes."""

from .models import (
    Failure,
    FeatureRecord,
    GeoPoint,
    MultiMatch,
    NoMatch,
    ResolutionOutcome,
    SingleMatch,
)

NO_MATCH_MESSAGE = (
    "I couldn't find any properties matching your search. Try:\n"
    "• Checking the spelling\n"
    '• Using a different format (e.g., "306 Cedar Lane" or "306 CEDAR LN")\n'
    "• Searching by parcel ID instead"
)

ADDRESS_ATTRIBUTE_FALLBACKS = ("PROPERTYADDRESS", "ADDRESS")


def record_label(record: FeatureRecord, address_field: str) -> str:
    """Get a display name for a record from its address attributes."""
    for name in (address_field, *ADDRESS_ATTRIBUTE_FALLBACKS):
        value = record.attributes.get(name)
        if value not in (None, ""):
            return str(value)
    return "Property"


def normalize(
    features: list[FeatureRecord],
    address_field: str,
    location: GeoPoint | None = None,
    interpretation: str | None = None,
) -> ResolutionOutcome:
    """Map a result set onto NoMatch, SingleMatch or MultiMatch.

    The outcome holds copies of the records.
    """
    if not features:
        return NoMatch(message=NO_MATCH_MESSAGE, location=location, interpretation=interpretation)

    if len(features) == 1:
        record = features[0].copy()
        return SingleMatch(
            message=f"I found **{record_label(record, address_field)}**. Here are the details:",
            location=location or record.center(),
            interpretation=interpretation,
            record=record,
        )

    return MultiMatch(
        message=f"I found **{len(features)}** properties matching your search.",
        location=location,
        interpretation=interpretation,
        matches=[feature.copy() for feature in features],
    )


def failure(reason: str, message: str) -> Failure:
    """Build a terminal failure outcome."""
    return Failure(message=message, reason=reason)
