"""Query resolution models and data structures."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from property_search.arcgis.models import FeatureRecord, FieldInfo, GeoPoint

__all__ = [
    "FeatureRecord",
    "FieldInfo",
    "GeoPoint",
    "QueryClassification",
    "Query",
    "StructuredFilter",
    "SessionMemoryEntry",
    "SearchContext",
    "ResolutionOutcome",
    "NoMatch",
    "SingleMatch",
    "MultiMatch",
    "Failure",
]


class QueryClassification(str, Enum):
    """How a raw query should be resolved."""

    IDENTIFIER = "identifier"
    ADDRESS = "address"
    FREEFORM = "freeform"


@dataclass(frozen=True)
class Query:
    """A submitted search phrase."""

    text: str
    sequence: int


@dataclass(frozen=True)
class StructuredFilter:
    """A predicate with optional ordering and result cap."""

    where: str
    order_by: str | None = None
    limit: int | None = None


@dataclass(frozen=True)
class SessionMemoryEntry:
    """A completed search remembered for the session."""

    query: str
    result_count: int
    filter_used: str | None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class SearchContext:
    """Request-scoped values every strategy needs."""

    identifier_field: str
    address_field: str
    system_prompt: str = ""
    fields: tuple[FieldInfo, ...] = ()
    memory_summary: str = ""


@dataclass
class ResolutionOutcome:
    """Terminal result of resolving one query."""

    message: str
    location: GeoPoint | None = None
    interpretation: str | None = None

    @property
    def kind(self) -> str:
        return type(self).__name__

    @property
    def records(self) -> list[FeatureRecord]:
        return []


@dataclass
class NoMatch(ResolutionOutcome):
    """Nothing matched the query."""


@dataclass
class SingleMatch(ResolutionOutcome):
    """Exactly one record matched."""

    record: FeatureRecord | None = None

    @property
    def records(self) -> list[FeatureRecord]:
        return [self.record] if self.record is not None else []


@dataclass
class MultiMatch(ResolutionOutcome):
    """Several records matched."""

    matches: list[FeatureRecord] = field(default_factory=list)

    @property
    def records(self) -> list[FeatureRecord]:
        return list(self.matches)


@dataclass
class Failure(ResolutionOutcome):
    """The query could not be resolved."""

    reason: str = ""
