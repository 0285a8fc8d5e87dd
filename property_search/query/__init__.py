"""Query classification, translation and resolution pipeline."""

from .classifier import classify
from .memory import SessionMemory
from .models import (
    Failure,
    FeatureRecord,
    GeoPoint,
    MultiMatch,
    NoMatch,
    QueryClassification,
    ResolutionOutcome,
    SearchContext,
    SingleMatch,
    StructuredFilter,
)
from .orchestrator import QueryOrchestrator
from .translation import AIFilterTranslator

__all__ = [
    "AIFilterTranslator",
    "Failure",
    "FeatureRecord",
    "GeoPoint",
    "MultiMatch",
    "NoMatch",
    "QueryClassification",
    "QueryOrchestrator",
    "ResolutionOutcome",
    "SearchContext",
    "SessionMemory",
    "SingleMatch",
    "StructuredFilter",
    "classify",
]
