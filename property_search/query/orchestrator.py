"""Query pipeline: classification, resolution, fallback and normalization."""

import asyncio
import itertools
import logging
from enum import Enum
from typing import Protocol, Sequence

import httpx

from property_search.arcgis.client import AddressIndexService, FeatureQueryService, GeocodingService
from property_search.config import Settings
from property_search.exceptions import InvalidTransitionError, ServiceError, UnrestrictedFilterError
from property_search.llm.base import LLMProvider
from property_search.safety import is_unrestricted
from .classifier import classify
from .memory import SessionMemory
from .models import (
    FeatureRecord,
    FieldInfo,
    GeoPoint,
    MultiMatch,
    Query,
    QueryClassification,
    ResolutionOutcome,
    SearchContext,
    SingleMatch,
    StructuredFilter,
)
from .normalizer import failure, normalize
from .strategies import AddressResolution, FallbackTextSearch, IdentifierLookup, StrategyResult
from .translation import AIFilterTranslator, TranslationResult

logger = logging.getLogger(__name__)

EMPTY_QUERY_MESSAGE = "Please enter an address, parcel ID or question."
TOO_BROAD_MESSAGE = "Your search is too broad. Please add more criteria to narrow it down."
SEARCH_FAILED_MESSAGE = "Search failed. Please try rephrasing your question."


class PipelineState(str, Enum):
    IDLE = "idle"
    CLASSIFYING = "classifying"
    RESOLVING = "resolving"
    VALIDATING = "validating"
    QUERYING = "querying"
    NORMALIZING = "normalizing"
    FAILED = "failed"


class PipelineEvent(str, Enum):
    SUBMIT = "submit"
    CLASSIFIED = "classified"
    EXECUTE = "execute"
    FILTER_PRODUCED = "filter_produced"
    FILTER_APPROVED = "filter_approved"
    FILTER_REJECTED = "filter_rejected"
    NO_RESULTS = "no_results"
    RESULTS_READY = "results_ready"
    ERROR = "error"
    OUTCOME_PRODUCED = "outcome_produced"
    FAILURE_SURFACED = "failure_surfaced"


_S = PipelineState
_E = PipelineEvent

TRANSITIONS: dict[tuple[PipelineState, PipelineEvent], PipelineState] = {
    (_S.IDLE, _E.SUBMIT): _S.CLASSIFYING,
    (_S.CLASSIFYING, _E.CLASSIFIED): _S.RESOLVING,
    (_S.CLASSIFYING, _E.ERROR): _S.FAILED,
    (_S.RESOLVING, _E.EXECUTE): _S.QUERYING,
    (_S.RESOLVING, _E.FILTER_PRODUCED): _S.VALIDATING,
    (_S.RESOLVING, _E.RESULTS_READY): _S.NORMALIZING,
    (_S.RESOLVING, _E.ERROR): _S.FAILED,
    (_S.VALIDATING, _E.FILTER_APPROVED): _S.QUERYING,
    (_S.VALIDATING, _E.FILTER_REJECTED): _S.FAILED,
    (_S.QUERYING, _E.NO_RESULTS): _S.RESOLVING,
    (_S.QUERYING, _E.RESULTS_READY): _S.NORMALIZING,
    (_S.QUERYING, _E.ERROR): _S.FAILED,
    (_S.NORMALIZING, _E.OUTCOME_PRODUCED): _S.IDLE,
    (_S.FAILED, _E.FAILURE_SURFACED): _S.IDLE,
}


def transition(state: PipelineState, event: PipelineEvent) -> PipelineState:
    """Get the state reached from ``state`` on ``event``.

    Raises:
        InvalidTransitionError: If the pair is not part of the pipeline
    """
    try:
        return TRANSITIONS[(state, event)]
    except KeyError:
        raise InvalidTransitionError(state.value, event.value) from None


class MapView(Protocol):
    """Map collaborator notified of outcomes."""

    async def center_and_highlight(self, record: FeatureRecord, location: GeoPoint | None) -> None: ...

    async def show_results(self, records: list[FeatureRecord]) -> None: ...


class FieldCatalogue:
    """Lazily loaded description of the layer's queryable fields."""

    def __init__(self, feature_service: FeatureQueryService, fields: Sequence[FieldInfo] | None = None):
        self.feature_service = feature_service
        self._fields = tuple(fields) if fields is not None else None

    async def get(self) -> tuple[FieldInfo, ...]:
        if self._fields is None:
            try:
                self._fields = tuple(await self.feature_service.describe_fields())
                logger.info(f"Loaded {len(self._fields)} fields from layer metadata")
            except ServiceError as e:
                logger.warning(f"Could not load field catalogue, continuing without it: {e}")
                return ()
        return self._fields


class QueryOrchestrator:
    """Resolves free-text searches for one session.

    Submissions are processed one at a time in submission order; a query
    submitted while another is resolving waits for it to finish.
    """

    def __init__(
        self,
        feature_service: FeatureQueryService,
        address_resolution: AddressResolution,
        translator: AIFilterTranslator | None = None,
        identifier_field: str = "PARCELID",
        address_field: str = "PROPERTYADDRESS",
        system_prompt: str = "",
        memory: SessionMemory | None = None,
        catalogue: FieldCatalogue | None = None,
        map_view: MapView | None = None,
    ):
        self.feature_service = feature_service
        self.address_resolution = address_resolution
        self.translator = translator
        self.identifier_lookup = IdentifierLookup(feature_service)
        self.fallback_search = FallbackTextSearch(feature_service)
        self.identifier_field = identifier_field
        self.address_field = address_field
        self.system_prompt = system_prompt
        self.memory = memory or SessionMemory()
        self.catalogue = catalogue or FieldCatalogue(feature_service)
        self.map_view = map_view

        self.state = PipelineState.IDLE
        self._sequence = itertools.count(1)
        self._lock = asyncio.Lock()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        provider: LLMProvider | None = None,
        client: httpx.AsyncClient | None = None,
        catalogue: FieldCatalogue | None = None,
        map_view: MapView | None = None,
    ) -> "QueryOrchestrator":
        """Build an orchestrator with services described by the settings."""
        client = client or httpx.AsyncClient()
        feature_service = FeatureQueryService(settings.feature_service_url, client=client)

        address_index = None
        if settings.address_index_url:
            address_index = AddressIndexService(
                settings.address_index_url,
                search_field=settings.address_index_search_field,
                display_field=settings.address_index_display_field,
                exact_match=settings.address_index_exact_match,
                client=client,
            )

        translator = None
        if provider is not None:
            translator = AIFilterTranslator(provider, timeout=settings.completion_timeout)

        identifier_field, address_field = settings.resolve_field_names()
        return cls(
            feature_service=feature_service,
            address_resolution=AddressResolution(
                feature_service,
                geocoder=GeocodingService(settings.geocoder_url, client=client),
                address_index=address_index,
            ),
            translator=translator,
            identifier_field=identifier_field,
            address_field=address_field,
            system_prompt=settings.system_prompt,
            memory=SessionMemory(settings.session_memory_size),
            catalogue=catalogue or FieldCatalogue(feature_service),
            map_view=map_view,
        )

    def _advance(self, event: PipelineEvent) -> None:
        new_state = transition(self.state, event)
        logger.debug(f"Pipeline {self.state.value} -> {new_state.value} ({event.value})")
        self.state = new_state

    async def submit(self, text: str) -> ResolutionOutcome:
        """Resolve a search phrase.

        Args:
            text: Raw user input

        Returns:
            The terminal outcome for the query
        """
        query = Query(text=(text or "").strip(), sequence=next(self._sequence))

        async with self._lock:
            try:
                return await self._process(query)
            except Exception:
                logger.exception(f"Unexpected error resolving query #{query.sequence}")
                self.state = PipelineState.IDLE
                raise

    async def _process(self, query: Query) -> ResolutionOutcome:
        self._advance(PipelineEvent.SUBMIT)
        logger.info(f"Processing query #{query.sequence}: {query.text}")

        if not query.text:
            return self._fail("empty_query", EMPTY_QUERY_MESSAGE)

        classification = classify(query.text)
        logger.info(f"Classified as {classification.value}")
        self._advance(PipelineEvent.CLASSIFIED)

        try:
            result, interpretation = await self._resolve(query, classification)
        except UnrestrictedFilterError as e:
            logger.warning(f"Rejected unrestricted filter: {e.where!r}")
            return self._fail("too_broad", TOO_BROAD_MESSAGE)
        except ServiceError as e:
            logger.error(f"Search failed: {e}")
            return self._fail("service_error", SEARCH_FAILED_MESSAGE)

        self._advance(PipelineEvent.RESULTS_READY)
        outcome = normalize(
            result.features,
            self.address_field,
            location=result.location,
            interpretation=interpretation,
        )
        self.memory.record(query.text, len(result.features), result.filter_used)
        await self._notify_map(outcome)
        self._advance(PipelineEvent.OUTCOME_PRODUCED)

        logger.info(f"Query #{query.sequence} resolved: {outcome.kind} ({len(result.features)} features)")
        return outcome

    def _fail(self, reason: str, message: str) -> ResolutionOutcome:
        if self.state != PipelineState.FAILED:
            self._advance(PipelineEvent.ERROR)
        self._advance(PipelineEvent.FAILURE_SURFACED)
        return failure(reason, message)

    async def _build_context(self, classification: QueryClassification) -> SearchContext:
        fields: tuple[FieldInfo, ...] = ()
        if classification is QueryClassification.FREEFORM and self.translator and self.system_prompt.strip():
            fields = await self.catalogue.get()

        return SearchContext(
            identifier_field=self.identifier_field,
            address_field=self.address_field,
            system_prompt=self.system_prompt,
            fields=fields,
            memory_summary=self.memory.summary(),
        )

    async def _resolve(
        self, query: Query, classification: QueryClassification
    ) -> tuple[StrategyResult, str | None]:
        context = await self._build_context(classification)

        if classification is QueryClassification.IDENTIFIER:
            # No fallback for identifiers: an unknown id is a plain miss
            self._advance(PipelineEvent.EXECUTE)
            return await self.identifier_lookup.run(query.text, context), None

        interpretation = None
        if classification is QueryClassification.ADDRESS:
            result = await self._resolve_address(query.text)
        else:
            translation = None
            if self.translator is not None:
                translation = await self.translator.translate(query.text, context)
            if translation is not None:
                interpretation = translation.interpretation
            result = await self._resolve_translation(translation, context)

        if result is None:
            self._advance(PipelineEvent.EXECUTE)
            return await self.fallback_search.run(query.text, context), interpretation

        if not result.features:
            self._advance(PipelineEvent.NO_RESULTS)
            self._advance(PipelineEvent.EXECUTE)
            return await self.fallback_search.run(query.text, context), interpretation

        return result, interpretation

    async def _resolve_address(self, address: str) -> StrategyResult | None:
        point = await self.address_resolution.locate(address)
        if point is None:
            logger.info("No coordinate found for address")
            return None

        self._advance(PipelineEvent.EXECUTE)
        return await self.address_resolution.intersect(point)

    async def _resolve_translation(
        self, translation: TranslationResult | None, context: SearchContext
    ) -> StrategyResult | None:
        if translation is None or not translation.is_actionable:
            logger.info("AI translation unavailable, falling back to text search")
            return None

        if translation.parcel_id:
            self._advance(PipelineEvent.EXECUTE)
            return await self.identifier_lookup.run(translation.parcel_id, context)

        if translation.address:
            return await self._resolve_address(translation.address)

        structured = translation.to_filter()
        self._advance(PipelineEvent.FILTER_PRODUCED)
        if is_unrestricted(structured.where):
            self._advance(PipelineEvent.FILTER_REJECTED)
            raise UnrestrictedFilterError(structured.where)

        self._advance(PipelineEvent.FILTER_APPROVED)
        return await self._execute_filter(structured)

    async def _execute_filter(self, structured: StructuredFilter) -> StrategyResult:
        logger.info(f"Executing AI-generated WHERE clause: {structured.where}")
        features = await self.feature_service.query(
            structured.where,
            order_by=structured.order_by,
            limit=structured.limit,
        )
        return StrategyResult(features=features, filter_used=structured.where)

    async def _notify_map(self, outcome: ResolutionOutcome) -> None:
        if self.map_view is None:
            return
        if isinstance(outcome, SingleMatch) and outcome.record is not None:
            await self.map_view.center_and_highlight(outcome.record, outcome.location)
        elif isinstance(outcome, MultiMatch):
            await self.map_view.show_results(outcome.records)
