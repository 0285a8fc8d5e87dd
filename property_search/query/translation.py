"""Translation of natural-language questions into structured filters."""

import asyncio
import json
import logging
import re
from dataclasses import dataclass
from typing import Any

from property_search.llm.base import CompletionError, LLMProvider
from .models import SearchContext, StructuredFilter

logger = logging.getLogger(__name__)

DEFAULT_COMPLETION_TIMEOUT = 30.0

RESPONSE_KEYS = ("where", "orderBy", "limit", "parcelId", "address", "interpretation")

_CODE_FENCE = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)


@dataclass(frozen=True)
class TranslationResult:
    """Structured reading of a question returned by the model."""

    where: str | None = None
    order_by: str | None = None
    limit: int | None = None
    parcel_id: str | None = None
    address: str | None = None
    interpretation: str | None = None

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "TranslationResult":
        """Build a result from the model's JSON object.

        Also accepts the ArcGIS parameter names ``orderByFields`` and
        ``resultRecordCount``.
        """
        return cls(
            where=_text(data.get("where")),
            order_by=_text(data.get("orderBy") or data.get("orderByFields")),
            limit=_positive_int(data.get("limit") or data.get("resultRecordCount")),
            parcel_id=_text(data.get("parcelId")),
            address=_text(data.get("address")),
            interpretation=_text(data.get("interpretation")),
        )

    @property
    def is_actionable(self) -> bool:
        return bool(self.parcel_id or self.address or self.where)

    def to_filter(self) -> StructuredFilter:
        """Get the filter exactly as the model wrote it."""
        if self.where is None:
            raise ValueError("Translation has no where clause")
        return StructuredFilter(where=self.where, order_by=self.order_by, limit=self.limit)


def _text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _positive_int(value: Any) -> int | None:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


def extract_json(text: str) -> dict[str, Any] | None:
    """Pull the first JSON object out of model output.

    Code fences are stripped first. Anything that does not parse into a
    JSON object gives None.
    """
    if not text:
        return None

    fenced = _CODE_FENCE.search(text)
    if fenced:
        text = fenced.group(1).strip()

    start = text.find("{")
    if start == -1:
        return None

    decoder = json.JSONDecoder()
    try:
        parsed, _ = decoder.raw_decode(text, start)
    except json.JSONDecodeError as e:
        logger.warning(f"Failed to parse JSON from model output: {e}")
        return None

    if not isinstance(parsed, dict):
        return None
    return parsed


def build_prompt(text: str, context: SearchContext) -> str:
    """Assemble the translation prompt."""
    parts = [context.system_prompt.strip()]

    if context.fields:
        catalogue = "\n".join(
            f"- {f.name} ({f.type})" + (f": {f.alias}" if f.alias and f.alias != f.name else "")
            for f in context.fields
        )
        parts.append(f"Queryable fields:\n{catalogue}")

    if context.memory_summary:
        parts.append(f"Previous searches in this session:\n{context.memory_summary}")

    parts.append(f"User Query: {text}")
    parts.append(
        "Respond with ONLY one valid JSON object, no additional text or markdown. "
        f"Use only these keys: {', '.join(RESPONSE_KEYS)}."
    )
    return "\n\n".join(parts)


class AIFilterTranslator:
    """Turns a question into a filter, parcel id or address using an LLM."""

    def __init__(self, provider: LLMProvider, timeout: float = DEFAULT_COMPLETION_TIMEOUT):
        """Initialize translator.

        Args:
            provider: Text completion provider
            timeout: Seconds allowed for each completion call
        """
        self.provider = provider
        self.timeout = timeout

    async def _complete(self, prompt: str) -> str | None:
        """Call the primary model, then the fallback model once on failure."""
        models = [None]
        if self.provider.fallback_model:
            models.append(self.provider.fallback_model)

        for model in models:
            model_name = model or self.provider.model
            try:
                result = await asyncio.wait_for(
                    self.provider.complete(prompt, model=model),
                    timeout=self.timeout,
                )
                return result.content
            except asyncio.TimeoutError:
                logger.warning(f"Completion timed out after {self.timeout}s ({model_name})")
            except CompletionError as e:
                logger.warning(f"Completion failed ({model_name}): {e}")

        return None

    async def translate(self, text: str, context: SearchContext) -> TranslationResult | None:
        """Translate a question.

        Args:
            text: User question
            context: Search context with system prompt, fields and memory

        Returns:
            Parsed translation, or None when translation is disabled, the
            service failed or the output held no JSON object
        """
        if not context.system_prompt or not context.system_prompt.strip():
            logger.warning("No system prompt configured - AI translation disabled")
            return None

        prompt = build_prompt(text, context)
        logger.debug(f"Translation prompt length: {len(prompt)} characters")

        output = await self._complete(prompt)
        if output is None:
            return None

        logger.debug(f"Model output: {output}")
        data = extract_json(output)
        if data is None:
            logger.warning("No JSON object found in model output")
            return None

        result = TranslationResult.from_json(data)
        logger.info(f"Translated query: {result}")
        return result
