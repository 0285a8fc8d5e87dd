"""Google Gemini LLM provider implementation."""

import logging
from typing import Any

import google.generativeai as genai
from pydantic import BaseModel

from property_search.llm.base import CompletionError, CompletionResult, LLMProvider

logger = logging.getLogger(__name__)


class GeminiConfig(BaseModel):
    """Configuration for Gemini provider."""

    api_key: str
    model: str = "gemini-2.5-flash"
    fallback_model: str | None = "gemini-2.0-flash"
    max_tokens: int = 1024
    temperature: float = 0.1


class GeminiProvider(LLMProvider):
    """Google Gemini LLM provider implementation."""

    name = "gemini"

    def __init__(self, config: GeminiConfig | None = None, **kwargs: Any) -> None:
        """Initialize Gemini provider.

        Args:
            config: Gemini configuration
            **kwargs: Additional configuration options
        """
        self.config = config or GeminiConfig(**kwargs)
        genai.configure(api_key=self.config.api_key)
        self._models: dict[str, genai.GenerativeModel] = {}

    @property
    def model(self) -> str:
        return self.config.model

    @property
    def fallback_model(self) -> str | None:
        return self.config.fallback_model

    def _get_model(self, name: str) -> "genai.GenerativeModel":
        if name not in self._models:
            self._models[name] = genai.GenerativeModel(name)
        return self._models[name]

    async def complete(self, prompt: str, model: str | None = None) -> CompletionResult:
        """Generate text using a Gemini model.

        Args:
            prompt: Full prompt text
            model: Override model name

        Returns:
            CompletionResult with generated text
        """
        model_name = model or self.config.model
        logger.debug(f"Calling Gemini with model: {model_name}")

        try:
            response = await self._get_model(model_name).generate_content_async(
                prompt,
                generation_config=genai.types.GenerationConfig(
                    max_output_tokens=self.config.max_tokens,
                    temperature=self.config.temperature,
                ),
            )

            return CompletionResult(
                content=response.text,
                model=model_name,
                token_count=response.usage_metadata.total_token_count
                if response.usage_metadata
                else None,
                finish_reason=response.candidates[0].finish_reason.name
                if response.candidates
                else None,
            )

        except Exception as e:
            logger.error(f"Gemini request failed ({model_name}): {e}")
            raise CompletionError(self.name, model_name, str(e)) from e

    async def health_check(self) -> bool:
        """Check if Gemini service is accessible."""
        try:
            genai.get_model(f"models/{self.config.model}")
            return True
        except Exception as e:
            logger.warning(f"Gemini health check failed: {e}")
            return False
