"""OpenAI LLM provider implementation."""

import logging
from typing import Any

import openai
from pydantic import BaseModel

from property_search.llm.base import CompletionError, CompletionResult, LLMProvider

logger = logging.getLogger(__name__)


class OpenAIConfig(BaseModel):
    """Configuration for OpenAI provider."""

    api_key: str
    model: str = "gpt-4o-mini"
    fallback_model: str | None = None
    max_tokens: int = 1024
    temperature: float = 0.1
    # Retries are handled by the translator's fallback model
    max_retries: int = 0


class OpenAIProvider(LLMProvider):
    """OpenAI LLM provider implementation."""

    name = "openai"

    def __init__(self, config: OpenAIConfig | None = None, **kwargs: Any) -> None:
        """Initialize OpenAI provider.

        Args:
            config: OpenAI configuration
            **kwargs: Additional configuration options
        """
        self.config = config or OpenAIConfig(**kwargs)
        self.client = openai.AsyncOpenAI(
            api_key=self.config.api_key,
            max_retries=self.config.max_retries,
        )

    @property
    def model(self) -> str:
        return self.config.model

    @property
    def fallback_model(self) -> str | None:
        return self.config.fallback_model

    async def complete(self, prompt: str, model: str | None = None) -> CompletionResult:
        """Generate text using an OpenAI chat model.

        Args:
            prompt: Full prompt text
            model: Override model name

        Returns:
            CompletionResult with generated text
        """
        model_name = model or self.config.model

        try:
            response = await self.client.chat.completions.create(
                model=model_name,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=self.config.max_tokens,
                temperature=self.config.temperature,
            )

            choice = response.choices[0]

            return CompletionResult(
                content=choice.message.content or "",
                model=model_name,
                token_count=response.usage.total_tokens if response.usage else None,
                finish_reason=choice.finish_reason,
            )

        except openai.OpenAIError as e:
            logger.error(f"OpenAI request failed ({model_name}): {e}")
            raise CompletionError(self.name, model_name, str(e)) from e
        except (IndexError, AttributeError) as e:
            logger.error(f"OpenAI returned no usable choice ({model_name}): {e}")
            raise CompletionError(self.name, model_name, "Empty response") from e

    async def health_check(self) -> bool:
        """Check if OpenAI service is accessible."""
        try:
            await self.client.models.retrieve(self.config.model)
            return True
        except Exception as e:
            logger.warning(f"OpenAI health check failed: {e}")
            return False
