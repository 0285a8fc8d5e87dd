"""Anthropic Claude LLM provider implementation."""

import logging
from typing import Any

import anthropic
from pydantic import BaseModel

from property_search.llm.base import CompletionError, CompletionResult, LLMProvider

logger = logging.getLogger(__name__)


class AnthropicConfig(BaseModel):
    """Configuration for Anthropic provider."""

    api_key: str
    model: str = "claude-3-5-haiku-20241022"
    fallback_model: str | None = None
    max_tokens: int = 1024
    temperature: float = 0.1


class AnthropicProvider(LLMProvider):
    """Anthropic Claude LLM provider implementation."""

    name = "anthropic"

    def __init__(self, config: AnthropicConfig | None = None, **kwargs: Any) -> None:
        """Initialize Anthropic provider.

        Args:
            config: Anthropic configuration
            **kwargs: Additional configuration options
        """
        self.config = config or AnthropicConfig(**kwargs)
        self.client = anthropic.AsyncAnthropic(
            api_key=self.config.api_key,
            max_retries=0,
        )

    @property
    def model(self) -> str:
        return self.config.model

    @property
    def fallback_model(self) -> str | None:
        return self.config.fallback_model

    async def complete(self, prompt: str, model: str | None = None) -> CompletionResult:
        """Generate text using a Claude model.

        Args:
            prompt: Full prompt text
            model: Override model name

        Returns:
            CompletionResult with generated text
        """
        model_name = model or self.config.model

        try:
            response = await self.client.messages.create(
                model=model_name,
                max_tokens=self.config.max_tokens,
                temperature=self.config.temperature,
                messages=[{"role": "user", "content": prompt}],
            )

            # Anthropic returns content as a list of blocks
            content = "".join(block.text for block in response.content if block.type == "text")

            return CompletionResult(
                content=content,
                model=model_name,
                token_count=response.usage.output_tokens + response.usage.input_tokens,
                finish_reason=response.stop_reason,
            )

        except anthropic.AnthropicError as e:
            logger.error(f"Anthropic request failed ({model_name}): {e}")
            raise CompletionError(self.name, model_name, str(e)) from e
        except (AttributeError, TypeError) as e:
            logger.error(f"Anthropic returned an unexpected response ({model_name}): {e}")
            raise CompletionError(self.name, model_name, "Unexpected response shape") from e

    async def health_check(self) -> bool:
        """Check if Anthropic service is accessible."""
        try:
            await self.client.messages.create(
                model=self.config.model,
                max_tokens=10,
                messages=[{"role": "user", "content": "Hi"}],
            )
            return True
        except Exception as e:
            logger.warning(f"Anthropic health check failed: {e}")
            return False
