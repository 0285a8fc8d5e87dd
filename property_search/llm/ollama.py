"""Ollama LLM provider implementation."""

import logging
from typing import Any

import httpx
from pydantic import BaseModel

from property_search.llm.base import CompletionError, CompletionResult, LLMProvider

logger = logging.getLogger(__name__)


class OllamaConfig(BaseModel):
    """Configuration for Ollama provider."""

    host: str = "http://localhost:11434"
    model: str = "llama3.2"
    fallback_model: str | None = None
    max_tokens: int = 1024
    temperature: float = 0.1


class OllamaProvider(LLMProvider):
    """Ollama LLM provider implementation."""

    name = "ollama"

    def __init__(self, config: OllamaConfig | None = None, **kwargs: Any) -> None:
        """Initialize Ollama provider.

        Args:
            config: Ollama configuration
            **kwargs: Additional configuration options
        """
        self.config = config or OllamaConfig(**kwargs)
        # No client timeout; the translator bounds every call
        self.client = httpx.AsyncClient(base_url=self.config.host, timeout=None)

    @property
    def model(self) -> str:
        return self.config.model

    @property
    def fallback_model(self) -> str | None:
        return self.config.fallback_model

    async def complete(self, prompt: str, model: str | None = None) -> CompletionResult:
        """Generate text using an Ollama model.

        Args:
            prompt: Full prompt text
            model: Override model name

        Returns:
            CompletionResult with generated text
        """
        model_name = model or self.config.model

        try:
            logger.debug(f"Sending request to Ollama with model: {model_name}")
            logger.debug(f"Prompt length: {len(prompt)} characters")

            response = await self.client.post(
                "/api/generate",
                json={
                    "model": model_name,
                    "prompt": prompt,
                    "stream": False,
                    "options": {
                        "temperature": self.config.temperature,
                        "num_predict": self.config.max_tokens,
                    },
                },
            )
            response.raise_for_status()
            data = response.json()
            if not isinstance(data, dict):
                raise CompletionError(self.name, model_name, "Unexpected response shape")

            if "error" in data:
                raise CompletionError(self.name, model_name, str(data["error"]))

            return CompletionResult(
                content=data.get("response", ""),
                model=model_name,
                token_count=data.get("eval_count"),
                finish_reason=data.get("done_reason"),
            )

        except httpx.HTTPStatusError as e:
            logger.error(f"Ollama HTTP error ({model_name}): {e}")
            logger.error(f"Response text: {e.response.text}")
            raise CompletionError(self.name, model_name, f"HTTP {e.response.status_code}") from e
        except httpx.RequestError as e:
            logger.error(f"Ollama request failed ({model_name}): {e}")
            logger.error(f"Host: {self.config.host}")
            raise CompletionError(self.name, model_name, str(e)) from e
        except (ValueError, KeyError) as e:
            logger.error(f"Ollama returned an unreadable response ({model_name}): {e}")
            raise CompletionError(self.name, model_name, "Invalid JSON response") from e

    async def health_check(self) -> bool:
        """Check if Ollama service is healthy."""
        try:
            response = await self.client.get("/api/tags")
            return response.status_code == 200
        except Exception as e:
            logger.warning(f"Ollama health check failed: {e}")
            return False

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.client.aclose()
