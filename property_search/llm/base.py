"""Base LLM provider interface and factory pattern."""

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel


class CompletionError(RuntimeError):
    """Raised when a provider fails to produce a completion."""

    def __init__(self, provider: str, model: str, message: str):
        self.provider = provider
        self.model = model
        super().__init__(f"{provider} ({model}): {message}")


class CompletionResult(BaseModel):
    """Result from text completion."""

    content: str
    model: str
    token_count: int | None = None
    finish_reason: str | None = None


class LLMProvider(ABC):
    """Abstract base class for LLM providers."""

    name: str = "base"

    @property
    @abstractmethod
    def model(self) -> str:
        """Primary model name."""

    @property
    @abstractmethod
    def fallback_model(self) -> str | None:
        """Model retried when the primary model fails, if any."""

    @abstractmethod
    async def complete(self, prompt: str, model: str | None = None) -> CompletionResult:
        """Generate text for the given prompt.

        Args:
            prompt: Full prompt text
            model: Override model name, defaults to the primary model

        Returns:
            CompletionResult with generated text and metadata

        Raises:
            CompletionError: If the provider reports an error
        """

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the provider is healthy and accessible.

        Returns:
            True if healthy, False otherwise
        """


class LLMProviderFactory:
    """Factory for creating LLM providers."""

    _providers: dict[str, type[LLMProvider]] = {}

    @classmethod
    def register(cls, name: str, provider_class: type[LLMProvider]) -> None:
        """Register a provider class.

        Args:
            name: Provider name (e.g., "gemini", "openai")
            provider_class: Provider class to register
        """
        cls._providers[name] = provider_class

    @classmethod
    def create(cls, name: str, **kwargs: Any) -> LLMProvider:
        """Create a provider instance.

        Args:
            name: Provider name
            **kwargs: Provider-specific configuration

        Returns:
            LLMProvider instance

        Raises:
            ValueError: If provider name is not registered
        """
        if name not in cls._providers:
            available = ", ".join(cls._providers.keys())
            raise ValueError(f"Unknown provider '{name}'. Available: {available}")

        return cls._providers[name](**kwargs)

    @classmethod
    def list_providers(cls) -> list[str]:
        """List all registered provider names."""
        return list(cls._providers.keys())
