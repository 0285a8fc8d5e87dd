"""Factory for creating LLM providers from configuration."""

from property_search.config import LLMProvider as LLMProviderEnum
from property_search.config import get_settings
from property_search.llm.base import LLMProvider, LLMProviderFactory


def create_llm_provider(provider_name: str | None = None) -> LLMProvider:
    """Create LLM provider from configuration.

    Args:
        provider_name: Override provider name, defaults to settings.llm_provider

    Returns:
        Configured LLM provider instance

    Raises:
        ValueError: If provider configuration is invalid
    """
    settings = get_settings()
    provider_name = provider_name or settings.llm_provider
    generation = {
        "max_tokens": settings.completion_max_tokens,
        "temperature": settings.completion_temperature,
    }

    # Build provider-specific config
    if provider_name == LLMProviderEnum.GEMINI:
        from property_search.llm.gemini import GeminiConfig

        if not settings.gemini_api_key:
            raise ValueError("Gemini API key is required")

        config = GeminiConfig(
            api_key=settings.gemini_api_key,
            model=settings.gemini_model,
            fallback_model=settings.gemini_fallback_model,
            **generation,
        )
        return LLMProviderFactory.create("gemini", config=config)

    elif provider_name == LLMProviderEnum.OPENAI:
        from property_search.llm.openai import OpenAIConfig

        if not settings.openai_api_key:
            raise ValueError("OpenAI API key is required")

        config = OpenAIConfig(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            fallback_model=settings.openai_fallback_model,
            **generation,
        )
        return LLMProviderFactory.create("openai", config=config)

    elif provider_name == LLMProviderEnum.ANTHROPIC:
        from property_search.llm.anthropic import AnthropicConfig

        if not settings.anthropic_api_key:
            raise ValueError("Anthropic API key is required")

        config = AnthropicConfig(
            api_key=settings.anthropic_api_key,
            model=settings.anthropic_model,
            fallback_model=settings.anthropic_fallback_model,
            **generation,
        )
        return LLMProviderFactory.create("anthropic", config=config)

    elif provider_name == LLMProviderEnum.OLLAMA:
        from property_search.llm.ollama import OllamaConfig

        config = OllamaConfig(
            host=settings.ollama_host,
            model=settings.ollama_model,
            fallback_model=settings.ollama_fallback_model,
            **generation,
        )
        return LLMProviderFactory.create("ollama", config=config)

    else:
        raise ValueError(f"Unknown LLM provider: {provider_name}")
