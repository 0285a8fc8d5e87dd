"""LLM providers module."""

from property_search.llm.anthropic import AnthropicConfig, AnthropicProvider
from property_search.llm.base import (
    CompletionError,
    CompletionResult,
    LLMProvider,
    LLMProviderFactory,
)
from property_search.llm.factory import create_llm_provider
from property_search.llm.gemini import GeminiConfig, GeminiProvider
from property_search.llm.ollama import OllamaConfig, OllamaProvider
from property_search.llm.openai import OpenAIConfig, OpenAIProvider

# Register all providers
LLMProviderFactory.register("gemini", GeminiProvider)
LLMProviderFactory.register("openai", OpenAIProvider)
LLMProviderFactory.register("anthropic", AnthropicProvider)
LLMProviderFactory.register("ollama", OllamaProvider)

__all__ = [
    "AnthropicConfig",
    "AnthropicProvider",
    "CompletionError",
    "CompletionResult",
    "GeminiConfig",
    "GeminiProvider",
    "LLMProvider",
    "LLMProviderFactory",
    "OllamaConfig",
    "OllamaProvider",
    "OpenAIConfig",
    "OpenAIProvider",
    "create_llm_provider",
]
