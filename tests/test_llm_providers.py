"""Tests for LLM providers."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import openai
import pytest

from property_search.llm import (
    AnthropicConfig,
    AnthropicProvider,
    CompletionError,
    CompletionResult,
    GeminiConfig,
    GeminiProvider,
    LLMProviderFactory,
    OllamaConfig,
    OllamaProvider,
    OpenAIConfig,
    OpenAIProvider,
)


class TestLLMProviderFactory:
    """Test the LLM provider factory."""

    def test_list_providers(self):
        """Test listing registered providers."""
        providers = LLMProviderFactory.list_providers()
        assert "gemini" in providers
        assert "openai" in providers
        assert "anthropic" in providers
        assert "ollama" in providers

    def test_create_ollama_provider(self):
        """Test creating Ollama provider."""
        provider = LLMProviderFactory.create("ollama", host="http://test:11434")
        assert isinstance(provider, OllamaProvider)
        assert provider.config.host == "http://test:11434"
        assert provider.fallback_model is None

    def test_create_openai_provider(self):
        """Test creating OpenAI provider."""
        provider = LLMProviderFactory.create("openai", api_key="test-key", fallback_model="gpt-4o")
        assert isinstance(provider, OpenAIProvider)
        assert provider.config.api_key == "test-key"
        assert provider.fallback_model == "gpt-4o"

    def test_create_unknown_provider(self):
        """Test creating unknown provider raises error."""
        with pytest.raises(ValueError, match="Unknown provider 'unknown'"):
            LLMProviderFactory.create("unknown")


class TestOllamaProvider:
    """Test Ollama provider."""

    @pytest.fixture
    def ollama_provider(self):
        """Create Ollama provider for testing."""
        config = OllamaConfig(host="http://test:11434", fallback_model="llama3.1")
        return OllamaProvider(config=config)

    @pytest.mark.asyncio
    async def test_complete_success(self, ollama_provider):
        """Test successful completion."""
        mock_response = MagicMock()
        mock_response.json.return_value = {
            "response": '{"where": "SALEAMOUNT > 500000"}',
            "eval_count": 50,
            "done_reason": "stop",
        }
        mock_response.raise_for_status.return_value = None

        with patch.object(ollama_provider.client, "post", return_value=mock_response) as mock_post:
            result = await ollama_provider.complete("test prompt")

            assert isinstance(result, CompletionResult)
            assert result.content == '{"where": "SALEAMOUNT > 500000"}'
            assert result.model == "llama3.2"
            assert result.token_count == 50

            body = mock_post.call_args[1]["json"]
            assert body["prompt"] == "test prompt"
            assert body["stream"] is False
            assert body["options"]["temperature"] == 0.1

    @pytest.mark.asyncio
    async def test_complete_with_model_override(self, ollama_provider):
        """Test the fallback model is sent when requested."""
        mock_response = MagicMock()
        mock_response.json.return_value = {"response": "{}"}
        mock_response.raise_for_status.return_value = None

        with patch.object(ollama_provider.client, "post", return_value=mock_response) as mock_post:
            result = await ollama_provider.complete("test prompt", model="llama3.1")

            assert mock_post.call_args[1]["json"]["model"] == "llama3.1"
            assert result.model == "llama3.1"

    @pytest.mark.asyncio
    async def test_complete_http_error(self, ollama_provider):
        """Test HTTP errors become CompletionError."""
        error_response = MagicMock(status_code=500, text="model not loaded")
        mock_response = MagicMock()
        mock_response.raise_for_status.side_effect = httpx.HTTPStatusError(
            "Server error", request=MagicMock(), response=error_response
        )

        with patch.object(ollama_provider.client, "post", return_value=mock_response):
            with pytest.raises(CompletionError, match="HTTP 500"):
                await ollama_provider.complete("test prompt")

    @pytest.mark.asyncio
    async def test_complete_error_payload(self, ollama_provider):
        """Test an error payload becomes CompletionError."""
        mock_response = MagicMock()
        mock_response.json.return_value = {"error": "model 'llama3.2' not found"}
        mock_response.raise_for_status.return_value = None

        with patch.object(ollama_provider.client, "post", return_value=mock_response):
            with pytest.raises(CompletionError, match="not found"):
                await ollama_provider.complete("test prompt")

    @pytest.mark.asyncio
    async def test_complete_non_json_body(self, ollama_provider):
        """Test a 200 response that is not JSON becomes CompletionError."""
        mock_response = MagicMock()
        mock_response.json.side_effect = json.JSONDecodeError("Expecting value", "<html>proxy error</html>", 0)
        mock_response.raise_for_status.return_value = None

        with patch.object(ollama_provider.client, "post", return_value=mock_response):
            with pytest.raises(CompletionError, match="Invalid JSON response"):
                await ollama_provider.complete("test prompt")

    @pytest.mark.asyncio
    async def test_complete_non_object_body(self, ollama_provider):
        """Test a JSON array body becomes CompletionError."""
        mock_response = MagicMock()
        mock_response.json.return_value = ["unexpected"]
        mock_response.raise_for_status.return_value = None

        with patch.object(ollama_provider.client, "post", return_value=mock_response):
            with pytest.raises(CompletionError, match="Unexpected response shape"):
                await ollama_provider.complete("test prompt")

    @pytest.mark.asyncio
    async def test_health_check_success(self, ollama_provider):
        """Test successful health check."""
        mock_response = MagicMock()
        mock_response.status_code = 200

        with patch.object(ollama_provider.client, "get", return_value=mock_response):
            result = await ollama_provider.health_check()
            assert result is True

    @pytest.mark.asyncio
    async def test_health_check_failure(self, ollama_provider):
        """Test failed health check."""
        with patch.object(ollama_provider.client, "get", side_effect=Exception("Connection error")):
            result = await ollama_provider.health_check()
            assert result is False


class TestOpenAIProvider:
    """Test OpenAI provider."""

    @pytest.fixture
    def openai_provider(self):
        """Create OpenAI provider for testing."""
        config = OpenAIConfig(api_key="test-key")
        return OpenAIProvider(config=config)

    @pytest.mark.asyncio
    async def test_complete_success(self, openai_provider):
        """Test successful completion."""
        mock_choice = MagicMock()
        mock_choice.message.content = '{"parcelId": "12-345"}'
        mock_choice.finish_reason = "stop"

        mock_response = MagicMock()
        mock_response.choices = [mock_choice]
        mock_response.usage.total_tokens = 50

        with patch.object(
            openai_provider.client.chat.completions,
            "create",
            new_callable=AsyncMock,
            return_value=mock_response,
        ) as mock_create:
            result = await openai_provider.complete("test prompt")

            assert result.content == '{"parcelId": "12-345"}'
            assert result.model == "gpt-4o-mini"
            assert result.token_count == 50
            assert result.finish_reason == "stop"

            kwargs = mock_create.call_args[1]
            assert kwargs["messages"] == [{"role": "user", "content": "test prompt"}]
            assert kwargs["temperature"] == 0.1

    @pytest.mark.asyncio
    async def test_complete_error(self, openai_provider):
        """Test SDK errors become CompletionError."""
        with patch.object(
            openai_provider.client.chat.completions,
            "create",
            new_callable=AsyncMock,
            side_effect=openai.OpenAIError("rate limited"),
        ):
            with pytest.raises(CompletionError, match="rate limited"):
                await openai_provider.complete("test prompt")

    @pytest.mark.asyncio
    async def test_complete_empty_choices(self, openai_provider):
        """Test a response without choices becomes CompletionError."""
        mock_response = MagicMock()
        mock_response.choices = []

        with patch.object(
            openai_provider.client.chat.completions,
            "create",
            new_callable=AsyncMock,
            return_value=mock_response,
        ):
            with pytest.raises(CompletionError, match="Empty response"):
                await openai_provider.complete("test prompt")


class TestAnthropicProvider:
    """Test Anthropic provider."""

    @pytest.mark.asyncio
    async def test_complete_joins_text_blocks(self):
        """Test text blocks are concatenated."""
        provider = AnthropicProvider(config=AnthropicConfig(api_key="test-key"))

        first = MagicMock(type="text", text='{"where": ')
        second = MagicMock(type="text", text='"ACRES > 5"}')
        mock_response = MagicMock()
        mock_response.content = [first, second]
        mock_response.usage.input_tokens = 40
        mock_response.usage.output_tokens = 10
        mock_response.stop_reason = "end_turn"

        with patch.object(
            provider.client.messages,
            "create",
            new_callable=AsyncMock,
            return_value=mock_response,
        ):
            result = await provider.complete("test prompt", model="claude-3-5-sonnet-latest")

            assert result.content == '{"where": "ACRES > 5"}'
            assert result.model == "claude-3-5-sonnet-latest"
            assert result.token_count == 50


class TestGeminiProvider:
    """Test Gemini provider."""

    @pytest.mark.asyncio
    async def test_complete_uses_requested_model(self):
        """Test a model is built per requested model name."""
        provider = GeminiProvider(config=GeminiConfig(api_key="test-key"))

        mock_response = MagicMock()
        mock_response.text = '{"address": "306 Cedar Lane"}'
        mock_response.usage_metadata.total_token_count = 30
        mock_response.candidates = []
        mock_model = MagicMock()
        mock_model.generate_content_async = AsyncMock(return_value=mock_response)

        with patch(
            "property_search.llm.gemini.genai.GenerativeModel", return_value=mock_model
        ) as mock_cls:
            result = await provider.complete("test prompt", model=provider.fallback_model)

            mock_cls.assert_called_once_with("gemini-2.0-flash")
            assert result.content == '{"address": "306 Cedar Lane"}'
            assert result.model == "gemini-2.0-flash"
            assert result.token_count == 30

    @pytest.mark.asyncio
    async def test_complete_error(self):
        """Test API failures become CompletionError."""
        provider = GeminiProvider(config=GeminiConfig(api_key="test-key"))

        mock_model = MagicMock()
        mock_model.generate_content_async = AsyncMock(side_effect=Exception("quota exceeded"))

        with patch("property_search.llm.gemini.genai.GenerativeModel", return_value=mock_model):
            with pytest.raises(CompletionError, match="quota exceeded"):
                await provider.complete("test prompt")
