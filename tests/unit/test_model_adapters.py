"""Unit tests for the Gemini and OpenAI model adapters with mocked SDK clients."""

import sys
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest
from google.genai import errors as genai_errors

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from hablar.errors import ErrorKind, ProviderError
from hablar.generation.gemini import GeminiModel
from hablar.generation.openai_chat import OpenAIChatModel


def _gemini_client(response=None, error: Exception | None = None) -> MagicMock:
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock(
        return_value=response, side_effect=error
    )
    return client


def _openai_client(content: str | None = None, error: Exception | None = None):
    client = MagicMock()
    response = SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))]
    )
    client.chat.completions.create = AsyncMock(return_value=response, side_effect=error)
    return client


class TestGeminiModel:
    def test_unconfigured_without_key(self) -> None:
        assert not GeminiModel("gemini-2.5-flash", "Gemini 2.5 Flash").is_configured()

    @pytest.mark.asyncio
    async def test_generate_requests_json(self) -> None:
        client = _gemini_client(SimpleNamespace(text='{"text": "Hola", "gender": "male"}'))
        model = GeminiModel("gemini-2.5-flash", "Gemini 2.5 Flash", client=client)

        data = await model.generate("prompt")

        assert data == {"text": "Hola", "gender": "male"}
        kwargs = client.aio.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "gemini-2.5-flash"
        assert kwargs["contents"] == "prompt"
        assert kwargs["config"].response_mime_type == "application/json"

    @pytest.mark.asyncio
    async def test_quota_error_is_rate_limited(self) -> None:
        error = genai_errors.ClientError(
            429,
            {"error": {"code": 429, "status": "RESOURCE_EXHAUSTED", "message": "quota"}},
        )
        model = GeminiModel("m", "Gemini", client=_gemini_client(error=error))

        with pytest.raises(ProviderError) as exc_info:
            await model.generate("prompt")

        assert exc_info.value.kind is ErrorKind.RATE_LIMITED
        assert exc_info.value.provider == "Gemini"

    @pytest.mark.asyncio
    async def test_server_error_is_transient(self) -> None:
        error = genai_errors.ServerError(
            503, {"error": {"code": 503, "status": "UNAVAILABLE", "message": "busy"}}
        )
        model = GeminiModel("m", "Gemini", client=_gemini_client(error=error))

        with pytest.raises(ProviderError) as exc_info:
            await model.generate("prompt")

        assert exc_info.value.kind is ErrorKind.TRANSIENT

    @pytest.mark.asyncio
    async def test_empty_text(self) -> None:
        model = GeminiModel("m", "Gemini", client=_gemini_client(SimpleNamespace(text=None)))

        with pytest.raises(ProviderError, match="Empty response"):
            await model.generate("prompt")


class TestOpenAIChatModel:
    def test_defaults(self) -> None:
        model = OpenAIChatModel()

        assert model.name == "gpt-4o-mini"
        assert model.label == "OpenAI GPT-4o Mini"
        assert not model.is_configured()

    @pytest.mark.asyncio
    async def test_generate_uses_json_mode(self) -> None:
        client = _openai_client('{"text": "Hola"}')

        data = await OpenAIChatModel(client=client).generate("prompt")

        assert data == {"text": "Hola"}
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["messages"] == [{"role": "user", "content": "prompt"}]

    @pytest.mark.asyncio
    async def test_rate_limit_error(self) -> None:
        request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        error = openai.RateLimitError(
            "Rate limit reached",
            response=httpx.Response(429, request=request),
            body=None,
        )

        with pytest.raises(ProviderError) as exc_info:
            await OpenAIChatModel(client=_openai_client(error=error)).generate("p")

        assert exc_info.value.kind is ErrorKind.RATE_LIMITED
        assert exc_info.value.status_code == 429

    @pytest.mark.asyncio
    async def test_connection_error_is_transient(self) -> None:
        request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        error = openai.APIConnectionError(request=request)

        with pytest.raises(ProviderError) as exc_info:
            await OpenAIChatModel(client=_openai_client(error=error)).generate("p")

        assert exc_info.value.kind is ErrorKind.TRANSIENT

    @pytest.mark.asyncio
    async def test_invalid_json(self) -> None:
        client = _openai_client("Hola, ¿qué tal?")

        with pytest.raises(ProviderError, match="invalid JSON"):
            await OpenAIChatModel(client=client).generate("p")
