"""OpenAI chat-completions model adapter."""

import os
from typing import Any

import openai
from openai import AsyncOpenAI

from ..errors import ErrorKind, ProviderError, classify_exception
from .base import ModelAdapter

DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_LABEL = "OpenAI GPT-4o Mini"


class OpenAIChatModel(ModelAdapter):
    """OpenAI model used as the last resort of a chain, on another vendor."""

    def __init__(
        self,
        name: str = DEFAULT_MODEL,
        label: str = DEFAULT_LABEL,
        api_key: str | None = None,
        client: AsyncOpenAI | None = None,
        temperature: float = 0.7,
    ) -> None:
        self.name = name
        self.label = label
        self._api_key = api_key or os.getenv("OPENAI_API_KEY")
        self._client = client
        self._temperature = temperature

    def is_configured(self) -> bool:
        return self._client is not None or bool(self._api_key)

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            if not self._api_key:
                raise ProviderError(
                    self.label,
                    "OpenAI API key not found. Set OPENAI_API_KEY.",
                    ErrorKind.MISCONFIGURED,
                )
            self._client = AsyncOpenAI(api_key=self._api_key)
        return self._client

    async def generate(self, prompt: str) -> dict[str, Any]:
        client = self._get_client()
        try:
            response = await client.chat.completions.create(
                model=self.name,
                messages=[{"role": "user", "content": prompt}],
                temperature=self._temperature,
                response_format={"type": "json_object"},
            )
        except openai.RateLimitError as e:
            raise ProviderError(
                self.label,
                f"Rate limit exceeded: {e}",
                ErrorKind.RATE_LIMITED,
                status_code=429,
                original_error=e,
            ) from e
        except (openai.APITimeoutError, openai.APIConnectionError) as e:
            raise ProviderError(
                self.label,
                f"Connection error: {e}",
                ErrorKind.TRANSIENT,
                original_error=e,
            ) from e
        except openai.APIError as e:
            kind, status = classify_exception(e)
            raise ProviderError(
                self.label,
                f"API call failed: {e}",
                kind,
                status_code=status,
                original_error=e,
            ) from e

        if not response.choices:
            raise ProviderError(self.label, "Empty response from model")
        return self._parse_json(response.choices[0].message.content)
