"""Google Gemini model adapter (google-genai SDK)."""

import logging
import os
from typing import Any

from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from ..errors import ErrorKind, ProviderError, classify_exception
from .base import ModelAdapter

logger = logging.getLogger(__name__)


class GeminiModel(ModelAdapter):
    """A single Gemini model variant.

    Several variants usually share one API key and therefore one quota, so
    a caller may pass a shared ``genai.Client``.
    """

    def __init__(
        self,
        name: str,
        label: str,
        api_key: str | None = None,
        client: genai.Client | None = None,
        temperature: float = 0.7,
    ) -> None:
        """Initialize the adapter.

        Args:
            name: Gemini model id (e.g. "gemini-2.5-flash-lite")
            label: Label reported with generated replies
            api_key: API key; defaults to GOOGLE_GENAI_API_KEY
            client: Shared client, created lazily when omitted
            temperature: Sampling temperature
        """
        self.name = name
        self.label = label
        self._api_key = api_key or os.getenv("GOOGLE_GENAI_API_KEY")
        self._client = client
        self._temperature = temperature

    def is_configured(self) -> bool:
        return self._client is not None or bool(self._api_key)

    def _get_client(self) -> genai.Client:
        if self._client is None:
            if not self._api_key:
                raise ProviderError(
                    self.label,
                    "Gemini API key not found. Set GOOGLE_GENAI_API_KEY.",
                    ErrorKind.MISCONFIGURED,
                )
            self._client = genai.Client(api_key=self._api_key)
        return self._client

    async def generate(self, prompt: str) -> dict[str, Any]:
        client = self._get_client()
        try:
            response = await client.aio.models.generate_content(
                model=self.name,
                contents=prompt,
                config=types.GenerateContentConfig(
                    temperature=self._temperature,
                    response_mime_type="application/json",
                ),
            )
        except genai_errors.APIError as e:
            kind, status = classify_exception(e)
            raise ProviderError(
                self.label,
                f"Gemini API error ({e.code}): {e.message}",
                kind,
                status_code=status,
                original_error=e,
            ) from e
        return self._parse_json(response.text)
