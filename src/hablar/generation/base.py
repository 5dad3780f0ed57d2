"""Abstract base class for generative model adapters."""

import json
from abc import ABC, abstractmethod
from typing import Any

from ..errors import ErrorKind, ProviderError


class ModelAdapter(ABC):
    """One model variant of a generation chain.

    Attributes:
        name: Vendor model identifier (e.g. "gemini-2.5-flash")
        label: Human-readable label reported back to callers

    Failure contract:
        ``generate`` raises ProviderError for vendor failures. The returned
        mapping is not yet validated; the chain checks it against the
        target schema.
    """

    name: str
    label: str

    @abstractmethod
    def is_configured(self) -> bool:
        """Whether credentials for this model's vendor are present."""
        pass

    @abstractmethod
    async def generate(self, prompt: str) -> dict[str, Any]:
        """Run the prompt and return the model's JSON object.

        Raises:
            ProviderError: If the vendor call fails or returns no JSON object
        """
        pass

    def _parse_json(self, raw: str | None) -> dict[str, Any]:
        """Decode a model's JSON reply, tolerating markdown code fences."""
        if not raw or not raw.strip():
            raise ProviderError(self.label, "Empty response from model")
        text = raw.strip()
        if text.startswith("```"):
            text = text.strip("`")
            if text.startswith("json"):
                text = text[4:]
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ProviderError(
                self.label, f"Model returned invalid JSON: {e}", original_error=e
            ) from e
        if not isinstance(data, dict):
            raise ProviderError(
                self.label,
                f"Model returned {type(data).__name__}, expected a JSON object",
                ErrorKind.UNKNOWN,
            )
        return data
