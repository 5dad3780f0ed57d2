"""ElevenLabs text-to-speech provider implementation."""

import asyncio
import logging
import os
from typing import Any

from elevenlabs.client import ElevenLabs

from ..errors import ErrorKind, ProviderError, classify_exception
from ..tts.models import Artifact, SynthesisRequest, VoiceSettings
from ..tts.voices import ELEVENLABS_VOICES, select_voice
from .base import TTSProvider

logger = logging.getLogger(__name__)

DEFAULT_MODEL_ID = "eleven_multilingual_v2"


class ElevenLabsProvider(TTSProvider):
    """ElevenLabs TTS provider implementation.

    Highest quality and most expensive vendor, tried first. The client is
    created lazily so an instance without an API key can still be
    registered and reported as unconfigured.
    """

    name = "elevenlabs"

    def __init__(
        self, api_key: str | None = None, model_id: str = DEFAULT_MODEL_ID
    ) -> None:
        """Initialize ElevenLabs provider.

        Args:
            api_key: ElevenLabs API key. If not provided, reads from
                    ELEVENLABS_API_KEY environment variable.
            model_id: ElevenLabs model ID to use
        """
        self._api_key = api_key or os.getenv("ELEVENLABS_API_KEY")
        self._model_id = model_id
        self._client: ElevenLabs | None = None

    def is_configured(self) -> bool:
        return bool(self._api_key)

    def _get_client(self) -> ElevenLabs:
        if self._client is None:
            if not self._api_key:
                raise ProviderError(
                    self.name,
                    "ElevenLabs API key not found. Set ELEVENLABS_API_KEY.",
                    ErrorKind.MISCONFIGURED,
                )
            try:
                self._client = ElevenLabs(api_key=self._api_key)
            except Exception as e:
                raise ProviderError(
                    self.name,
                    f"Failed to initialize ElevenLabs client: {e}",
                    ErrorKind.MISCONFIGURED,
                    original_error=e,
                ) from e
        return self._client

    async def synthesize(self, request: SynthesisRequest) -> Artifact:
        """Convert text to speech audio bytes.

        Args:
            request: Synthesis request

        Returns:
            MP3 artifact

        Raises:
            ProviderError: If the API call fails or returns no audio
        """
        client = self._get_client()
        voice_id = request.options.voice_id or select_voice(
            ELEVENLABS_VOICES, request.language, request.gender
        )
        settings = VoiceSettings(speaking_rate=request.options.speed or 1.0)
        logger.debug(f"Using ElevenLabs voice {voice_id} ({request.gender})")

        # Run synchronous ElevenLabs client in thread to avoid blocking event loop
        def _sync_convert() -> bytes:
            audio_generator = client.text_to_speech.convert(
                text=request.text,
                voice_id=voice_id,
                model_id=self._model_id,
                voice_settings=settings.to_dict(),
            )
            return b"".join(audio_generator)

        try:
            audio_bytes = await asyncio.to_thread(_sync_convert)
        except Exception as e:
            raise self._map_error(e) from e

        if not audio_bytes:
            raise ProviderError(
                self.name, "No audio data received from API", ErrorKind.UNKNOWN
            )

        return Artifact(audio=audio_bytes, content_type="audio/mpeg", provider=self.name)

    def _map_error(self, error: Exception) -> ProviderError:
        """Normalize an SDK exception, including buried quota flags."""
        if _is_quota_exceeded(getattr(error, "body", None)):
            return ProviderError(
                self.name,
                "ElevenLabs quota exceeded",
                ErrorKind.RATE_LIMITED,
                status_code=getattr(error, "status_code", None),
                original_error=error,
            )

        kind, status = classify_exception(error)
        if kind is ErrorKind.RATE_LIMITED:
            message = f"Rate limit exceeded: {error}"
        elif kind is ErrorKind.MISCONFIGURED:
            message = f"Authentication failed: {error}"
        elif kind is ErrorKind.TRANSIENT:
            message = f"Server error: {error}"
        else:
            message = f"API call failed: {error}"
        return ProviderError(self.name, message, kind, status, original_error=error)


def _is_quota_exceeded(body: Any) -> bool:
    if not isinstance(body, dict):
        return False
    detail = body.get("detail")
    return isinstance(detail, dict) and detail.get("status") == "quota_exceeded"
