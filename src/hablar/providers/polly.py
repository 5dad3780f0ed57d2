"""Amazon Polly text-to-speech provider implementation."""

import asyncio
import logging
import os
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..errors import ErrorKind, ProviderError, classify_exception
from ..tts.models import Artifact, SynthesisRequest
from ..tts.voices import POLLY_VOICES, select_voice
from .base import TTSProvider

logger = logging.getLogger(__name__)

_THROTTLING_CODES = {"ThrottlingException", "Throttling", "TooManyRequestsException"}
_AUTH_CODES = {
    "UnrecognizedClientException",
    "InvalidSignatureException",
    "AccessDeniedException",
    "ExpiredTokenException",
}


class PollyProvider(TTSProvider):
    """Amazon Polly TTS provider using neural voices.

    Cheaper than ElevenLabs and natural sounding. Configured only when
    both AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY are present.
    """

    name = "polly"

    def __init__(
        self,
        access_key_id: str | None = None,
        secret_access_key: str | None = None,
        region: str | None = None,
    ) -> None:
        self._access_key_id = access_key_id or os.getenv("AWS_ACCESS_KEY_ID")
        self._secret_access_key = secret_access_key or os.getenv(
            "AWS_SECRET_ACCESS_KEY"
        )
        self._region = region or os.getenv("AWS_REGION") or "us-east-1"
        self._client: Any | None = None

    def is_configured(self) -> bool:
        return bool(self._access_key_id and self._secret_access_key)

    def _get_client(self) -> Any:
        if self._client is None:
            if not self.is_configured():
                raise ProviderError(
                    self.name, "Polly not configured", ErrorKind.MISCONFIGURED
                )
            self._client = boto3.client(
                "polly",
                region_name=self._region,
                aws_access_key_id=self._access_key_id,
                aws_secret_access_key=self._secret_access_key,
            )
            logger.info(f"Amazon Polly configured (region: {self._region})")
        return self._client

    async def synthesize(self, request: SynthesisRequest) -> Artifact:
        """Synthesize speech with Polly.

        Raises:
            ProviderError: If the API call fails or no audio stream is returned
        """
        client = self._get_client()
        voice = select_voice(POLLY_VOICES, request.language, request.gender)
        voice_id = request.options.voice_id or voice["VoiceId"]

        def _sync_synthesize() -> bytes:
            response = client.synthesize_speech(
                Text=request.text,
                OutputFormat="mp3",
                VoiceId=voice_id,
                Engine=voice["Engine"],
                LanguageCode=voice["LanguageCode"],
            )
            stream = response.get("AudioStream")
            if stream is None:
                raise ProviderError(
                    self.name, "Polly did not return an audio stream"
                )
            try:
                return stream.read()
            finally:
                stream.close()

        try:
            audio_bytes = await asyncio.to_thread(_sync_synthesize)
        except ProviderError:
            raise
        except ClientError as e:
            raise self._map_client_error(e) from e
        except BotoCoreError as e:
            raise ProviderError(
                self.name, f"Polly request failed: {e}", ErrorKind.TRANSIENT,
                original_error=e,
            ) from e
        except Exception as e:
            kind, status = classify_exception(e)
            raise ProviderError(
                self.name, f"Polly request failed: {e}", kind, status, original_error=e
            ) from e

        if not audio_bytes:
            raise ProviderError(self.name, "Polly returned empty audio")

        return Artifact(audio=audio_bytes, content_type="audio/mpeg", provider=self.name)

    def _map_client_error(self, error: ClientError) -> ProviderError:
        code = error.response.get("Error", {}).get("Code", "")
        status = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
        if code in _THROTTLING_CODES or status == 429:
            kind = ErrorKind.RATE_LIMITED
        elif code in _AUTH_CODES or status in (401, 403):
            kind = ErrorKind.MISCONFIGURED
        elif status is not None and status >= 500:
            kind = ErrorKind.TRANSIENT
        else:
            kind = ErrorKind.UNKNOWN
        return ProviderError(
            self.name, f"Polly error {code or status}: {error}", kind, status,
            original_error=error,
        )
