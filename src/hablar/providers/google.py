"""Google Cloud text-to-speech provider using the REST API with an API key."""

import base64
import binascii
import logging
import os

import httpx

from ..errors import ErrorKind, ProviderError
from ..tts.models import Artifact, SynthesisRequest
from ..tts.voices import GOOGLE_VOICES, select_voice
from .base import TTSProvider

logger = logging.getLogger(__name__)

GOOGLE_TTS_URL = "https://texttospeech.googleapis.com/v1/text:synthesize"


class GoogleTTSProvider(TTSProvider):
    """Google Cloud TTS provider.

    Standard quality, cheapest of the paid vendors, tried last.
    """

    name = "google"

    def __init__(
        self,
        api_key: str | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._api_key = api_key or os.getenv("GOOGLE_CLOUD_API_KEY")
        self._client = client
        self._timeout = timeout

    def is_configured(self) -> bool:
        return bool(self._api_key)

    async def synthesize(self, request: SynthesisRequest) -> Artifact:
        """Synthesize speech via ``text:synthesize``.

        Raises:
            ProviderError: On non-2xx responses, transport errors or a body
                without ``audioContent``
        """
        if not self._api_key:
            raise ProviderError(
                self.name, "Google TTS not configured", ErrorKind.MISCONFIGURED
            )

        voice = dict(select_voice(GOOGLE_VOICES, request.language, request.gender))
        if request.options.voice_id:
            voice["name"] = request.options.voice_id
        audio_config: dict[str, object] = {"audioEncoding": "MP3"}
        if request.options.speed:
            audio_config["speakingRate"] = request.options.speed

        payload = {
            "input": {"text": request.text},
            "voice": voice,
            "audioConfig": audio_config,
        }

        try:
            if self._client is not None:
                response = await self._client.post(
                    GOOGLE_TTS_URL, params={"key": self._api_key}, json=payload
                )
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.post(
                        GOOGLE_TTS_URL, params={"key": self._api_key}, json=payload
                    )
        except (httpx.TimeoutException, httpx.TransportError) as e:
            raise ProviderError(
                self.name, f"Google TTS unreachable: {e}", ErrorKind.TRANSIENT,
                original_error=e,
            ) from e

        if response.status_code != 200:
            raise self._status_error(response)

        try:
            data = response.json()
        except ValueError as e:
            raise ProviderError(
                self.name, "Google TTS returned malformed JSON", original_error=e
            ) from e

        content = data.get("audioContent") if isinstance(data, dict) else None
        if not content:
            raise ProviderError(self.name, "Google TTS did not return audioContent")

        try:
            audio = base64.b64decode(content)
        except (binascii.Error, ValueError) as e:
            raise ProviderError(
                self.name, "Google TTS returned invalid base64 audio", original_error=e
            ) from e

        return Artifact(audio=audio, content_type="audio/mpeg", provider=self.name)

    def _status_error(self, response: httpx.Response) -> ProviderError:
        status = response.status_code
        reason = ""
        try:
            error = response.json().get("error", {})
            reason = error.get("status") or error.get("message") or ""
        except (ValueError, AttributeError):
            pass

        if status == 429 or reason == "RESOURCE_EXHAUSTED":
            kind = ErrorKind.RATE_LIMITED
        elif status in (401, 403):
            kind = ErrorKind.MISCONFIGURED
        elif status >= 500:
            kind = ErrorKind.TRANSIENT
        else:
            kind = ErrorKind.UNKNOWN
        return ProviderError(
            self.name, f"Google TTS HTTP {status}: {reason or 'error'}", kind, status
        )
