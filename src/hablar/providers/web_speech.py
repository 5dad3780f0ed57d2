"""Web Speech directive provider.

The browser's Web Speech API renders the audio client-side. This provider
never calls a vendor: it returns a small JSON directive telling the front
end which language and voice to speak the text with. It is always
configured, costs nothing, and is the designated target of voice
overrides such as routing male voices away from the paid chain.
"""

import json

from ..tts.models import Artifact, SynthesisRequest
from ..tts.voices import WEB_SPEECH_VOICES, select_voice
from .base import TTSProvider

WEB_SPEECH_CONTENT_TYPE = "application/vnd.hablar.web-speech+json"


class WebSpeechProvider(TTSProvider):
    """Client-side Web Speech API directive provider."""

    name = "web_speech"

    def is_configured(self) -> bool:
        return True

    async def synthesize(self, request: SynthesisRequest) -> Artifact:
        voice = select_voice(WEB_SPEECH_VOICES, request.language, request.gender)
        directive = {
            "engine": "web_speech",
            "text": request.text,
            "lang": voice["lang"],
            "gender": request.gender,
            "voiceIndex": voice["voice_index"],
            "rate": request.options.speed or 1.0,
        }
        payload = json.dumps(directive, ensure_ascii=False).encode("utf-8")
        return Artifact(
            audio=payload, content_type=WEB_SPEECH_CONTENT_TYPE, provider=self.name
        )
