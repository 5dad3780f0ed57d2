"""Speech synthesis entry point.

Wires configuration, providers, the audio cache and the fallback
orchestrator together behind two calls: ``synthesize`` and
``provider_status``.
"""

import logging
from typing import Any

from ..cache.manager import ContentAddressedCache
from ..config import HablarConfig
from ..errors import ExhaustedError
from ..providers import ProviderRegistry
from ..providers.base import TTSProvider
from .models import SynthesisOptions, SynthesisRequest, SynthesisResult
from .orchestrator import FallbackOrchestrator, VoiceOverride
from .voices import GOOGLE_SAFETY_NET_VOICES

logger = logging.getLogger(__name__)

SAFETY_NET_PROVIDER = "google"


class TTSService:
    """High-level speech synthesis API."""

    def __init__(self, orchestrator: FallbackOrchestrator) -> None:
        self.orchestrator = orchestrator

    @property
    def cache(self) -> ContentAddressedCache | None:
        return self.orchestrator.cache

    async def synthesize(
        self,
        text: str,
        language: str = "es",
        options: SynthesisOptions | dict[str, Any] | None = None,
    ) -> SynthesisResult:
        """Synthesize speech for text.

        When the chain is exhausted, the request is retried once with default
        voice options and then once on Google's standard voice before giving
        up.

        Args:
            text: Text to speak
            language: Two-letter language code
            options: Voice hints, as SynthesisOptions or a loose mapping

        Returns:
            SynthesisResult tagged with the serving provider or "cache"

        Raises:
            RequestValidationError: If text is empty or options are invalid
            ExhaustedError: If no provider could produce audio, listing the
                attempts of every tier
        """
        if not isinstance(options, SynthesisOptions):
            options = SynthesisOptions.from_dict(options)
        request = SynthesisRequest(text=text, language=language, options=options)
        try:
            return await self.orchestrator.resolve(request)
        except ExhaustedError as e:
            attempts = list(e.attempts)

        if request.options != SynthesisOptions():
            logger.info("Retrying speech synthesis with default voice options")
            default = SynthesisRequest(text=request.text, language=request.language)
            try:
                return await self.orchestrator.resolve(default)
            except ExhaustedError as e:
                attempts.extend(e.attempts)

        if self._safety_net_available():
            voice_id = GOOGLE_SAFETY_NET_VOICES.get(
                request.language.split("-")[0], GOOGLE_SAFETY_NET_VOICES["en"]
            )
            logger.info(f"Trying Google safety net voice {voice_id}")
            safety = SynthesisRequest(
                text=request.text,
                language=request.language,
                options=SynthesisOptions(provider=SAFETY_NET_PROVIDER, voice_id=voice_id),
            )
            try:
                return await self.orchestrator.resolve(safety, only=SAFETY_NET_PROVIDER)
            except ExhaustedError as e:
                attempts.extend(e.attempts)

        raise ExhaustedError("speech synthesis", attempts)

    def _safety_net_available(self) -> bool:
        return any(
            p.name == SAFETY_NET_PROVIDER for p in self.orchestrator.candidates()
        )

    def provider_status(self) -> dict[str, bool]:
        """Report which providers have credentials configured."""
        status = {p.name: p.is_configured() for p in self.orchestrator.providers}
        status["web_speech"] = True
        return status


def build_tts_service(
    config: HablarConfig, providers: list[TTSProvider] | None = None
) -> TTSService:
    """Build a TTSService from configuration.

    Args:
        config: Loaded configuration
        providers: Explicit provider instances, overriding ``config.tts.order``

    Returns:
        Ready-to-use TTSService

    Raises:
        KeyError: If the configured order names an unknown provider
    """
    if providers is None:
        providers = ProviderRegistry.create_all(config.tts.order)

    cache = None
    if config.cache.enabled:
        cache = ContentAddressedCache(
            cache_dir=config.cache.dir,
            max_entries=config.cache.max_entries,
            ttl_seconds=config.cache.ttl_seconds,
        )

    overrides: list[VoiceOverride] = []
    override_providers: list[TTSProvider] = []
    target = config.tts.male_override_provider
    if target:
        overrides.append(VoiceOverride(gender="male", provider=target))
        if target not in {p.name for p in providers}:
            override_providers.append(ProviderRegistry.get(target)())

    orchestrator = FallbackOrchestrator(
        providers=providers,
        cache=cache,
        overrides=overrides,
        override_providers=override_providers,
        timeout=config.tts.timeout,
    )
    logger.debug(
        f"TTS service built: order={[p.name for p in providers]}, "
        f"cache={'on' if cache else 'off'}, override={target}"
    )
    return TTSService(orchestrator)
