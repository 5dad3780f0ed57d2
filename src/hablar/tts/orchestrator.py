"""Fallback orchestrator for multi-provider speech synthesis.

Sequences cache lookup, provider attempts in priority order and the cache
write for a single logical request. Provider errors are recorded and never
cross this boundary: callers see a SynthesisResult or an ExhaustedError
enumerating every failed attempt.
"""

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass

from ..cache.manager import ContentAddressedCache, fingerprint
from ..errors import (
    AttemptFailure,
    ErrorKind,
    ExhaustedError,
    ProviderError,
    classify_exception,
)
from ..providers.base import TTSProvider
from .models import CACHE_PROVIDER, Artifact, SynthesisRequest, SynthesisResult

logger = logging.getLogger(__name__)

DEFAULT_PROVIDER_TIMEOUT = 30.0


@dataclass(frozen=True)
class VoiceOverride:
    """Route requests for a voice gender straight to a designated provider.

    A deliberate quality policy: voices the paid vendors render poorly are
    sent to a cheap provider (by default the browser's Web Speech API)
    before the paid chain is considered.
    """

    gender: str
    provider: str

    def matches(self, request: SynthesisRequest) -> bool:
        return request.gender == self.gender


class FallbackOrchestrator:
    """Resolve synthesis requests through cache and ordered providers.

    Example:
        orchestrator = FallbackOrchestrator(
            providers=[ElevenLabsProvider(), PollyProvider(), GoogleTTSProvider()],
            cache=ContentAddressedCache(),
        )
        result = await orchestrator.resolve(SynthesisRequest("Hola"))
        # result.provider is "elevenlabs", "polly", "google" or "cache"
    """

    def __init__(
        self,
        providers: Sequence[TTSProvider],
        cache: ContentAddressedCache | None = None,
        overrides: Sequence[VoiceOverride] = (),
        override_providers: Sequence[TTSProvider] = (),
        timeout: float | None = DEFAULT_PROVIDER_TIMEOUT,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            providers: Providers in fixed priority order
            cache: Optional content-addressed cache
            overrides: Voice override rules checked before the paid chain
            override_providers: Providers that overrides may route to, in
                addition to ``providers``
            timeout: Per-provider timeout in seconds, None for no limit
        """
        self.providers = list(providers)
        self.cache = cache
        self.overrides = list(overrides)
        self.timeout = timeout
        self._by_name = {p.name: p for p in [*override_providers, *self.providers]}

    def candidates(self) -> list[TTSProvider]:
        """Configured providers in priority order."""
        return [p for p in self.providers if p.is_configured()]

    async def resolve(
        self, request: SynthesisRequest, only: str | None = None
    ) -> SynthesisResult:
        """Produce audio for a request.

        Args:
            request: Normalized synthesis request
            only: Restrict the attempt to the named provider, skipping voice
                overrides

        Returns:
            SynthesisResult tagged with the serving provider, or "cache"

        Raises:
            ExhaustedError: If every configured provider failed or none is
                configured
        """
        key = fingerprint(request)

        if self.cache is not None:
            cached = await self.cache.get(key)
            if cached is not None:
                return SynthesisResult(
                    audio=cached.audio,
                    content_type=cached.content_type,
                    provider=CACHE_PROVIDER,
                )

        attempts: list[AttemptFailure] = []

        override = None if only else self._override_for(request)
        if override is not None:
            logger.info(
                f"Voice override: {request.gender} voice routed to {override.name}"
            )
            artifact = await self._attempt(override, request, attempts)
            if artifact is not None:
                return await self._finish(key, artifact)

        candidates = [p for p in self.candidates() if p is not override]
        if only:
            candidates = [p for p in candidates if p.name == only]
        for provider in candidates:
            artifact = await self._attempt(provider, request, attempts)
            if artifact is not None:
                return await self._finish(key, artifact)

        error = ExhaustedError("speech synthesis", attempts)
        logger.error(str(error))
        raise error

    def _override_for(self, request: SynthesisRequest) -> TTSProvider | None:
        for rule in self.overrides:
            if not rule.matches(request):
                continue
            provider = self._by_name.get(rule.provider)
            if provider is not None and provider.is_configured():
                return provider
            logger.warning(
                f"Override target '{rule.provider}' unavailable, using normal chain"
            )
        return None

    async def _attempt(
        self,
        provider: TTSProvider,
        request: SynthesisRequest,
        attempts: list[AttemptFailure],
    ) -> Artifact | None:
        logger.info(f"TTS: trying {provider.name} ({request.gender})")
        try:
            if self.timeout is None:
                return await provider.synthesize(request)
            return await asyncio.wait_for(
                provider.synthesize(request), timeout=self.timeout
            )
        except ProviderError as e:
            failure = AttemptFailure(provider.name, e.kind, str(e))
        except TimeoutError:
            failure = AttemptFailure(
                provider.name,
                ErrorKind.TRANSIENT,
                f"timed out after {self.timeout:.0f}s",
            )
        except Exception as e:
            kind, _ = classify_exception(e)
            failure = AttemptFailure(provider.name, kind, str(e) or repr(e))

        logger.warning(f"{provider.name} failed: {failure.kind.value}: {failure.message}")
        attempts.append(failure)
        return None

    async def _finish(self, key: str, artifact: Artifact) -> SynthesisResult:
        if self.cache is not None:
            await self.cache.put(key, artifact)
        logger.info(f"Audio generated successfully using {artifact.provider}")
        return SynthesisResult(
            audio=artifact.audio,
            content_type=artifact.content_type,
            provider=artifact.provider,
        )
