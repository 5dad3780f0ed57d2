"""Abstract base class for text-to-speech providers.

This module defines the interface that all TTS providers must implement,
ensuring the fallback orchestrator can treat every vendor the same way.
"""

from abc import ABC, abstractmethod

from ..tts.models import Artifact, SynthesisRequest


class TTSProvider(ABC):
    """Abstract base class for text-to-speech providers.

    All TTS providers must inherit from this class, expose a unique ``name``
    and implement ``is_configured`` and ``synthesize``.

    Failure contract:
        ``synthesize`` raises ProviderError for every vendor-side failure,
        with ``kind`` set to one of RATE_LIMITED, MISCONFIGURED, TRANSIENT
        or UNKNOWN. It must never be called when ``is_configured`` is False.
    """

    name: str = ""

    @abstractmethod
    def is_configured(self) -> bool:
        """Whether credentials for this provider are present."""
        pass

    @abstractmethod
    async def synthesize(self, request: SynthesisRequest) -> Artifact:
        """Convert a synthesis request to an audio artifact.

        Args:
            request: Normalized synthesis request

        Returns:
            Artifact tagged with this provider's name

        Raises:
            ProviderError: If synthesis fails
        """
        pass
