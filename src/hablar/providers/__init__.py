"""Provider abstraction for text-to-speech services.

This module provides a registry pattern for managing TTS providers,
allowing the fallback order to be declared by name in configuration.
"""

from typing import TYPE_CHECKING, Any, ClassVar

if TYPE_CHECKING:
    from .base import TTSProvider

from .elevenlabs import ElevenLabsProvider
from .google import GoogleTTSProvider
from .polly import PollyProvider
from .web_speech import WebSpeechProvider

__all__ = ["ProviderRegistry"]


class ProviderRegistry:
    """Registry for managing TTS provider classes.

    This class maintains a registry of available TTS providers,
    allowing registration and retrieval by name.
    """

    _providers: ClassVar[dict[str, type["TTSProvider"]]] = {}

    @classmethod
    def register(cls, name: str, provider_class: type["TTSProvider"]) -> None:
        """Register a TTS provider.

        Args:
            name: Name to register the provider under
            provider_class: Provider class that implements TTSProvider
        """
        cls._providers[name] = provider_class

    @classmethod
    def get(cls, name: str) -> type["TTSProvider"]:
        """Get a provider class by name.

        Args:
            name: Name of the provider to retrieve

        Returns:
            Provider class

        Raises:
            KeyError: If provider name not found
        """
        if name not in cls._providers:
            available = ", ".join(cls.names()) or "none"
            raise KeyError(
                f"Provider '{name}' not found. Available providers: {available}"
            )
        return cls._providers[name]

    @classmethod
    def names(cls) -> list[str]:
        return list(cls._providers.keys())

    @classmethod
    def create_all(
        cls, names: "list[str] | tuple[str, ...]", **options: dict[str, Any]
    ) -> list["TTSProvider"]:
        """Instantiate providers in the given order.

        Args:
            names: Provider names, in priority order
            **options: Per-provider constructor kwargs keyed by provider name

        Returns:
            Provider instances in the same order

        Raises:
            KeyError: If any provider name is not registered
        """
        return [cls.get(name)(**options.get(name, {})) for name in names]


# Register providers
ProviderRegistry.register("elevenlabs", ElevenLabsProvider)
ProviderRegistry.register("polly", PollyProvider)
ProviderRegistry.register("google", GoogleTTSProvider)
ProviderRegistry.register("web_speech", WebSpeechProvider)
