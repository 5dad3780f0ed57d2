"""TTS data models with validation."""

from dataclasses import dataclass, field
from typing import Any

from ..errors import RequestValidationError

DEFAULT_LANGUAGE = "es"
DEFAULT_GENDER = "female"
CACHE_PROVIDER = "cache"


@dataclass(frozen=True)
class SynthesisOptions:
    """Voice hints attached to a synthesis request.

    Args:
        gender: Requested voice gender ("female" or "male")
        provider: Optional provider hint, part of the cache fingerprint
        voice_id: Optional explicit vendor voice identifier
        speed: Optional speaking rate multiplier
    """

    gender: str = DEFAULT_GENDER
    provider: str | None = None
    voice_id: str | None = None
    speed: float | None = None

    def __post_init__(self) -> None:
        """Normalize and validate options."""
        gender = (self.gender or "").strip().lower() or DEFAULT_GENDER
        object.__setattr__(self, "gender", gender)
        if self.provider is not None:
            object.__setattr__(self, "provider", self.provider.strip().lower())
        if self.speed is not None and not 0.25 <= self.speed <= 4.0:
            raise RequestValidationError("speed must be between 0.25 and 4.0")

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "SynthesisOptions":
        """Build options from a loose mapping, ignoring unknown keys."""
        data = data or {}
        provider = data.get("provider")
        voice_id = data.get("voice_id") or data.get("voiceId")
        for key, value in (("provider", provider), ("voice_id", voice_id)):
            if value is not None and not isinstance(value, str):
                raise RequestValidationError(f"Invalid {key}: {value!r}")
        speed = data.get("speed")
        if speed is not None:
            try:
                speed = float(speed)
            except (TypeError, ValueError):
                raise RequestValidationError(f"Invalid speed: {speed!r}") from None
        return cls(
            gender=str(data.get("gender") or DEFAULT_GENDER),
            provider=provider,
            voice_id=voice_id,
            speed=speed,
        )


@dataclass(frozen=True)
class SynthesisRequest:
    """Immutable synthesis request used to derive a cache fingerprint.

    Args:
        text: Text to convert to speech
        language: Two-letter language code (e.g. "es", "en")
        options: Voice hints
    """

    text: str
    language: str = DEFAULT_LANGUAGE
    options: SynthesisOptions = field(default_factory=SynthesisOptions)

    def __post_init__(self) -> None:
        """Normalize and validate the request."""
        if not self.text or not self.text.strip():
            raise RequestValidationError("Text cannot be empty")
        object.__setattr__(self, "text", self.text.strip())
        language = (self.language or DEFAULT_LANGUAGE).strip().lower()
        object.__setattr__(self, "language", language)

    @property
    def gender(self) -> str:
        return self.options.gender

    def canonical_fields(self) -> dict[str, Any]:
        """Fields that influence the produced audio, used for fingerprinting."""
        return {
            "text": self.text,
            "language": self.language,
            "gender": self.options.gender,
            "provider": self.options.provider,
            "voice_id": self.options.voice_id,
            "speed": self.options.speed,
        }


@dataclass(frozen=True)
class Artifact:
    """Binary payload produced by a provider.

    Args:
        audio: Audio (or client directive) bytes
        content_type: MIME type of the payload
        provider: Name of the provider that produced it
    """

    audio: bytes
    content_type: str
    provider: str

    def __post_init__(self) -> None:
        if not self.audio:
            raise ValueError("audio cannot be empty")


@dataclass(frozen=True)
class SynthesisResult:
    """Result returned to callers of the synthesis gateway.

    ``provider`` is the adapter that produced the audio, or "cache" when the
    audio was served from the content-addressed cache.
    """

    audio: bytes
    content_type: str
    provider: str

    @property
    def from_cache(self) -> bool:
        return self.provider == CACHE_PROVIDER


@dataclass
class VoiceSettings:
    """Voice generation settings.

    Args:
        stability: Voice stability (0.0-1.0)
        similarity_boost: Voice similarity boost (0.0-1.0)
        style: Voice style exaggeration (0.0-1.0)
        use_speaker_boost: Whether to use speaker boost
        speaking_rate: Speaking rate (0.25-4.0)
    """

    stability: float = 0.5
    similarity_boost: float = 0.5
    style: float = 0.0
    use_speaker_boost: bool = True
    speaking_rate: float = 1.0

    def __post_init__(self) -> None:
        """Validate voice settings."""
        if not 0.0 <= self.stability <= 1.0:
            raise ValueError("stability must be between 0.0 and 1.0")
        if not 0.0 <= self.similarity_boost <= 1.0:
            raise ValueError("similarity_boost must be between 0.0 and 1.0")
        if not 0.0 <= self.style <= 1.0:
            raise ValueError("style must be between 0.0 and 1.0")
        if not 0.25 <= self.speaking_rate <= 4.0:
            raise ValueError("speaking_rate must be between 0.25 and 4.0")

    def to_dict(self) -> dict[str, Any]:
        return {
            "stability": self.stability,
            "similarity_boost": self.similarity_boost,
            "style": self.style,
            "use_speaker_boost": self.use_speaker_boost,
            "speed": self.speaking_rate,
        }
