"""TTS (Text-to-Speech) package for hablar.

Provider fallback, caching and the synthesis entry point. The orchestrator
and service depend on the cache package, which in turn depends on the
models here, so they are loaded on first access.
"""

from .models import (
    Artifact,
    SynthesisOptions,
    SynthesisRequest,
    SynthesisResult,
    VoiceSettings,
)

__all__ = [
    "Artifact",
    "FallbackOrchestrator",
    "SynthesisOptions",
    "SynthesisRequest",
    "SynthesisResult",
    "TTSService",
    "VoiceOverride",
    "VoiceSettings",
    "build_tts_service",
]


def __getattr__(name: str):  # type: ignore[no-untyped-def]
    if name in ("FallbackOrchestrator", "VoiceOverride"):
        from . import orchestrator

        return getattr(orchestrator, name)
    if name in ("TTSService", "build_tts_service"):
        from . import service

        return getattr(service, name)
    raise AttributeError(f"module 'hablar.tts' has no attribute {name!r}")
