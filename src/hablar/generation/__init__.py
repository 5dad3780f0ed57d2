"""Multi-model text generation with fallback and circuit breaking."""

from .chain import ChainResult, ModelChain, build_dialogue_chain, build_tutor_chain
from .circuit import CircuitBreaker
from .models import Dialogue, DialogueLine, TutorReply

__all__ = [
    "ChainResult",
    "CircuitBreaker",
    "Dialogue",
    "DialogueLine",
    "ModelChain",
    "TutorReply",
    "build_dialogue_chain",
    "build_tutor_chain",
]
