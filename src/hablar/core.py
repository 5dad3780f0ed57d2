"""Core wiring for hablar - builds the shared services from configuration."""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from .config import HablarConfig
from .conversation.dialogue import DialogueGenerator
from .conversation.grammar import GrammarAnalyzer
from .conversation.history import HistoryStore, SQLiteHistoryStore
from .conversation.service import ConversationService
from .generation.chain import build_dialogue_chain, build_tutor_chain
from .generation.circuit import CircuitBreaker
from .tts.models import SynthesisResult
from .tts.service import TTSService, build_tts_service

logger = logging.getLogger(__name__)


@dataclass
class Gateway:
    """The process-wide services, constructed once and injected.

    The circuit breaker is shared between the conversation service and the
    dialogue generator: a quota error on one pauses both.
    """

    tts: TTSService
    conversation: ConversationService
    dialogue: DialogueGenerator
    breaker: CircuitBreaker
    history: HistoryStore
    grammar: GrammarAnalyzer = field(default_factory=GrammarAnalyzer)


def build_gateway(
    config: HablarConfig, history: HistoryStore | None = None
) -> Gateway:
    """Construct every service from configuration.

    Args:
        config: Loaded configuration
        history: History store override (defaults to SQLite at
            ``config.storage.history_db``)
    """
    gen = config.generation
    breaker = CircuitBreaker(cooldown=gen.cooldown_seconds)
    if history is None:
        history = SQLiteHistoryStore(
            config.storage.history_db, window=gen.history_window
        )

    gateway = Gateway(
        tts=build_tts_service(config),
        conversation=ConversationService(
            chain=build_tutor_chain(timeout=gen.timeout),
            breaker=breaker,
            history=history,
        ),
        dialogue=DialogueGenerator(
            chain=build_dialogue_chain(timeout=gen.timeout), breaker=breaker
        ),
        breaker=breaker,
        history=history,
        grammar=GrammarAnalyzer(),
    )
    logger.debug("Gateway built")
    return gateway


async def speak_text(
    tts: TTSService,
    text: str,
    language: str = "es",
    gender: str = "female",
    output_file: str | None = None,
) -> SynthesisResult:
    """Synthesize text and optionally write the payload to a file.

    Args:
        tts: Speech synthesis service
        text: Text to convert to speech
        language: Two-letter language code
        gender: Voice gender
        output_file: Optional path to save the audio (or Web Speech directive)

    Returns:
        The synthesis result

    Raises:
        RequestValidationError: If text is empty
        ExhaustedError: If no provider could produce audio
        OSError: If file save fails
    """
    result = await tts.synthesize(text, language=language, options={"gender": gender})
    if output_file:
        Path(output_file).write_bytes(result.audio)
        logger.debug(f"Saved {len(result.audio)} bytes to {output_file}")
    return result
