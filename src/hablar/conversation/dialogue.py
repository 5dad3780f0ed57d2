"""Practice dialogue generation."""

import logging
import uuid

from ..errors import RequestValidationError
from ..generation.chain import ModelChain
from ..generation.circuit import CircuitBreaker
from ..generation.models import Dialogue
from ..generation.prompts import render_dialogue_prompt

logger = logging.getLogger(__name__)

LEVELS = ("beginner", "intermediate", "advanced")
DEFAULT_LEVEL = "intermediate"
MIN_TOPIC_LENGTH = 3


def normalize_level(level: str | None) -> str:
    """Lower-case and validate a learner level, defaulting to intermediate.

    Raises:
        RequestValidationError: If the level is not a known one
    """
    if level is None or not level.strip():
        return DEFAULT_LEVEL
    normalized = level.strip().lower()
    if normalized not in LEVELS:
        raise RequestValidationError(
            f"Invalid level '{level}'. Expected one of: {', '.join(LEVELS)}"
        )
    return normalized


class DialogueGenerator:
    """Generate short Spanish dialogues through the dialogue model chain."""

    def __init__(self, chain: ModelChain, breaker: CircuitBreaker) -> None:
        self.chain = chain
        self.breaker = breaker

    async def generate_dialogue(self, topic: str, level: str | None = None) -> Dialogue:
        """Generate a dialogue about a topic.

        Args:
            topic: Dialogue topic, at least 3 characters
            level: beginner, intermediate or advanced (case-insensitive)

        Returns:
            Dialogue with a fresh id and the serving model label

        Raises:
            RequestValidationError: If topic or level is invalid
            CircuitOpenError: If generation is cooling down after a quota error
            ExhaustedError: If every model failed
        """
        topic = (topic or "").strip()
        if len(topic) < MIN_TOPIC_LENGTH:
            raise RequestValidationError("Topic must be at least 3 characters long")
        level = normalize_level(level)

        logger.info(f'Generating dialogue: "{topic}" ({level})')
        prompt = render_dialogue_prompt(topic, level)
        result = await self.breaker.guard(lambda: self.chain.run(prompt, Dialogue))
        return result.value.model_copy(
            update={"id": str(uuid.uuid4()), "model": result.model}
        )
