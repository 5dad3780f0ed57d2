"""Tutor conversation entry points."""

import logging

from ..errors import RequestValidationError
from ..generation.chain import ModelChain
from ..generation.circuit import CircuitBreaker
from ..generation.models import TutorReply
from ..generation.prompts import render_tutor_prompt
from .corrections import CorrectionRules
from .history import HistoryStore

logger = logging.getLogger(__name__)

DEFAULT_TOPIC = "General"
DEFAULT_LEVEL = "beginner"


class ConversationService:
    """Generate tutor replies for conversation sessions.

    Replies come from the grammar pre-filter when it matches, otherwise from
    the tutor model chain guarded by the circuit breaker. Both user message
    and reply are appended to the session history on success.
    """

    def __init__(
        self,
        chain: ModelChain,
        breaker: CircuitBreaker,
        history: HistoryStore,
        rules: CorrectionRules | None = None,
    ) -> None:
        self.chain = chain
        self.breaker = breaker
        self.history = history
        self.rules = rules if rules is not None else CorrectionRules()

    async def generate_reply(
        self,
        session_id: str,
        message: str,
        topic: str | None = None,
        level: str | None = None,
        display_name: str | None = None,
    ) -> TutorReply:
        """Answer the learner's latest message.

        Args:
            session_id: Conversation session id
            message: Latest user message
            topic: Conversation topic (scenario key or free text)
            level: Learner level
            display_name: Learner's name for personalization

        Returns:
            TutorReply whose ``model`` names the serving model, or "rules"
            for a pre-filter correction

        Raises:
            RequestValidationError: If session_id or message is empty
            CircuitOpenError: If the tutor is cooling down after a quota error
            ExhaustedError: If every model failed
        """
        _require(session_id, "sessionId")
        _require(message, "message")
        message = message.strip()

        correction = self.rules.match(message)
        if correction is not None:
            logger.info(f"Session {session_id}: answered by grammar pre-filter")
            self._record(session_id, message, correction)
            return correction

        return await self._generate(session_id, message, topic, level, display_name)

    async def start_conversation(
        self,
        session_id: str,
        topic: str,
        level: str,
        display_name: str | None = None,
    ) -> TutorReply:
        """Reset a session and get the tutor's opening line.

        Raises:
            RequestValidationError: If session_id, topic or level is empty
            CircuitOpenError: If the tutor is cooling down after a quota error
            ExhaustedError: If every model failed
        """
        _require(session_id, "sessionId")
        _require(topic, "topic")
        _require(level, "level")

        self.history.reset(session_id)
        return await self._generate(
            session_id,
            f"Start conversation. Topic: {topic}",
            topic,
            level,
            display_name,
        )

    async def _generate(
        self,
        session_id: str,
        message: str,
        topic: str | None,
        level: str | None,
        display_name: str | None,
    ) -> TutorReply:
        prompt = render_tutor_prompt(
            message=message,
            topic=topic or DEFAULT_TOPIC,
            level=level or DEFAULT_LEVEL,
            history=self.history.get(session_id),
            display_name=display_name,
        )
        logger.info(f"Generating reply for session {session_id}")
        result = await self.breaker.guard(lambda: self.chain.run(prompt, TutorReply))
        reply = result.value.model_copy(update={"model": result.model})
        self._record(session_id, message, reply)
        return reply

    def _record(self, session_id: str, message: str, reply: TutorReply) -> None:
        self.history.append(session_id, "user", message)
        self.history.append(session_id, "assistant", reply.text)


def _require(value: str | None, field: str) -> None:
    if not value or not value.strip():
        raise RequestValidationError(f"Missing {field}")
