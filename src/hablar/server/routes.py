"""HTTP routes for the hablar API.

Endpoints
---------
POST /tts            Synthesize speech; audio bytes with an X-TTS-Provider
                     header, or a 503 telling the client to use Web Speech.
GET  /tts/status     Which TTS providers are configured.
POST /chat/start     Reset a session and return the tutor's opening line.
POST /chat/message   Return the tutor's reply to a learner message.
GET  /chat/health    Liveness check for the chat service.
POST /dialogue       Generate a practice dialogue.
POST /grammar/analyze Score learner text against the offline grammar rules.
"""

import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from ..conversation.grammar import DEFAULT_CONTEXT
from ..core import Gateway
from ..errors import ExhaustedError

logger = logging.getLogger(__name__)

router = APIRouter()


class TTSBody(BaseModel):
    text: str = Field(min_length=1)
    language: str = "es"
    options: dict[str, Any] = Field(default_factory=dict)


class ChatStartBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(alias="sessionId", min_length=1)
    topic: str = Field(min_length=1)
    level: str = Field(min_length=1)
    display_name: str | None = Field(default=None, alias="displayName")


class ChatMessageBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(alias="sessionId", min_length=1)
    message: str = Field(min_length=1)
    topic: str | None = None
    level: str | None = None
    display_name: str | None = Field(default=None, alias="displayName")


class DialogueBody(BaseModel):
    topic: str
    level: str | None = None


class GrammarBody(BaseModel):
    text: str = Field(min_length=1)
    context: str = DEFAULT_CONTEXT


def _gateway(request: Request) -> Gateway:
    """Retrieve the shared services from application state."""
    return request.app.state.gateway


@router.post("/tts")
async def synthesize(body: TTSBody, request: Request) -> Response:
    """Synthesize speech through cache and provider fallback."""
    tts = _gateway(request).tts
    logger.info(f"TTS request: {body.text[:40]!r} ({body.language})")
    try:
        result = await tts.synthesize(body.text, body.language, body.options)
    except ExhaustedError as e:
        return JSONResponse(
            status_code=503,
            content={
                "error": "Failed to generate speech",
                "details": str(e),
                "fallbackAvailable": True,
                "suggestion": "Client should use Web Speech API as fallback",
            },
        )
    return Response(
        content=result.audio,
        media_type=result.content_type,
        headers={
            "X-TTS-Provider": result.provider,
            "Cache-Control": "public, max-age=31536000",
        },
    )


@router.get("/tts/status")
async def tts_status(request: Request) -> dict:
    return {"providers": _gateway(request).tts.provider_status()}


@router.post("/chat/start")
async def chat_start(body: ChatStartBody, request: Request) -> dict:
    logger.info(
        f"Chat start: topic={body.topic!r}, level={body.level!r}, "
        f"session={body.session_id}"
    )
    reply = await _gateway(request).conversation.start_conversation(
        body.session_id, body.topic, body.level, body.display_name
    )
    return {"message": reply.model_dump(exclude_none=True)}


@router.post("/chat/message")
async def chat_message(body: ChatMessageBody, request: Request) -> dict:
    reply = await _gateway(request).conversation.generate_reply(
        body.session_id, body.message, body.topic, body.level, body.display_name
    )
    return {"message": reply.model_dump(exclude_none=True)}


@router.get("/chat/health")
async def chat_health(request: Request) -> dict:
    breaker = _gateway(request).breaker
    return {
        "status": "resting" if breaker.is_open() else "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.post("/dialogue")
async def dialogue(body: DialogueBody, request: Request) -> dict:
    result = await _gateway(request).dialogue.generate_dialogue(body.topic, body.level)
    return result.model_dump()


@router.post("/grammar/analyze")
async def grammar_analyze(body: GrammarBody, request: Request) -> dict:
    report = _gateway(request).grammar.analyze(body.text, body.context)
    return report.model_dump(by_alias=True)
