"""Ordered multi-model generation fallback.

Candidate models for one request are tried one at a time in fixed priority
order. Every failure, including output that does not match the target
schema, is recorded and the next model is tried. The first valid result
wins.
"""

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

from pydantic import BaseModel, ValidationError

from ..errors import (
    AttemptFailure,
    ErrorKind,
    ExhaustedError,
    ProviderError,
    classify_exception,
)
from .base import ModelAdapter
from .gemini import GeminiModel
from .openai_chat import OpenAIChatModel

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

DEFAULT_MODEL_TIMEOUT = 30.0

# (model id, label), highest priority first. OpenAI is appended as the
# last resort so a Gemini-wide quota outage still gets an answer.
TUTOR_MODELS = (
    ("gemini-2.5-flash-lite", "Gemini 2.5 Flash Lite"),
    ("gemini-2.5-flash", "Gemini 2.5 Flash"),
    ("gemini-flash-latest", "Gemini 1.5 Flash"),
    ("gemini-2.0-flash-lite-001", "Gemini 2.0 Flash Lite"),
)

DIALOGUE_MODELS = (
    ("gemini-2.0-flash-lite", "Gemini 2.0 Flash Lite"),
    ("gemini-flash-latest", "Gemini 1.5 Flash"),
)


@dataclass(frozen=True)
class ChainResult(Generic[T]):
    """Validated output plus the label of the model that produced it."""

    value: T
    model: str


class ModelChain:
    """Sequential fallback over model adapters.

    Example:
        chain = ModelChain([GeminiModel("gemini-2.5-flash", "Gemini 2.5 Flash"),
                            OpenAIChatModel()])
        result = await chain.run(prompt, TutorReply)
        print(result.model, result.value.text)
    """

    def __init__(
        self,
        models: Sequence[ModelAdapter],
        timeout: float | None = DEFAULT_MODEL_TIMEOUT,
        operation: str = "generation",
    ) -> None:
        self.models = list(models)
        self.timeout = timeout
        self.operation = operation

    def candidates(self) -> list[ModelAdapter]:
        return [m for m in self.models if m.is_configured()]

    async def run(self, prompt: str, schema: type[T]) -> ChainResult[T]:
        """Run the prompt through the chain.

        Args:
            prompt: Fully rendered prompt
            schema: Pydantic model the output must validate against

        Returns:
            ChainResult with the validated value and serving model label

        Raises:
            ExhaustedError: If every configured model failed or none is
                configured
        """
        attempts: list[AttemptFailure] = []

        for model in self.candidates():
            logger.info(f"{self.operation}: trying {model.label}")
            try:
                if self.timeout is None:
                    raw = await model.generate(prompt)
                else:
                    raw = await asyncio.wait_for(
                        model.generate(prompt), timeout=self.timeout
                    )
                value = schema.model_validate(raw)
            except ProviderError as e:
                failure = AttemptFailure(model.label, e.kind, str(e))
            except ValidationError as e:
                failure = AttemptFailure(
                    model.label,
                    ErrorKind.UNKNOWN,
                    f"output failed {schema.__name__} validation: "
                    f"{e.error_count()} error(s)",
                )
            except TimeoutError:
                failure = AttemptFailure(
                    model.label,
                    ErrorKind.TRANSIENT,
                    f"timed out after {self.timeout:.0f}s",
                )
            except Exception as e:
                kind, _ = classify_exception(e)
                failure = AttemptFailure(model.label, kind, str(e) or repr(e))
            else:
                logger.info(f"{self.operation}: served by {model.label}")
                return ChainResult(value=value, model=model.label)

            if failure.kind is ErrorKind.RATE_LIMITED:
                logger.warning(f"Quota limit on {model.label}: {failure.message}")
            else:
                logger.warning(
                    f"{model.label} failed: {failure.kind.value}: {failure.message}"
                )
            attempts.append(failure)

        error = ExhaustedError(self.operation, attempts)
        logger.error(str(error))
        raise error


def _build_chain(
    models: Sequence[tuple[str, str]],
    operation: str,
    timeout: float | None,
    gemini_api_key: str | None,
    openai_api_key: str | None,
) -> ModelChain:
    adapters: list[ModelAdapter] = [
        GeminiModel(name, label, api_key=gemini_api_key) for name, label in models
    ]
    adapters.append(OpenAIChatModel(api_key=openai_api_key))
    return ModelChain(adapters, timeout=timeout, operation=operation)


def build_tutor_chain(
    timeout: float | None = DEFAULT_MODEL_TIMEOUT,
    gemini_api_key: str | None = None,
    openai_api_key: str | None = None,
) -> ModelChain:
    """Tutor chain: four Gemini variants, then OpenAI GPT-4o Mini."""
    return _build_chain(
        TUTOR_MODELS, "tutor reply", timeout, gemini_api_key, openai_api_key
    )


def build_dialogue_chain(
    timeout: float | None = DEFAULT_MODEL_TIMEOUT,
    gemini_api_key: str | None = None,
    openai_api_key: str | None = None,
) -> ModelChain:
    """Dialogue chain: two Gemini variants, then OpenAI GPT-4o Mini."""
    return _build_chain(
        DIALOGUE_MODELS, "dialogue generation", timeout, gemini_api_key, openai_api_key
    )
