"""Offline grammar report for learner text.

A piece of Spanish is scored against a small table of beginner mistakes.
Every match adds a correction and subtracts the rule's penalty from a
starting score of 100. No model is called.
"""

import logging
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

DEFAULT_CONTEXT = "General conversation"
PERFECT_SCORE = 100
MIN_TEXT_LENGTH = 2

TOO_SHORT_FEEDBACK = (
    "No hay suficiente texto para analizar. Intenta hablar un poco más."
)

# Lowest score of each band, highest first.
FEEDBACK_BANDS = (
    (100, "¡Excelente! No hemos encontrado errores graves. ¡Sigue así!"),
    (80, "Muy bien. Tienes algunos errores menores, pero te has explicado bien."),
    (50, "Buen intento. Revisa la conjugación de los verbos y el uso de 'ser/estar'."),
    (0, "Sigue practicando. Céntrate en lo básico: Verbos en presente y concordancia."),
)

FIRST_PERSON = {
    "querer": "quiero",
    "tener": "tengo",
    "hacer": "hago",
    "comer": "como",
    "estar": "estoy",
    "ser": "soy",
    "vivir": "vivo",
    "ir": "voy",
}

PRESENT_VERBS = ("voy", "como", "tengo", "estoy", "soy", "hago", "vamos", "vienes")


class GrammarCorrection(BaseModel):
    original: str
    corrected: str
    explanation: str
    type: Literal["grammar", "vocabulary", "spelling", "punctuation"] = "grammar"


class GrammarReport(BaseModel):
    """Score, corrections and overall advice for one text."""

    model_config = ConfigDict(populate_by_name=True)

    score: int = Field(ge=0, le=PERFECT_SCORE)
    corrections: list[GrammarCorrection] = Field(default_factory=list)
    general_feedback: str = Field(alias="generalFeedback")


@dataclass(frozen=True)
class GrammarRule:
    """A pattern, the correction it builds and what it costs.

    With ``every_match`` set, each occurrence is reported and penalized;
    otherwise only the first.
    """

    pattern: re.Pattern[str]
    build: Callable[[re.Match[str]], GrammarCorrection]
    penalty: int = 0
    every_match: bool = False

    def check(self, text: str) -> list[GrammarCorrection]:
        if self.every_match:
            return [self.build(m) for m in self.pattern.finditer(text)]
        match = self.pattern.search(text)
        return [self.build(match)] if match else []


def _conjugate(match: re.Match[str]) -> GrammarCorrection:
    original = match.group(0)
    verb_at = match.start(1) - match.start(0)
    return GrammarCorrection(
        original=original,
        corrected=original[:verb_at] + FIRST_PERSON[match.group(1).lower()],
        explanation=(
            "Debes conjugar los verbos. 'Yo' se usa con la terminación 'o' "
            "generalmente."
        ),
    )


def _fixed(original: str, corrected: str, explanation: str):
    def build(match: re.Match[str]) -> GrammarCorrection:
        return GrammarCorrection(
            original=original, corrected=corrected, explanation=explanation
        )

    return build


def _ser_estar(match: re.Match[str]) -> GrammarCorrection:
    state = match.group(1)
    return GrammarCorrection(
        original=f"soy {state}",
        corrected=f"estoy {state}",
        explanation=(
            "Para estados temporales o ubicación, usamos 'Estar' (estoy), no 'Ser'."
        ),
    )


def default_grammar_rules() -> list[GrammarRule]:
    """The built-in rule table, in report order."""
    verbs = "|".join(FIRST_PERSON)
    present = "|".join(PRESENT_VERBS)
    return [
        GrammarRule(
            re.compile(rf"\byo\s+({verbs})\b", re.IGNORECASE),
            _conjugate,
            penalty=15,
            every_match=True,
        ),
        GrammarRule(
            re.compile(r"\byo\s+gusta\b", re.IGNORECASE),
            _fixed(
                "Yo gusta",
                "Me gusta",
                "Con el verbo 'gustar', se usa el pronombre 'Me', no 'Yo'.",
            ),
            penalty=15,
        ),
        GrammarRule(
            re.compile(r"\bsoy\s+(bien|mal|enfermo|en\s+casa)\b", re.IGNORECASE),
            _ser_estar,
            penalty=10,
        ),
        GrammarRule(
            re.compile(r"\bel\s+casa\b", re.IGNORECASE),
            _fixed("el casa", "la casa", "Casa es femenino."),
        ),
        GrammarRule(
            re.compile(r"\bla\s+problema\b", re.IGNORECASE),
            _fixed("la problema", "el problema", "Problema es masculino (excepción)."),
        ),
        GrammarRule(
            re.compile(rf"\b(ayer|anoche|pasada)\b.*\b({present})\b", re.IGNORECASE),
            _fixed(
                "Ayer... (presente)",
                "Ayer... (pasado)",
                "Si hablas del pasado ('ayer'), usa verbos en pasado "
                "(fui, comí, tuve...).",
            ),
            penalty=20,
        ),
    ]


def feedback_for(score: int) -> str:
    for floor, feedback in FEEDBACK_BANDS:
        if score >= floor:
            return feedback
    return FEEDBACK_BANDS[-1][1]


class GrammarAnalyzer:
    """Rule-based grammar scoring for learner text."""

    def __init__(self, rules: Sequence[GrammarRule] | None = None) -> None:
        self.rules = list(rules) if rules is not None else default_grammar_rules()

    def analyze(self, text: str, context: str = DEFAULT_CONTEXT) -> GrammarReport:
        """Score text and list its corrections.

        Args:
            text: Learner's Spanish
            context: Where the text came from, for logging only

        Returns:
            GrammarReport with a 0-100 score. Text shorter than two
            characters scores 0 with no corrections.
        """
        if not text or len(text.strip()) < MIN_TEXT_LENGTH:
            return GrammarReport(score=0, general_feedback=TOO_SHORT_FEEDBACK)

        corrections: list[GrammarCorrection] = []
        score = PERFECT_SCORE
        for rule in self.rules:
            found = rule.check(text)
            corrections.extend(found)
            score -= rule.penalty * len(found)
        score = max(0, score)

        logger.info(
            f"Grammar analysis ({context}): score={score}, "
            f"corrections={len(corrections)}"
        )
        return GrammarReport(
            score=score,
            corrections=corrections,
            general_feedback=feedback_for(score),
        )
