"""Table-driven grammar pre-filter.

Common beginner mistakes are answered locally with a canned correction
instead of a model call. Rules are checked in order and the first match
wins. Matching is whole-word and case-insensitive.
"""

import re
from collections.abc import Sequence
from dataclasses import dataclass

from ..generation.models import TutorReply

RULES_MODEL = "rules"

VOCABULARY = {
    "vegetables": "verduras 🥦",
    "chicken": "pollo 🍗",
    "kitchen": "cocina 🍳",
    "supermarket": "supermercado 🛒",
    "store": "tienda 🏪",
    "buy": "comprar 💳",
    "want": "quiero ❤️",
    "water": "agua 💧",
    "milk": "leche 🥛",
}


@dataclass(frozen=True)
class CorrectionRule:
    """A pattern and the canned reply it triggers."""

    pattern: re.Pattern[str]
    text: str
    correction: str

    @classmethod
    def phrase(cls, phrase: str, text: str, correction: str) -> "CorrectionRule":
        """Rule matching a literal phrase as whole words."""
        words = r"\s+".join(re.escape(word) for word in phrase.split())
        return cls(re.compile(rf"\b{words}\b", re.IGNORECASE), text, correction)

    def reply(self) -> TutorReply:
        return TutorReply(
            text=self.text,
            gender="female",
            correction=self.correction,
            model=RULES_MODEL,
        )


def vocabulary_rule(english: str, spanish: str) -> CorrectionRule:
    return CorrectionRule.phrase(
        english,
        f'He notado que usaste "{english}". En español decimos **"{spanish}"**. '
        "¿Puedes intentar la frase de nuevo?",
        f'Usa "{spanish}" en lugar de "{english}".',
    )


def default_rules() -> list[CorrectionRule]:
    """The built-in rule table, in priority order."""
    rules = [vocabulary_rule(en, es) for en, es in VOCABULARY.items()]
    rules += [
        CorrectionRule.phrase(
            "yo saber",
            "Casi. Para 'I know', decimos **'Yo sé'**. Inténtalo otra vez.",
            "Yo sé",
        ),
        CorrectionRule.phrase(
            "yo tener",
            "Recuerda: 'I have' es **'Yo tengo'**. ¡Prueba de nuevo!",
            "Yo tengo",
        ),
        CorrectionRule.phrase(
            "yo querer",
            "Para decir 'I want', usa **'Yo quiero'**. ¿Cómo quedaría la frase?",
            "Yo quiero",
        ),
        CorrectionRule.phrase(
            "yo poder",
            "Decimos **'Yo puedo'**. ¡Tú puedes hacerlo!",
            "Yo puedo",
        ),
        CorrectionRule(
            re.compile(r"\byo\s+\w+(ar|er|ir)\b", re.IGNORECASE),
            "Parece que usaste el verbo en infinitivo. Recuerda conjugarlo "
            "(ej. yo como, yo hablo).",
            "Conjuga el verbo",
        ),
        CorrectionRule.phrase("no querer", "Mejor di: **'No quiero'**.", "No quiero"),
        CorrectionRule.phrase(
            "no poder", "La forma correcta es: **'No puedo'**.", "No puedo"
        ),
    ]
    return rules


class CorrectionRules:
    """Ordered rule engine over the latest user message."""

    def __init__(self, rules: Sequence[CorrectionRule] | None = None) -> None:
        self.rules = list(rules) if rules is not None else default_rules()

    def match(self, message: str) -> TutorReply | None:
        """Return the canned reply of the first matching rule, if any."""
        for rule in self.rules:
            if rule.pattern.search(message):
                return rule.reply()
        return None
