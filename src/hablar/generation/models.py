"""Output schemas for generated tutor content.

Model output is untrusted JSON: every reply is validated against one of
these schemas before it leaves the model chain.
"""

from typing import Literal

from pydantic import BaseModel, Field, field_validator


class TutorReply(BaseModel):
    """One tutor turn in a conversation."""

    text: str = Field(min_length=1)
    gender: Literal["male", "female"] = "male"
    correction: str | None = None
    suggestions: list[str] = Field(default_factory=list)
    model: str | None = None

    @field_validator("gender", mode="before")
    @classmethod
    def _lower_gender(cls, value: object) -> object:
        return value.lower() if isinstance(value, str) else value


class DialogueLine(BaseModel):
    speaker: str
    text: str
    translation: str
    gender: Literal["male", "female"]

    @field_validator("gender", mode="before")
    @classmethod
    def _lower_gender(cls, value: object) -> object:
        return value.lower() if isinstance(value, str) else value


class Dialogue(BaseModel):
    """A short practice dialogue with English translations."""

    id: str | None = None
    title: str
    lines: list[DialogueLine] = Field(min_length=1)
    model: str | None = None
