from datetime import datetime, timezone
from typing import List, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class QuizQuestion(BaseModel):
    model_config = ConfigDict(frozen=True)

    question: str
    correct: Tuple[str, ...]
    incorrect: Tuple[str, ...] = ()


class Quiz(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    points: int = Field(ge=0)
    questions: Tuple[QuizQuestion, ...] = Field(min_length=1)


class Code(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: str
    points: int = Field(ge=0)
    valid_from: datetime
    valid_to: datetime

    @field_validator("valid_from", "valid_to")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        """Naive datetimes in the config file are read as UTC"""
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class Wheel(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str


class CatalogConfig(BaseModel):
    """Shape of the quiz.toml document"""
    quiz: List[Quiz] = Field(default_factory=list)
    code: List[Code] = Field(default_factory=list)
    wheel: List[Wheel] = Field(default_factory=list)
