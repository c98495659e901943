from enum import Enum
from typing import List

from pydantic import BaseModel, Field


class ErrorCode(str, Enum):
    NotFound = "NotFound"
    ServerError = "ServerError"


class ErrorReply(BaseModel):
    error: ErrorCode


class QuizQuestionReply(BaseModel):
    question: str
    choices: List[str]
    token: str


class QuizAnswerRequest(BaseModel):
    answer: str


class QuizAnswerReply(BaseModel):
    is_correct: bool
    correct: List[str]
    token: str


class WheelSpinReply(BaseModel):
    points: int
    token: str


class CheckoutRequest(BaseModel):
    codes: List[str] = Field(default_factory=list)
    email: str
    consent: bool


class CheckoutReply(BaseModel):
    points: int


class StatsReply(BaseModel):
    total_points: int
