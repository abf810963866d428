"""
Pydantic schemas for the quiz generation pipeline.

Layer 1 (core):  GenerationRequest → Batch → BatchOutcome → QuestionSet → QuizResult
Layer 2 (API):   TopicQuizRequest / DocumentQuizRequest / RenderRequest → QuizResponse
"""

from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, field_validator

from quizgen.config import MAX_QUESTIONS


class Level(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


# ─── Layer 1: Core pipeline types ──────────────────────────────────────────────

class Question(BaseModel):
    """One validated multiple-choice question. Option letters are derived, never stored."""
    model_config = ConfigDict(frozen=True)

    text: StrictStr
    options: List[StrictStr] = Field(..., min_length=4, max_length=4)
    correct_answer_index: StrictInt = Field(..., ge=0, le=3)
    explanation: Optional[StrictStr] = None

    @field_validator("text")
    @classmethod
    def _text_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("question text is empty")
        return value

    @field_validator("explanation")
    @classmethod
    def _blank_explanation_is_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.strip() or None


class GenerationRequest(BaseModel):
    """One pipeline invocation's input. Never persisted."""
    subject_text: str = Field(..., min_length=1)
    level: Level = Level.INTERMEDIATE
    question_count: int = Field(..., ge=1)


class Batch(BaseModel):
    """A slice [start_index, start_index + size) of the requested questions."""
    model_config = ConfigDict(frozen=True)

    start_index: int = Field(..., ge=0)
    size: int = Field(..., ge=1)

    @property
    def end_index(self) -> int:
        return self.start_index + self.size

    @property
    def label(self) -> str:
        """Question range covered, e.g. "1-20", for log lines."""
        return f"{self.start_index + 1}-{self.end_index}"


class BatchOutcome(BaseModel):
    """Result of one batch after its retry loop has finished."""
    batch: Batch
    questions: List[Question] = Field(default_factory=list)
    attempt: int = Field(0, ge=0)
    failed: bool = False
    error: Optional[str] = None


class QuestionSet(BaseModel):
    """All questions of successful batches, in ascending batch start order."""
    questions: List[Question]
    requested: int
    total_batches: int
    failed_batches: List[Batch] = Field(default_factory=list)

    @property
    def delivered(self) -> int:
        return len(self.questions)

    @property
    def is_partial(self) -> bool:
        return self.delivered < self.requested


class QuizResult(BaseModel):
    """Caller-facing output: the questions plus both rendered PDFs."""
    model_config = ConfigDict(frozen=True)

    questions: QuestionSet
    quiz_document: bytes
    answer_document: bytes


# ─── Text backend contract ─────────────────────────────────────────────────────

class BackendRequest(BaseModel):
    prompt: str
    max_output_tokens: int = Field(..., ge=1)
    temperature: float = 0.7


class BackendResponse(BaseModel):
    text: str


# ─── Layer 2: API request/response ─────────────────────────────────────────────

class TopicQuizRequest(BaseModel):
    topic: str = Field(..., min_length=1, description="Topic to write questions about")
    level: Level = Level.INTERMEDIATE
    number_of_questions: int = Field(5, ge=1, le=MAX_QUESTIONS)


class DocumentQuizRequest(BaseModel):
    text: str = Field(..., description="Plain text already extracted from the uploaded document")
    level: Level = Level.INTERMEDIATE
    number_of_questions: int = Field(5, ge=1, le=MAX_QUESTIONS)


class QuizResponse(BaseModel):
    questions: List[Question]
    requested: int
    delivered: int
    failed_batches: int
    quiz_document: str = Field(..., description="Base64-encoded quiz PDF")
    answer_document: str = Field(..., description="Base64-encoded answer key PDF")


class RenderRequest(BaseModel):
    """Re-render a (possibly edited) question list as one of the two documents."""
    questions: List[Question]
    type: Literal["quiz", "answers"] = "quiz"
