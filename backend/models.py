from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_core import PydanticCustomError

from config import get_settings


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


# ── Request models ────────────────────────────────────────────────────────────

class QuizRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    topic: str = Field(..., max_length=200)
    # Frontend sends numQuestions as either a number or a numeric string
    num_questions: int = Field(..., alias="numQuestions", ge=1)
    difficulty: Difficulty

    @field_validator("topic")
    @classmethod
    def topic_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise PydanticCustomError("blank_field", "Topic cannot be empty")
        return v.strip()

    @field_validator("num_questions", mode="before")
    @classmethod
    def num_questions_not_bool(cls, v):
        # Lax int parsing would turn true/false into 1/0
        if isinstance(v, bool):
            raise ValueError("must be a number")
        return v

    @field_validator("num_questions")
    @classmethod
    def num_questions_within_cap(cls, v: int) -> int:
        cap = get_settings().max_questions
        if v > cap:
            raise ValueError(f"at most {cap} questions can be generated per quiz")
        return v

    @field_validator("difficulty", mode="before")
    @classmethod
    def normalise_difficulty(cls, v):
        if isinstance(v, str):
            if not v.strip():
                raise PydanticCustomError("blank_field", "Difficulty cannot be empty")
            return v.strip().lower()
        return v


# ── Response models ───────────────────────────────────────────────────────────

class QuizQuestion(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    question: str
    options: tuple[str, ...]
    correct_answer: str = Field(..., alias="correctAnswer")


class QuizResponse(BaseModel):
    questions: list[QuizQuestion]


class ErrorResponse(BaseModel):
    error: str
