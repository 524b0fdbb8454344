"""
Pydantic schemas for the question generation pipeline and practice API.

Pipeline values (TruncationOutcome, RawModelQuestion, NormalizedQuestion) are
created fresh for every request and never shared between requests.
"""
from __future__ import annotations

from enum import Enum
from typing import List, Optional, Sequence, Type, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from quizgen.errors import InvalidInput


BLANK_MARKER = "_____"
MAX_QUESTION_COUNT = 50


class QuestionTypeKind(str, Enum):
    MULTIPLE_CHOICE = "MULTIPLE_CHOICE"
    TRUE_FALSE = "TRUE_FALSE"
    MULTIPLE_RESPONSE = "MULTIPLE_RESPONSE"
    MATCHING = "MATCHING"
    COMPLETION = "COMPLETION"


# -------------------- PIPELINE VALUES --------------------

class TruncationOutcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    was_truncated: bool
    original_length: int
    truncated_length: int

    def info(self) -> dict:
        return {
            "wasTruncated": self.was_truncated,
            "originalLength": self.original_length,
            "truncatedLength": self.truncated_length,
        }


class Choice(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str
    content: str


class RawModelQuestion(BaseModel):
    """Structurally checked candidate decoded from the model response."""
    model_config = ConfigDict(frozen=True)

    question: str
    choices: List[Choice]
    correct_answers: Union[str, List[str]]
    explanation: Optional[str] = None

    def declared_answers(self) -> List[str]:
        if isinstance(self.correct_answers, str):
            return [self.correct_answers]
        return list(self.correct_answers)


class NormalizedQuestion(BaseModel):
    model_config = ConfigDict(frozen=True)

    question: str
    choices: List[Choice]
    correct_answers: List[str]
    explanation: str = ""
    type: QuestionTypeKind


# -------------------- GENERATION REQUESTS --------------------

class GenerationRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    content: str
    subject: str
    question_count: int = Field(..., ge=1, le=MAX_QUESTION_COUNT)
    question_type: QuestionTypeKind
    tone: Optional[str] = None
    difficulty: Optional[str] = None


class MultiTypeGenerationRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    content: str
    subject: str
    question_count: int = Field(..., ge=1, le=MAX_QUESTION_COUNT)
    question_types: List[QuestionTypeKind] = Field(..., min_length=1)
    tone: Optional[str] = None
    difficulty: Optional[str] = None


# -------------------- PRACTICE API BODIES --------------------

class StartPracticeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    question_set_id: int = Field(..., alias="questionSetId")
    user_id: Optional[str] = Field(None, alias="userId")


class SubmitAnswerRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: int = Field(..., alias="sessionId")
    question_id: int = Field(..., alias="questionId")
    selected_choices: List[str] = Field(..., alias="selectedChoices")


class CompletePracticeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: int = Field(..., alias="sessionId")


M = TypeVar("M", bound=BaseModel)


def invalid_input_from_errors(errors: Sequence[dict]) -> InvalidInput:
    """Summarize pydantic error dicts as one InvalidInput message."""
    problems = "; ".join(
        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in errors
    )
    return InvalidInput(f"Invalid request: {problems}")


def build_request(model: Type[M], **fields) -> M:
    """Validate request fields, reporting violations as InvalidInput."""
    try:
        return model(**fields)
    except ValidationError as e:
        raise invalid_input_from_errors(e.errors()) from e
