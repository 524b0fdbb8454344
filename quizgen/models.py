from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import Column, JSON
from sqlmodel import Field, Relationship, SQLModel

from quizgen.schemas import QuestionTypeKind


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class QuestionSet(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    subject: str
    tone: Optional[str] = None
    difficulty: Optional[str] = None
    type: QuestionTypeKind
    file_name: Optional[str] = None
    file_content: Optional[str] = None
    user_id: Optional[str] = Field(default=None, index=True)
    created_at: datetime = Field(default_factory=utc_now)

    questions: List["Question"] = Relationship(
        back_populates="question_set",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "order_by": "Question.order"},
    )


class Question(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    question_set_id: int = Field(foreign_key="questionset.id", index=True)
    content: str
    explanation: Optional[str] = None
    type: QuestionTypeKind
    order: int

    question_set: Optional[QuestionSet] = Relationship(back_populates="questions")
    choices: List["AnswerChoice"] = Relationship(
        back_populates="question",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "order_by": "AnswerChoice.order"},
    )
    correct_answers: List["CorrectAnswer"] = Relationship(
        back_populates="question",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )


class AnswerChoice(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    question_id: int = Field(foreign_key="question.id", index=True)
    label: str
    content: str
    order: int

    question: Optional[Question] = Relationship(back_populates="choices")


class CorrectAnswer(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    question_id: int = Field(foreign_key="question.id", index=True)
    choice_label: str

    question: Optional[Question] = Relationship(back_populates="correct_answers")


class PracticeSession(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    question_set_id: int = Field(foreign_key="questionset.id", index=True)
    user_id: Optional[str] = Field(default=None, index=True)
    score: int = 0
    total_questions: int = 0
    started_at: datetime = Field(default_factory=utc_now)
    ended_at: Optional[datetime] = None
    is_completed: bool = False

    question_set: Optional[QuestionSet] = Relationship()
    answers: List["PracticeAnswer"] = Relationship(
        back_populates="session",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )


class PracticeAnswer(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    session_id: int = Field(foreign_key="practicesession.id", index=True)
    question_id: int = Field(foreign_key="question.id")
    selected_choices: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    is_correct: bool = False
    answered_at: datetime = Field(default_factory=utc_now)

    session: Optional[PracticeSession] = Relationship(back_populates="answers")
