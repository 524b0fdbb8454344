"""
Persistence of generated question sets
"""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Sequence

import structlog
from sqlmodel import Session, select

from quizgen.errors import NotFound, StateConflict
from quizgen.models import AnswerChoice, CorrectAnswer, PracticeSession, Question, QuestionSet
from quizgen.schemas import NormalizedQuestion, QuestionTypeKind

logger = structlog.get_logger()

# Only the beginning of the source text is kept for reference
STORED_CONTENT_CHARS = 5000


def default_title(subject: str, now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    return f"{subject} - {now.day}/{now.month}/{now.year}"


def create_question_set(
    session: Session,
    questions: Sequence[NormalizedQuestion],
    *,
    subject: str,
    question_type: QuestionTypeKind,
    source_text: str,
    file_name: Optional[str] = None,
    tone: Optional[str] = None,
    difficulty: Optional[str] = None,
    title: Optional[str] = None,
    user_id: Optional[str] = None,
) -> QuestionSet:
    question_set = QuestionSet(
        title=title or default_title(subject),
        subject=subject,
        tone=tone,
        difficulty=difficulty,
        type=question_type,
        file_name=file_name,
        file_content=source_text[:STORED_CONTENT_CHARS],
        user_id=user_id,
    )
    for order, q in enumerate(questions, start=1):
        question_set.questions.append(
            Question(
                content=q.question,
                explanation=q.explanation,
                type=q.type,
                order=order,
                choices=[
                    AnswerChoice(label=c.label, content=c.content, order=choice_order)
                    for choice_order, c in enumerate(q.choices, start=1)
                ],
                correct_answers=[CorrectAnswer(choice_label=label) for label in q.correct_answers],
            )
        )
    session.add(question_set)
    session.commit()
    session.refresh(question_set)
    logger.info(
        "question_set_created",
        question_set_id=question_set.id,
        question_count=len(questions),
        user_id=user_id,
    )
    return question_set


def get_question_set(session: Session, question_set_id: int) -> QuestionSet:
    question_set = session.get(QuestionSet, question_set_id)
    if not question_set:
        raise NotFound("Question set not found")
    return question_set


def list_question_sets(session: Session, user_id: Optional[str] = None) -> List[QuestionSet]:
    query = select(QuestionSet)
    if user_id:
        query = query.where(QuestionSet.user_id == user_id)
    return list(session.exec(query.order_by(QuestionSet.created_at.desc(), QuestionSet.id.desc())).all())


def delete_question_set(session: Session, question_set_id: int, user_id: Optional[str] = None) -> None:
    question_set = session.get(QuestionSet, question_set_id)
    if not question_set or (user_id and question_set.user_id != user_id):
        raise NotFound("Question set not found")
    practiced = session.exec(
        select(PracticeSession).where(PracticeSession.question_set_id == question_set_id)
    ).first()
    if practiced:
        raise StateConflict("Question set has practice sessions and cannot be deleted")
    session.delete(question_set)
    session.commit()
    logger.info("question_set_deleted", question_set_id=question_set_id, user_id=user_id)


# -------------------- SERIALIZATION --------------------

def question_to_dict(question: Question, include_answers: bool = True) -> dict:
    data = {
        "id": question.id,
        "content": question.content,
        "type": question.type.value,
        "order": question.order,
        "choices": [
            {"id": c.id, "label": c.label, "content": c.content, "order": c.order}
            for c in question.choices
        ],
    }
    if include_answers:
        data["correctAnswers"] = [a.choice_label for a in question.correct_answers]
        data["explanation"] = question.explanation
    return data


def question_set_summary(question_set: QuestionSet) -> dict:
    return {
        "id": question_set.id,
        "title": question_set.title,
        "subject": question_set.subject,
        "tone": question_set.tone,
        "difficulty": question_set.difficulty,
        "type": question_set.type.value,
        "fileName": question_set.file_name,
        "userId": question_set.user_id,
        "createdAt": question_set.created_at.isoformat(),
    }


def question_set_to_dict(question_set: QuestionSet, include_answers: bool = True) -> dict:
    data = question_set_summary(question_set)
    data["fileContent"] = question_set.file_content
    data["questions"] = [question_to_dict(q, include_answers) for q in question_set.questions]
    return data
