"""
Practice sessions: start, answer, complete and review
"""
from __future__ import annotations

from typing import List, Optional, Sequence

import structlog
from sqlmodel import Session, select

from quizgen.errors import NotFound, StateConflict
from quizgen.models import PracticeAnswer, PracticeSession, Question, utc_now
from quizgen.services.question_store import get_question_set, question_set_to_dict
from quizgen.services.scoring import is_answer_correct

logger = structlog.get_logger()


def _get_session(session: Session, session_id: int) -> PracticeSession:
    practice = session.get(PracticeSession, session_id)
    if not practice:
        raise NotFound("Practice session not found")
    return practice


def start_practice(session: Session, question_set_id: int, user_id: Optional[str] = None) -> PracticeSession:
    question_set = get_question_set(session, question_set_id)
    if not question_set.questions:
        raise StateConflict("Question set has no questions")

    practice = PracticeSession(
        question_set_id=question_set.id,
        user_id=user_id,
        total_questions=len(question_set.questions),
    )
    session.add(practice)
    session.commit()
    session.refresh(practice)
    logger.info("practice_started", session_id=practice.id, question_set_id=question_set.id, user_id=user_id)
    return practice


def submit_answer(session: Session, session_id: int, question_id: int, selected_choices: Sequence[str]) -> dict:
    practice = _get_session(session, session_id)
    if practice.is_completed:
        raise StateConflict("Practice session is already completed")

    question = session.get(Question, question_id)
    if not question or question.question_set_id != practice.question_set_id:
        raise NotFound("Question not found")

    existing = session.exec(
        select(PracticeAnswer).where(
            PracticeAnswer.session_id == session_id,
            PracticeAnswer.question_id == question_id,
        )
    ).first()
    if existing:
        raise StateConflict("Answer already submitted for this question")

    correct_labels = sorted(a.choice_label for a in question.correct_answers)
    is_correct = is_answer_correct(selected_choices, correct_labels)

    session.add(
        PracticeAnswer(
            session_id=session_id,
            question_id=question_id,
            selected_choices=list(selected_choices),
            is_correct=is_correct,
        )
    )
    if is_correct:
        practice.score += 1
    session.add(practice)
    session.commit()
    session.refresh(practice)
    logger.info(
        "practice_answer_submitted",
        session_id=session_id,
        question_id=question_id,
        is_correct=is_correct,
        score=practice.score,
    )

    return {
        "isCorrect": is_correct,
        "correctAnswers": correct_labels,
        "explanation": question.explanation,
        "score": practice.score,
        "totalQuestions": practice.total_questions,
    }


def complete_practice(session: Session, session_id: int) -> PracticeSession:
    practice = _get_session(session, session_id)
    if practice.is_completed:
        raise StateConflict("Practice session is already completed")
    practice.is_completed = True
    practice.ended_at = utc_now()
    session.add(practice)
    session.commit()
    session.refresh(practice)
    logger.info("practice_completed", session_id=session_id, score=practice.score, total=practice.total_questions)
    return practice


def get_practice_session(session: Session, session_id: int) -> PracticeSession:
    return _get_session(session, session_id)


def list_practice_sessions(session: Session, user_id: Optional[str] = None) -> List[PracticeSession]:
    query = select(PracticeSession)
    if user_id:
        query = query.where(PracticeSession.user_id == user_id)
    return list(session.exec(query.order_by(PracticeSession.started_at.desc(), PracticeSession.id.desc())).all())


# -------------------- SERIALIZATION --------------------

def answer_to_dict(answer: PracticeAnswer) -> dict:
    return {
        "id": answer.id,
        "questionId": answer.question_id,
        "selectedChoices": answer.selected_choices,
        "isCorrect": answer.is_correct,
        "answeredAt": answer.answered_at.isoformat(),
    }


def practice_summary(practice: PracticeSession) -> dict:
    return {
        "id": practice.id,
        "questionSetId": practice.question_set_id,
        "userId": practice.user_id,
        "score": practice.score,
        "totalQuestions": practice.total_questions,
        "startedAt": practice.started_at.isoformat(),
        "endedAt": practice.ended_at.isoformat() if practice.ended_at else None,
        "isCompleted": practice.is_completed,
        "questionSet": {
            "title": practice.question_set.title,
            "subject": practice.question_set.subject,
        },
    }


def practice_to_dict(practice: PracticeSession) -> dict:
    data = practice_summary(practice)
    # Answer keys stay hidden until the session is completed
    data["questionSet"] = question_set_to_dict(practice.question_set, include_answers=practice.is_completed)
    data["answers"] = [answer_to_dict(a) for a in practice.answers]
    return data
