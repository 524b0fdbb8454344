from typing import Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session

from quizgen.db import get_session
from quizgen.schemas import CompletePracticeRequest, StartPracticeRequest, SubmitAnswerRequest
from quizgen.services.practice import (
    complete_practice,
    get_practice_session,
    list_practice_sessions,
    practice_summary,
    practice_to_dict,
    start_practice,
    submit_answer,
)


router = APIRouter(prefix="/practice", tags=["practice"])


@router.post("/start")
def start(body: StartPracticeRequest, session: Session = Depends(get_session)):
    practice = start_practice(session, body.question_set_id, body.user_id)
    return {
        "success": True,
        "data": practice_to_dict(practice),
        "message": "Practice session started successfully",
    }


@router.post("/answer")
def answer(body: SubmitAnswerRequest, session: Session = Depends(get_session)):
    result = submit_answer(session, body.session_id, body.question_id, body.selected_choices)
    return {
        "success": True,
        "data": result,
        "message": "Correct answer!" if result["isCorrect"] else "Incorrect answer",
    }


@router.post("/complete")
def complete(body: CompletePracticeRequest, session: Session = Depends(get_session)):
    practice = complete_practice(session, body.session_id)
    return {
        "success": True,
        "data": practice_to_dict(practice),
        "message": "Practice session completed successfully",
    }


@router.get("/sessions/{session_id}")
def get_session_detail(session_id: int, session: Session = Depends(get_session)):
    return {"success": True, "data": practice_to_dict(get_practice_session(session, session_id))}


@router.get("/sessions")
def list_sessions(user_id: Optional[str] = None, session: Session = Depends(get_session)):
    return {"success": True, "data": [practice_summary(p) for p in list_practice_sessions(session, user_id)]}
