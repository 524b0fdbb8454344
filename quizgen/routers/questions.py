import json
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from sqlmodel import Session

from quizgen.db import get_session
from quizgen.errors import InvalidInput
from quizgen.middleware.rate_limit import ai_generation_limit, general_api_limit
from quizgen.schemas import GenerationRequest, MultiTypeGenerationRequest, TruncationOutcome, build_request
from quizgen.services.generator import generate_across_types, generate_questions
from quizgen.services.ingestion import extract_text
from quizgen.services.question_store import (
    create_question_set,
    delete_question_set,
    get_question_set,
    list_question_sets,
    question_set_summary,
    question_set_to_dict,
)
from quizgen.services.text_normalizer import normalize_text


router = APIRouter(prefix="/questions", tags=["questions"])


def _read_source(file: UploadFile) -> TruncationOutcome:
    outcome = normalize_text(extract_text(file.file.read(), file.content_type))
    if not outcome.text:
        raise InvalidInput("Could not extract any text from the file")
    return outcome


def _parse_question_types(values: List[str]) -> list:
    """Accept repeated form fields and/or a JSON array string."""
    types = []
    for value in values:
        value = value.strip()
        if value.startswith("["):
            try:
                decoded = json.loads(value)
            except ValueError as e:
                raise InvalidInput("question_types must be a JSON array of question types") from e
            if not isinstance(decoded, list):
                raise InvalidInput("question_types must be a JSON array of question types")
            types.extend(decoded)
        elif value:
            types.append(value)
    return types


def _generated_response(question_set, outcome: TruncationOutcome) -> dict:
    data = question_set_to_dict(question_set)
    data["textProcessingInfo"] = outcome.info()
    return {
        "success": True,
        "data": data,
        "message": f"Successfully generated {len(data['questions'])} questions",
    }


@router.post("/generate")
@ai_generation_limit()
def generate(
    request: Request,
    file: UploadFile = File(...),
    subject: str = Form(...),
    question_count: int = Form(...),
    question_type: str = Form(...),
    tone: Optional[str] = Form(None),
    difficulty: Optional[str] = Form(None),
    title: Optional[str] = Form(None),
    user_id: Optional[str] = None,
    session: Session = Depends(get_session),
):
    # Validate parameters before touching the upload
    gen_request = build_request(
        GenerationRequest,
        content="",
        subject=subject,
        question_count=question_count,
        question_type=question_type,
        tone=tone,
        difficulty=difficulty,
    )
    outcome = _read_source(file)
    questions = generate_questions(gen_request.model_copy(update={"content": outcome.text}))

    question_set = create_question_set(
        session,
        questions,
        subject=subject,
        question_type=gen_request.question_type,
        source_text=outcome.text,
        file_name=file.filename,
        tone=tone,
        difficulty=difficulty,
        title=title,
        user_id=user_id,
    )
    return _generated_response(question_set, outcome)


@router.post("/generate-multiple")
@ai_generation_limit()
def generate_multiple(
    request: Request,
    file: UploadFile = File(...),
    subject: str = Form(...),
    question_count: int = Form(...),
    question_types: List[str] = Form(...),
    tone: Optional[str] = Form(None),
    difficulty: Optional[str] = Form(None),
    title: Optional[str] = Form(None),
    user_id: Optional[str] = None,
    session: Session = Depends(get_session),
):
    gen_request = build_request(
        MultiTypeGenerationRequest,
        content="",
        subject=subject,
        question_count=question_count,
        question_types=_parse_question_types(question_types),
        tone=tone,
        difficulty=difficulty,
    )
    outcome = _read_source(file)
    questions = generate_across_types(gen_request.model_copy(update={"content": outcome.text}))

    question_set = create_question_set(
        session,
        questions,
        subject=subject,
        # The set records the first requested type; each question keeps its own
        question_type=gen_request.question_types[0],
        source_text=outcome.text,
        file_name=file.filename,
        tone=tone,
        difficulty=difficulty,
        title=title,
        user_id=user_id,
    )
    return _generated_response(question_set, outcome)


@router.get("/sets")
@general_api_limit()
def list_sets(request: Request, user_id: Optional[str] = None, session: Session = Depends(get_session)):
    return {"success": True, "data": [question_set_summary(qs) for qs in list_question_sets(session, user_id)]}


@router.get("/sets/{question_set_id}")
@general_api_limit()
def get_set(request: Request, question_set_id: int, session: Session = Depends(get_session)):
    return {"success": True, "data": question_set_to_dict(get_question_set(session, question_set_id))}


@router.delete("/sets/{question_set_id}")
@general_api_limit()
def delete_set(
    request: Request,
    question_set_id: int,
    user_id: Optional[str] = None,
    session: Session = Depends(get_session),
):
    delete_question_set(session, question_set_id, user_id)
    return {"success": True, "message": "Question set deleted successfully"}
