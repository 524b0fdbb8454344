"""
Question generation: one prompt → model → parse → repair cycle per question
type, and the aggregator that merges several types into one capped list.
"""
from __future__ import annotations

import math
from typing import Callable, List, NamedTuple

import structlog

from quizgen.errors import GenerationError, ParseError
from quizgen.schemas import (
    GenerationRequest,
    MultiTypeGenerationRequest,
    NormalizedQuestion,
    QuestionTypeKind,
)
from quizgen.services.llm import complete_prompt
from quizgen.services.logging import log_performance
from quizgen.services.monitoring import AI_GENERATION_REQUESTS
from quizgen.services.prompts import build_prompt
from quizgen.services.repair import repair_questions
from quizgen.services.response_parser import extract_questions

logger = structlog.get_logger()

# Sends a prompt to the generative model and returns its raw text
CompleteFn = Callable[[str], str]


class GenerationTask(NamedTuple):
    question_type: QuestionTypeKind
    quota: int


def generate_questions(
    request: GenerationRequest, complete: CompleteFn = complete_prompt
) -> List[NormalizedQuestion]:
    question_type = request.question_type.value
    # Model, parser and repair events below are tagged with the type
    with structlog.contextvars.bound_contextvars(question_type=question_type):
        prompt = build_prompt(request)
        try:
            raw_questions = extract_questions(complete(prompt))
        except (GenerationError, ParseError) as e:
            AI_GENERATION_REQUESTS.labels(type=question_type, status="error").inc()
            logger.error("generation_type_failed", error=e.message)
            raise

        questions = repair_questions(raw_questions, request.question_type)
        AI_GENERATION_REQUESTS.labels(type=question_type, status="success").inc()
        logger.info(
            "generation_type_completed",
            requested=request.question_count,
            returned=len(questions),
        )
    return questions


def plan_tasks(request: MultiTypeGenerationRequest) -> List[GenerationTask]:
    """One task per requested type, in request order, each at the same quota."""
    quota = math.ceil(request.question_count / len(request.question_types))
    return [GenerationTask(question_type, quota) for question_type in request.question_types]


@log_performance("generate_across_types")
def generate_across_types(
    request: MultiTypeGenerationRequest, complete: CompleteFn = complete_prompt
) -> List[NormalizedQuestion]:
    tasks = plan_tasks(request)
    logger.info(
        "multi_type_generation_started",
        question_types=[t.question_type.value for t in tasks],
        quota=tasks[0].quota,
        question_count=request.question_count,
    )

    collected: List[NormalizedQuestion] = []
    for position, task in enumerate(tasks):
        sub_request = GenerationRequest(
            content=request.content,
            subject=request.subject,
            question_count=task.quota,
            question_type=task.question_type,
            tone=request.tone,
            difficulty=request.difficulty,
        )
        try:
            collected.extend(generate_questions(sub_request, complete))
        except (GenerationError, ParseError) as e:
            logger.error(
                "multi_type_generation_failed",
                position=position,
                question_type=task.question_type.value,
                error=e.message,
            )
            raise GenerationError(
                f"Failed to generate {task.question_type.value} questions: {e.message}"
            ) from e

    # Earlier-requested types win when the merged list overflows
    return collected[: request.question_count]
