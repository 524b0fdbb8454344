"""
Decode the generative model's free-text response into candidate questions.

Only structural well-formedness is established here: the envelope, the
required fields of every question and the label/content of every choice.
Type-specific policy lives in quizgen.services.repair.
"""
from __future__ import annotations

import json
import re
from typing import Any, List, Optional

import structlog

from quizgen.errors import ParseError
from quizgen.schemas import Choice, RawModelQuestion

logger = structlog.get_logger()

JSON_FENCE_RE = re.compile(r"```json", re.IGNORECASE)


def _strip_code_fences(text: str) -> str:
    return JSON_FENCE_RE.sub("", text).replace("```", "").strip()


def _decode_envelope(candidate: str) -> Optional[dict]:
    try:
        data = json.loads(candidate)
    except (ValueError, RecursionError):
        return None
    if isinstance(data, dict) and isinstance(data.get("questions"), list):
        return data
    return None


def extract_envelope(model_text: str) -> dict:
    """Return the decoded {"questions": [...]} object found in model_text."""
    envelope = _decode_envelope(_strip_code_fences(model_text))
    if envelope is not None:
        return envelope

    # Fall back to the outermost brace pair of the original text
    start = model_text.find("{")
    end = model_text.rfind("}")
    if start != -1 and end > start:
        envelope = _decode_envelope(model_text[start : end + 1])
        if envelope is not None:
            return envelope

    logger.warning("model_response_unparseable", response_preview=model_text[:200])
    raise ParseError("No valid JSON found in model response")


def _coerce_text(value: Any) -> Optional[str]:
    if isinstance(value, str):
        return value
    # bool is an int subclass but is not accepted as text
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else str(value)
    return None


def _parse_choice(item: Any, question_index: int, choice_index: int) -> Choice:
    if isinstance(item, dict) and "label" in item and "content" in item:
        label = _coerce_text(item["label"])
        content = _coerce_text(item["content"])
        if label is not None and content is not None:
            return Choice(label=label, content=content)
    raise ParseError(
        f"Invalid choice structure at index {choice_index} of question {question_index}"
    )


def _parse_question(item: Any, index: int) -> RawModelQuestion:
    invalid = ParseError(f"Invalid question structure at index {index}")
    if not isinstance(item, dict):
        raise invalid
    question = item.get("question")
    choices = item.get("choices")
    answers = item.get("correctAnswers")
    explanation = item.get("explanation")

    if not isinstance(question, str) or not isinstance(choices, list):
        raise invalid
    if isinstance(answers, list):
        if not all(isinstance(a, str) for a in answers):
            raise invalid
    elif not isinstance(answers, str):
        raise invalid
    if explanation is not None and not isinstance(explanation, str):
        raise invalid

    return RawModelQuestion(
        question=question,
        choices=[_parse_choice(c, index, i) for i, c in enumerate(choices)],
        correct_answers=answers,
        explanation=explanation,
    )


def extract_questions(model_text: str) -> List[RawModelQuestion]:
    envelope = extract_envelope(model_text)
    return [_parse_question(item, i) for i, item in enumerate(envelope["questions"])]
