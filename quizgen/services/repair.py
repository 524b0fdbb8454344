"""
Per-type normalization of parsed model questions.

Repairs are deterministic and never fail: every policy violation (answer
cardinality, True/False choice set, missing blank marker) has a defined
correction. Each applied correction is logged as ``question_repaired`` and
counted in Prometheus.
"""
from __future__ import annotations

import re
from typing import Iterable, List, Sequence, Tuple

import structlog

from quizgen.schemas import (
    BLANK_MARKER,
    Choice,
    NormalizedQuestion,
    QuestionTypeKind,
    RawModelQuestion,
)
from quizgen.services.monitoring import REPAIRED_QUESTIONS

logger = structlog.get_logger()

CANONICAL_LABELS: Tuple[str, ...] = ("A", "B", "C", "D")

TRUE_LABEL = "True"
FALSE_LABEL = "False"
TRUE_FALSE_CHOICES = (
    Choice(label=TRUE_LABEL, content="Đúng"),
    Choice(label=FALSE_LABEL, content="Sai"),
)

MIN_MULTIPLE_RESPONSE = 2
MAX_MULTIPLE_RESPONSE = 3

# Tried in order; the first pattern that matches has its first match rewritten.
# The keyword must start a word so "có" never matches inside a longer word.
BLANK_PATTERNS = [
    (re.compile(r"(?<!\w)là\s+[^\s,.]+"), f"là {BLANK_MARKER}"),
    (re.compile(r"(?<!\w)bằng\s+[^\s,.]+"), f"bằng {BLANK_MARKER}"),
    (re.compile(r"(?<!\w)có\s+[^\s,.]+"), f"có {BLANK_MARKER}"),
    (re.compile(r"(?<!\w)được\s+gọi\s+là\s+[^\s,.]+"), f"được gọi là {BLANK_MARKER}"),
]


def _unique(labels: Iterable[str]) -> List[str]:
    seen = set()
    result = []
    for label in labels:
        if label not in seen:
            seen.add(label)
            result.append(label)
    return result


def _unique_choices(choices: Sequence[Choice]) -> List[Choice]:
    seen = set()
    result = []
    for choice in choices:
        if choice.label not in seen:
            seen.add(choice.label)
            result.append(choice)
    return result


def _fallback_candidates(choices: Sequence[Choice], label_pool: Sequence[str]) -> List[str]:
    """Ordered labels the repairer may assign: pool labels present among the choices."""
    known = {c.label for c in choices}
    return [l for l in label_pool if l in known] or [c.label for c in choices] or list(label_pool)


def insert_blank_marker(text: str) -> str:
    """Return text with a blank marker, rewriting a known phrase when possible."""
    if BLANK_MARKER in text:
        return text
    for pattern, replacement in BLANK_PATTERNS:
        fixed, count = pattern.subn(replacement, text, count=1)
        if count:
            return fixed
    text = text.rstrip()
    if text.endswith("?"):
        return f"{text[:-1]} {BLANK_MARKER}?"
    return f"{text} {BLANK_MARKER}"


def _single_answer(answers: List[str], candidates: List[str]) -> List[str]:
    return answers[:1] or candidates[:1]


def _multiple_response_answers(
    answers: List[str], candidates: List[str], label_pool: Sequence[str]
) -> List[str]:
    if not answers:
        answers = candidates[:MIN_MULTIPLE_RESPONSE]
    elif len(answers) == 1:
        unused = [l for l in candidates if l not in answers]
        answers = answers + unused[:1]
    if len(answers) < MIN_MULTIPLE_RESPONSE:
        answers = list(label_pool[:MIN_MULTIPLE_RESPONSE])
    return answers[:MAX_MULTIPLE_RESPONSE]


def repair_question(
    raw: RawModelQuestion,
    question_type: QuestionTypeKind,
    label_pool: Sequence[str] = CANONICAL_LABELS,
) -> Tuple[NormalizedQuestion, List[str]]:
    """Normalize one candidate; returns the question and the names of applied repairs."""
    repairs: List[str] = []
    question_text = raw.question

    choices = _unique_choices(raw.choices)
    if len(choices) != len(raw.choices):
        repairs.append("duplicate_choice_dropped")

    declared = raw.declared_answers()
    answers = _unique(declared)
    if len(answers) != len(declared):
        repairs.append("duplicate_answer_dropped")

    if question_type == QuestionTypeKind.TRUE_FALSE:
        if list(choices) != list(TRUE_FALSE_CHOICES):
            repairs.append("true_false_choices_forced")
        choices = list(TRUE_FALSE_CHOICES)
        first = answers[0] if answers else None
        if first in (TRUE_LABEL, FALSE_LABEL):
            if len(answers) > 1:
                repairs.append("single_answer_enforced")
            answers = [first]
        else:
            repairs.append("true_false_answer_defaulted")
            answers = [TRUE_LABEL]

    elif question_type == QuestionTypeKind.MATCHING:
        fixed = [c.label for c in choices]
        if fixed != answers:
            repairs.append("matching_answers_completed")
        answers = fixed

    else:
        if choices:
            known = {c.label for c in choices}
            kept = [a for a in answers if a in known]
            if len(kept) != len(answers):
                repairs.append("unknown_answer_dropped")
            answers = kept
        candidates = _fallback_candidates(choices, label_pool)

        if question_type == QuestionTypeKind.MULTIPLE_RESPONSE:
            fixed = _multiple_response_answers(answers, candidates, label_pool)
            if fixed != answers:
                repairs.append("multiple_response_cardinality")
        else:
            fixed = _single_answer(answers, candidates)
            if fixed != answers:
                repairs.append("single_answer_enforced")
        answers = fixed

        if question_type == QuestionTypeKind.COMPLETION:
            fixed_text = insert_blank_marker(question_text)
            if fixed_text != question_text:
                repairs.append("blank_marker_inserted")
            question_text = fixed_text

    normalized = NormalizedQuestion(
        question=question_text,
        choices=choices,
        correct_answers=answers,
        explanation=raw.explanation or "",
        type=question_type,
    )
    return normalized, repairs


def repair_questions(
    raw_questions: Sequence[RawModelQuestion],
    question_type: QuestionTypeKind,
    label_pool: Sequence[str] = CANONICAL_LABELS,
) -> List[NormalizedQuestion]:
    normalized = []
    for index, raw in enumerate(raw_questions):
        question, repairs = repair_question(raw, question_type, label_pool)
        for rule in repairs:
            REPAIRED_QUESTIONS.labels(type=question_type.value, rule=rule).inc()
            logger.warning(
                "question_repaired",
                index=index,
                question_type=question_type.value,
                rule=rule,
            )
        normalized.append(question)
    return normalized
