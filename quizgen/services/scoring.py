from typing import Iterable


def is_answer_correct(selected: Iterable[str], correct: Iterable[str]) -> bool:
    """Order-independent comparison of selected labels against the answer key."""
    return set(selected) == set(correct)
