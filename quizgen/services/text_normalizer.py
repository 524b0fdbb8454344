import re

import structlog

from quizgen.schemas import TruncationOutcome

logger = structlog.get_logger()

MAX_CHARS = 10000
# Boundary search covers the last 20% of the truncated text
SEARCH_WINDOW_RATIO = 0.2

SENTENCE_ENDINGS = [". ", ".\n", "! ", "!\n", "? ", "?\n"]
PARAGRAPH_BREAKS = ["\n\n", "\n "]

MULTI_SPACE_RE = re.compile(r"\s+")
BLANK_LINES_RE = re.compile(r"\n\s*\n")


def _last_position(window: str, patterns) -> int:
    return max(window.rfind(p) for p in patterns)


def truncate_text(text: str, max_chars: int = MAX_CHARS) -> tuple[str, bool]:
    """Cut text to max_chars, preferring a sentence end, then a paragraph break."""
    if len(text) <= max_chars:
        return text, False

    truncated = text[:max_chars]
    search_start = max(0, max_chars - int(max_chars * SEARCH_WINDOW_RATIO))
    window = truncated[search_start:]

    sentence_end = _last_position(window, SENTENCE_ENDINGS)
    if sentence_end > -1:
        # keep the punctuation, drop the trailing space/newline
        truncated = truncated[: search_start + sentence_end + 1]
    else:
        paragraph_end = _last_position(window, PARAGRAPH_BREAKS)
        if paragraph_end > -1:
            truncated = truncated[: search_start + paragraph_end]

    return truncated.strip(), True


def normalize_text(raw_text: str) -> TruncationOutcome:
    text = MULTI_SPACE_RE.sub(" ", raw_text or "")
    text = BLANK_LINES_RE.sub("\n", text).strip()
    original_length = len(text)

    result, was_truncated = truncate_text(text)
    if was_truncated:
        logger.warning(
            "text_truncated",
            original_length=original_length,
            truncated_length=len(result),
            max_chars=MAX_CHARS,
        )

    return TruncationOutcome(
        text=result,
        was_truncated=was_truncated,
        original_length=original_length,
        truncated_length=len(result),
    )
