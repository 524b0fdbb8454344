from __future__ import annotations

import os

import structlog
from openai import OpenAI, OpenAIError

from quizgen.errors import GenerationError

logger = structlog.get_logger()

OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
OPENAI_TIMEOUT = float(os.getenv("OPENAI_TIMEOUT", "120"))


def _get_client() -> OpenAI:
    api_key = os.getenv("OPENAI_API_KEY")
    if not api_key:
        raise GenerationError("OPENAI_API_KEY not set")
    # Use env var; set timeouts per-request via with_options()
    return OpenAI(api_key=api_key)


def complete_prompt(prompt: str) -> str:
    """Send one prompt to the chat model and return the raw response text."""
    client = _get_client().with_options(timeout=OPENAI_TIMEOUT)
    try:
        rsp = client.chat.completions.create(
            model=OPENAI_MODEL,
            messages=[{"role": "user", "content": prompt}],
            temperature=0.2,
        )
    except OpenAIError as e:
        logger.error("llm_request_failed", model=OPENAI_MODEL, error=str(e))
        raise GenerationError(f"Failed to generate questions: {e}") from e

    content = rsp.choices[0].message.content if rsp.choices else None
    if not content:
        logger.error("llm_empty_response", model=OPENAI_MODEL)
        raise GenerationError("Failed to generate questions: empty model response")
    logger.info("llm_request_completed", model=OPENAI_MODEL, response_chars=len(content))
    return content
