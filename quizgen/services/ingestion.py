"""
Upload validation and text extraction for PDF and plain-text documents
"""
from __future__ import annotations

import io

import structlog
from pypdf import PdfReader
from pypdf.errors import PyPdfError

from quizgen.errors import InvalidInput

logger = structlog.get_logger()

MAX_UPLOAD_BYTES = 10 * 1024 * 1024
PDF_MEDIA_TYPE = "application/pdf"
TEXT_MEDIA_TYPE = "text/plain"
ALLOWED_MEDIA_TYPES = (PDF_MEDIA_TYPE, TEXT_MEDIA_TYPE)


def _base_media_type(media_type: str | None) -> str:
    # "text/plain; charset=utf-8" -> "text/plain"
    return (media_type or "").split(";", 1)[0].strip().lower()


def validate_upload(data: bytes, media_type: str | None) -> None:
    if _base_media_type(media_type) not in ALLOWED_MEDIA_TYPES:
        raise InvalidInput("Invalid file type. Only PDF and TXT files are allowed.")
    if len(data) > MAX_UPLOAD_BYTES:
        raise InvalidInput("File size too large. Maximum size is 10MB.")


def extract_text_from_pdf(data: bytes) -> str:
    try:
        reader = PdfReader(io.BytesIO(data))
        if reader.is_encrypted:
            reader.decrypt("")
        return "\n".join(page.extract_text() or "" for page in reader.pages)
    except (PyPdfError, ValueError, KeyError, TypeError) as e:
        logger.warning("pdf_parse_failed", error=str(e))
        raise InvalidInput("Failed to parse PDF file") from e


def extract_text(data: bytes, media_type: str | None) -> str:
    """Validate the upload, then return its raw text content."""
    validate_upload(data, media_type)
    if _base_media_type(media_type) == PDF_MEDIA_TYPE:
        text = extract_text_from_pdf(data)
    else:
        text = data.decode("utf-8", errors="replace")
    logger.info("text_extracted", media_type=_base_media_type(media_type), chars=len(text))
    return text
