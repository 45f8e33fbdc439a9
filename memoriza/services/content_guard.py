"""Size and type checks applied before a document is sent upstream.

Large PDFs, images and pasted text produce oversized generation requests, so
everything is estimated in tokens and bounded here.
"""

import base64
import logging
import math
from typing import Optional

from memoriza.models import ContentType, Difficulty, GenerateFromSummaryRequest

logger = logging.getLogger(__name__)

MAX_FILE_SIZE = 10 * 1024 * 1024
MAX_PDF_SIZE_FOR_PROCESSING = 2 * 1024 * 1024
PDF_BYTES_PER_PAGE = 60 * 1024
ESTIMATED_TOKENS_PER_PAGE = 2000
MAX_TOKENS_SAFE = 100_000
CHARS_PER_TOKEN = 4
BASE64_OVERHEAD = 1.33

ACCEPTED_FILE_TYPES = {
    ContentType.PDF: {"application/pdf"},
    ContentType.IMAGE: {"image/jpeg", "image/jpg", "image/png", "image/webp"},
}


class ContentRejectedError(ValueError):
    """Content that should not be submitted; the message is user-facing."""


def estimate_pdf_pages(size: int) -> int:
    return math.ceil(size / PDF_BYTES_PER_PAGE)


def estimate_tokens_from_file_size(size: int, mime_type: str) -> int:
    if mime_type in ACCEPTED_FILE_TYPES[ContentType.PDF]:
        return estimate_pdf_pages(size) * ESTIMATED_TOKENS_PER_PAGE
    base64_size = math.ceil(size * BASE64_OVERHEAD)
    return math.ceil(base64_size / CHARS_PER_TOKEN)


def estimate_text_tokens(text: str) -> int:
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def content_type_for(mime_type: str) -> Optional[ContentType]:
    for content_type, mime_types in ACCEPTED_FILE_TYPES.items():
        if mime_type in mime_types:
            return content_type
    return None


def check_size(size: int) -> None:
    if size > MAX_FILE_SIZE:
        raise ContentRejectedError("File too large. Maximum 10MB.")


def check_file(size: int, mime_type: str) -> tuple[ContentType, Optional[str]]:
    """Validate an uploaded document.

    Returns the content type and an optional warning for documents that are
    accepted but likely to produce poorer cards. Raises ContentRejectedError
    for anything that must not be submitted.
    """
    check_size(size)

    content_type = content_type_for(mime_type)
    if content_type is None:
        raise ContentRejectedError(
            "Unsupported file type. Use PDF or images (JPG, PNG, WebP)."
        )

    tokens = estimate_tokens_from_file_size(size, mime_type)
    if content_type is ContentType.IMAGE:
        if tokens > MAX_TOKENS_SAFE:
            raise ContentRejectedError(
                "Image too large. Use a smaller or lower-resolution image."
            )
        return content_type, None

    pages = estimate_pdf_pages(size)
    logger.info("PDF info: %d bytes, ~%d pages, ~%d tokens", size, pages, tokens)
    if size > MAX_PDF_SIZE_FOR_PROCESSING:
        raise ContentRejectedError(
            f"PDF too long (~{pages} pages). Use PDFs of up to 30-40 pages "
            "or split the content."
        )
    if tokens > MAX_TOKENS_SAFE:
        return content_type, (
            f"PDF may be too long (~{pages} pages, ~{math.ceil(tokens / 1000)}k tokens). "
            "Smaller PDFs give better flashcards."
        )
    return content_type, None


def check_text(text: str) -> None:
    tokens = estimate_text_tokens(text)
    if tokens > MAX_TOKENS_SAFE:
        pages = math.ceil(tokens / ESTIMATED_TOKENS_PER_PAGE)
        raise ContentRejectedError(
            f"Text too long (~{pages} pages, {math.ceil(tokens / 1000)}k tokens). "
            "Use a shorter text or split the content."
        )


def build_summary_request(
    data: bytes,
    mime_type: str,
    file_name: Optional[str] = None,
    difficulty: Difficulty = Difficulty.INTERMEDIATE,
) -> GenerateFromSummaryRequest:
    """Check an uploaded document and wrap it as a base64 summary request."""
    if not data:
        raise ContentRejectedError("Please upload a file or paste some text.")

    content_type, warning = check_file(len(data), mime_type)
    if warning:
        logger.warning("%s (%s)", warning, file_name or "upload")

    return GenerateFromSummaryRequest(
        content=base64.b64encode(data).decode("ascii"),
        content_type=content_type,
        difficulty=difficulty,
        file_name=file_name,
    )
