"""Text extraction for uploaded files (PDF or plain text)."""

from __future__ import annotations

import io
import logging

from pypdf import PdfReader
from pypdf.errors import PyPdfError

from vault_rag.errors import ExtractionError
from vault_rag.models import UploadedFile

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"
PREVIEW_CHARS = 32


def extract_pdf_text(data: bytes) -> str:
    """Return the text of every page of a PDF, one page per line block."""
    reader = PdfReader(io.BytesIO(data))
    return "\n".join(page.extract_text() or "" for page in reader.pages)


def extract_text(file: UploadedFile) -> str:
    """Extract plain text from *file*, dispatching on its declared content type.

    Raises
    ------
    ExtractionError
        If the PDF cannot be parsed or the bytes are not valid UTF-8.
    """
    content_type = file.content_type.split(";", 1)[0].strip().lower()
    if content_type == PDF_CONTENT_TYPE:
        try:
            text = extract_pdf_text(file.data)
        except (PyPdfError, ValueError, OSError) as exc:
            raise ExtractionError("Error extracting text from PDF") from exc
    else:
        try:
            text = file.data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ExtractionError("Error reading file") from exc

    logger.info(
        "File Name: %s, File Type: %s, File Content (first %d characters): %r",
        file.filename, content_type, PREVIEW_CHARS, text[:PREVIEW_CHARS],
    )
    return text
