"""Unit tests for text extraction."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from vault_rag.errors import ExtractionError
from vault_rag.ingestion.loader import extract_text
from vault_rag.models import UploadedFile


def test_plain_text_decoded() -> None:
    file = UploadedFile(filename="notes.txt", content_type="text/plain", data="héllo".encode())
    assert extract_text(file) == "héllo"


def test_content_type_parameters_ignored() -> None:
    file = UploadedFile(filename="notes.txt", content_type="text/plain; charset=utf-8", data=b"hi")
    assert extract_text(file) == "hi"


def test_invalid_utf8_raises() -> None:
    file = UploadedFile(filename="bin.dat", content_type="application/octet-stream", data=b"\xff\xfe\xfa")
    with pytest.raises(ExtractionError, match="Error reading file"):
        extract_text(file)


def test_pdf_pages_joined() -> None:
    pages = [MagicMock(), MagicMock()]
    pages[0].extract_text.return_value = "page one"
    pages[1].extract_text.return_value = "page two"
    reader = MagicMock(pages=pages)

    with patch("vault_rag.ingestion.loader.PdfReader", return_value=reader):
        text = extract_text(UploadedFile(filename="doc.pdf", content_type="application/pdf", data=b"%PDF"))

    assert text == "page one\npage two"


def test_corrupt_pdf_raises() -> None:
    file = UploadedFile(filename="broken.pdf", content_type="application/pdf", data=b"not a pdf at all")
    with pytest.raises(ExtractionError, match="Error extracting text from PDF"):
        extract_text(file)
