# -*- coding: utf-8 -*-
import io
from pathlib import Path

import pdfplumber


class PdfExtractionError(ValueError):
    """The upload could not be read as a PDF."""


def _pages_from(source) -> list[str]:
    pages: list[str] = []
    with pdfplumber.open(source) as pdf:
        for page in pdf.pages:
            text = page.extract_text()
            if text:
                pages.append(text.strip())
    return pages


def extract_pdf_pages(path: str) -> list[str]:
    """
    Extracts text from a local PDF, one string per page with text.
    :param path: A local file path to a PDF file.
    :return: The non-empty page texts, in order.
    """
    pdf_path = Path(path)
    if not pdf_path.is_file():
        raise FileNotFoundError(f"File not found: {pdf_path}")
    return _pages_from(str(pdf_path))


def extract_pdf_pages_from_content(content: bytes) -> list[str]:
    """
    Extracts text from PDF bytes, as received from an upload.
    :param content: Raw PDF file contents.
    :return: The non-empty page texts, in order.
    """
    if not content:
        raise PdfExtractionError("Uploaded file is empty")
    try:
        return _pages_from(io.BytesIO(content))
    except Exception as e:
        raise PdfExtractionError(f"Could not read PDF: {e}") from e
