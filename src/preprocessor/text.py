"""PDF text extraction and upload boundary checks."""

import logging
from pathlib import Path

import pymupdf

from ingestion.errors import UnsupportedUpload

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"


def check_upload(content_type: str | None) -> None:
    """
    Reject any upload that is not a PDF.

    MIME parameters (e.g. "; charset=binary") are ignored.

    Args:
        content_type: Declared content type of the upload

    Raises:
        UnsupportedUpload: If the content type is not application/pdf
    """
    mime = (content_type or "").split(";", 1)[0].strip().lower()
    if mime != PDF_MIME_TYPE:
        raise UnsupportedUpload(f"Only PDF files are allowed (got {content_type!r})")


def extract_text(data: bytes) -> str:
    """
    Extract plain text from PDF bytes.

    Pages are joined in order, separated by a blank line.

    Args:
        data: Raw PDF bytes

    Returns:
        Extracted document text (empty for image-only PDFs)
    """
    doc = pymupdf.open(stream=data, filetype="pdf")

    try:
        pages = [page.get_text("text") or "" for page in doc]
    finally:
        doc.close()

    text = "\n\n".join(p.strip() for p in pages)
    logger.debug(f"Extracted {len(text)} characters from {len(pages)} pages")
    return text


def extract_text_from_file(pdf_path: Path) -> str:
    """Extract plain text from a PDF on disk."""
    return extract_text(Path(pdf_path).read_bytes())
