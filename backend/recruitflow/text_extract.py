import io
import logging
from typing import Optional

import fitz  # PyMuPDF
from docx import Document

from recruitflow.errors import UnsupportedFileType

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = (".pdf", ".docx", ".txt")


def extract_text_from_pdf_bytes(pdf_bytes: bytes) -> str:
    """Extract readable text from a PDF file."""
    text = ""
    try:
        with fitz.open(stream=pdf_bytes, filetype="pdf") as doc:
            for page in doc:
                text += page.get_text("text")
    except Exception as e:
        logger.warning("PDF extraction error: %s", e)
        return ""
    return text.strip()


def extract_text_from_docx_bytes(docx_bytes: bytes) -> str:
    """Extract paragraph and table text from a DOCX file."""
    try:
        doc = Document(io.BytesIO(docx_bytes))
    except Exception as e:
        logger.warning("DOCX extraction error: %s", e)
        return ""
    parts = [p.text for p in doc.paragraphs]
    for table in doc.tables:
        for row in table.rows:
            parts.append(" ".join(cell.text for cell in row.cells))
    return "\n".join(parts).strip()


def decode_text_bytes(data: bytes) -> str:
    try:
        return data.decode("utf-8").strip()
    except UnicodeDecodeError:
        return data.decode("latin-1").strip()


def extract_text_from_upload(filename: Optional[str], data: bytes) -> str:
    """Turn an uploaded resume into plain text based on its extension."""
    name = (filename or "").lower()
    if name.endswith(".pdf"):
        return extract_text_from_pdf_bytes(data)
    if name.endswith(".docx"):
        return extract_text_from_docx_bytes(data)
    if name.endswith(".txt"):
        return decode_text_bytes(data)
    raise UnsupportedFileType(
        f"Unsupported file type. Upload one of: {', '.join(SUPPORTED_EXTENSIONS)}"
    )
