"""
Uploaded document ➜ raw text
– PDF via pdfplumber, DOCX via python-docx
– strips `(cid:N)` glyph artifacts
– suppresses verbose CropBox warnings from pdfplumber/pdfminer
"""

from __future__ import annotations

import io
import logging
import re
import warnings
from typing import List

import pdfplumber
from docx import Document

from coverwise.core import config
from coverwise.core.errors import TextExtractionError, UnsupportedFileType

# silence noisy PDF logging
logging.getLogger("pdfplumber").setLevel(logging.ERROR)
logging.getLogger("pdfminer").setLevel(logging.ERROR)
warnings.filterwarnings("ignore", category=UserWarning, module="pdfminer")

_CID_RE = re.compile(r"\(cid:\d+\)")


def pdf_to_text(content: bytes) -> str:
    with pdfplumber.open(io.BytesIO(content)) as pdf:
        pages = [p.extract_text() or "" for p in pdf.pages]
    return _CID_RE.sub("", "\n".join(pages))


def docx_to_text(content: bytes) -> str:
    doc = Document(io.BytesIO(content))
    lines: List[str] = [para.text for para in doc.paragraphs]
    for table in doc.tables:
        for row in table.rows:
            cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
            if cells:
                lines.append(", ".join(cells))
    return "\n".join(lines)


_CONVERTERS = {
    config.PDF_MIME: pdf_to_text,
    config.DOCX_MIME: docx_to_text,
}


def extract_text(content: bytes, content_type: str) -> str:
    """
    Convert an uploaded PDF/DOCX to plain text.

    Raises UnsupportedFileType for any other MIME type and TextExtractionError
    when the decoder itself fails (corrupt or encrypted file, etc.).
    """
    converter = _CONVERTERS.get((content_type or "").split(";")[0].strip().lower())
    if converter is None:
        raise UnsupportedFileType(extra={"allowedTypes": list(_CONVERTERS)})
    try:
        return converter(content).strip()
    except Exception as e:
        raise TextExtractionError(details=f"{type(e).__name__}: {e}") from e
