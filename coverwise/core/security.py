"""
COVERWISE • core/security.py
Validation for uploaded résumé files.

  • validate_upload(filename, content_type, content, settings) -> str
      Checks presence, MIME type, emptiness and size; returns a sanitized
      filename or raises a ServiceError subclass.
"""

from __future__ import annotations

from typing import Optional, Union

from coverwise.core.config import Settings
from coverwise.core.errors import EmptyDocument, FileTooLarge, NoFileUploaded, UnsupportedFileType
from coverwise.core.utils import log_event, safe_filename


# ============================================================
# ⚙️ File Validation
# ============================================================
def validate_upload(
    filename: Optional[str],
    content_type: Optional[str],
    content: Optional[Union[bytes, bytearray]],
    settings: Settings,
    size: Optional[int] = None,
) -> str:
    """
    Validate an uploaded file before text extraction.
    Returns the sanitized filename if acceptable.

    `size` is the full upload size when known; `content` may then hold only
    its first bytes.
    """
    allowed = list(settings.allowed_file_types)

    if content is None or not filename:
        log_event("upload_rejected", {"reason": "missing_file"}, level="warn")
        raise NoFileUploaded(extra={"allowedTypes": allowed})

    mime = (content_type or "").split(";")[0].strip().lower()
    if mime not in allowed:
        log_event("upload_rejected", {"reason": "mime", "content_type": mime}, level="warn")
        raise UnsupportedFileType(extra={"allowedTypes": allowed})

    total = size if size is not None else len(content)
    size_mb = total / (1024 * 1024)
    if total > settings.max_upload_bytes or len(content) > settings.max_upload_bytes:
        log_event("upload_rejected", {"reason": "size", "size_mb": round(size_mb, 2)}, level="warn")
        raise FileTooLarge(message=f"File exceeds {settings.max_upload_mb} MB limit (got {size_mb:.2f} MB).")

    if not bytes(content).strip():
        log_event("upload_rejected", {"reason": "empty", "filename": filename}, level="warn")
        raise EmptyDocument("Empty file", "The uploaded file is empty")

    safe_name = safe_filename(filename)
    log_event("upload_validated", {"filename": safe_name, "size_mb": round(size_mb, 2), "content_type": mime})
    return safe_name
