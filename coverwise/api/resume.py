# ============================================================
#  COVERWISE — api/resume.py
#  POST /upload : résumé file → text → ResumeRecord
# ============================================================

from __future__ import annotations

import asyncio
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile

from coverwise.core.config import Settings, get_settings
from coverwise.core.errors import EmptyDocument
from coverwise.core.models import ResumeRecord
from coverwise.core.resume_fields import extract_resume_fields
from coverwise.core.security import validate_upload
from coverwise.core.text_extract import extract_text
from coverwise.core.utils import log_event

router = APIRouter(tags=["resume"])


@router.post("/upload", response_model=ResumeRecord)
async def upload_resume(
    resume: Optional[UploadFile] = File(None),
    settings: Settings = Depends(get_settings),
):
    """
    Accept a PDF/DOCX résumé (multipart field `resume`), extract its text and
    return the heuristically parsed fields.
    """
    # one byte past the cap is enough to detect an oversized upload
    content = await resume.read(settings.max_upload_bytes + 1) if resume is not None else None
    filename = resume.filename if resume is not None else None
    content_type = resume.content_type if resume is not None else None
    size = resume.size if resume is not None else None

    safe_name = validate_upload(filename, content_type, content, settings, size=size)

    text = await asyncio.to_thread(extract_text, content, content_type)
    if not text:
        log_event("resume_empty_text", {"filename": safe_name}, level="warn")
        raise EmptyDocument()

    record = extract_resume_fields(text)
    log_event("resume_parsed", {
        "filename": safe_name,
        "email": record.email,
        "skills": len(record.skills),
        "chars": len(text),
    })
    return record
