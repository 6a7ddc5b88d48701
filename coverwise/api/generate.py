"""
============================================================
 COVERWISE — api/generate.py
 ------------------------------------------------------------
 POST /generate

  1. validate {resumeData, jobDescription, tone?, paymentId?, promoCode?}
  2. analyze the job description
  3. payment gate (promo code or captured Razorpay payment)
  4. compose the letter with the configured AI provider

 Steps run strictly in order; the first failure ends the request.
============================================================
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends
from pydantic import ValidationError

from coverwise.api.deps import error_list, get_composer, get_payment_gate
from coverwise.core import config
from coverwise.core.composer import CoverLetterComposer
from coverwise.core.errors import ValidationFailed
from coverwise.core.job_fields import extract_job_fields
from coverwise.core.models import CoverLetterResponse, GenerateRequest
from coverwise.core.payments import PaymentGate
from coverwise.core.utils import log_event, utc_now_iso

router = APIRouter(tags=["generate"])


def _validate(payload: Dict[str, Any]) -> GenerateRequest:
    job_text = payload.get("jobDescription")
    if not payload.get("resumeData") or not (isinstance(job_text, str) and job_text.strip()):
        log_event("generate_missing_data", {}, level="warn")
        raise ValidationFailed("Missing data", "Both resume data and job description are required")

    try:
        req = GenerateRequest.model_validate(payload)
    except ValidationError as e:
        errors = error_list(e)
        if any(err["field"] == "tone" for err in errors):
            raise ValidationFailed(
                "Invalid tone", f"Tone must be one of: {', '.join(config.TONES)}", extra={"errors": errors}
            ) from e
        raise ValidationFailed(extra={"errors": errors}) from e

    if not req.resume_data.name.strip() or not req.resume_data.email.strip():
        log_event("generate_incomplete_resume", {}, level="warn")
        raise ValidationFailed("Incomplete resume", "Resume must include name and email")
    return req


@router.post("/generate", response_model=CoverLetterResponse, response_model_by_alias=True)
async def generate_cover_letter(
    payload: Dict[str, Any] = Body(...),
    gate: PaymentGate = Depends(get_payment_gate),
    composer: CoverLetterComposer = Depends(get_composer),
):
    req = _validate(payload)
    resume = req.resume_data.to_record()
    job = extract_job_fields(req.job_description)
    log_event("generate_start", {"email": resume.email, "company": job.company, "role": job.role, "tone": req.tone.value})

    authorized = await gate.authorize(req.payment_id, req.promo_code, user=resume.email)
    if not authorized.ok:
        raise authorized.to_error()

    letter = await composer.compose(resume, job, req.tone)
    if not letter.ok:
        raise letter.to_error()

    log_event("cover_letter_generated", {"email": resume.email, "provider": composer.provider})
    return CoverLetterResponse(cover_letter=letter.value, generated_at=utc_now_iso())
