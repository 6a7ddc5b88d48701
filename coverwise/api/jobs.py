# ============================================================
#  COVERWISE — api/jobs.py
#  POST /analyze-jd : job description text → JobRecord
# ============================================================

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Body

from coverwise.api.deps import parse_body
from coverwise.core import config
from coverwise.core.job_fields import extract_job_fields
from coverwise.core.models import AnalyzeJobRequest, JobRecord
from coverwise.core.utils import log_event

router = APIRouter(tags=["jobs"])


@router.post("/analyze-jd", response_model=JobRecord)
async def analyze_job_description(payload: Dict[str, Any] = Body(...)):
    """Extract company, role and requirement phrases from a job description."""
    req = parse_body(
        AnalyzeJobRequest,
        payload,
        "Invalid job description",
        f"Job description must be at least {config.MIN_JOB_DESCRIPTION_CHARS} characters long",
    )
    record = extract_job_fields(req.job_description)
    log_event("job_description_analyzed", {
        "company": record.company,
        "role": record.role,
        "requirements": len(record.requirements),
    })
    return record
