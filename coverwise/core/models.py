# ============================================================
#  COVERWISE — core/models.py
#  Records produced by the field extractors and the request /
#  response bodies of the HTTP API (camelCase on the wire).
# ============================================================

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from coverwise.core import config


class Tone(str, Enum):
    formal = "formal"
    friendly = "friendly"
    confident = "confident"


# ============================================================
# 🧾 Extracted records
# ============================================================

# Substituted when extraction finds nothing, so every field reaches the
# letter prompt with readable content.
DEFAULT_NAME = "Your Name"
RESUME_FALLBACKS = {
    "skills": ("Various professional skills",),
    "experience": ("Various professional experiences",),
    "education": ("Relevant educational background",),
}
JOB_FALLBACKS = {
    "company": "the company",
    "role": "the position",
    "requirements": ("Various skills and experiences",),
}


class ResumeRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    email: str = ""
    phone: str = ""
    skills: List[str]
    experience: List[str]
    education: List[str]


class JobRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    company: str
    role: str
    requirements: List[str]


# ============================================================
# 📨 Requests
# ============================================================

class AnalyzeJobRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    job_description: str = Field(..., alias="jobDescription")

    @field_validator("job_description")
    @classmethod
    def _min_length(cls, v: str) -> str:
        if len(v.strip()) < config.MIN_JOB_DESCRIPTION_CHARS:
            raise ValueError(
                f"Job description must be at least {config.MIN_JOB_DESCRIPTION_CHARS} characters long"
            )
        return v


class ResumePayload(BaseModel):
    """Resume data as echoed back by the client; only name and email are mandatory."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = ""
    email: str = ""
    phone: str = ""
    skills: List[str] = Field(default_factory=list)
    experience: List[str] = Field(default_factory=list)
    education: List[str] = Field(default_factory=list)

    def to_record(self) -> ResumeRecord:
        return ResumeRecord(
            name=self.name.strip(),
            email=self.email.strip(),
            phone=self.phone.strip(),
            skills=[s for s in self.skills if s.strip()] or list(RESUME_FALLBACKS["skills"]),
            experience=[e for e in self.experience if e.strip()] or list(RESUME_FALLBACKS["experience"]),
            education=[e for e in self.education if e.strip()] or list(RESUME_FALLBACKS["education"]),
        )


class GenerateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    resume_data: ResumePayload = Field(..., alias="resumeData")
    job_description: str = Field(..., alias="jobDescription")
    tone: Tone = Tone.formal
    payment_id: Optional[str] = Field(None, alias="paymentId")
    promo_code: Optional[str] = Field(None, alias="promoCode")

    @field_validator("tone", mode="before")
    @classmethod
    def _default_tone(cls, v):
        return config.DEFAULT_TONE if v is None or v == "" else v

    @field_validator("job_description")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Job description is required")
        return v


# ============================================================
# 📤 Responses
# ============================================================

class CoverLetterResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    cover_letter: str = Field(..., alias="coverLetter")
    generated_at: str = Field(..., alias="generatedAt")


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    version: str
