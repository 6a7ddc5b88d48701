"""
COVERWISE • core/resume_fields.py
Rule-based résumé field extraction.

Every rule runs independently over the whole text. A rule that finds
nothing degrades to "" (email, phone) or to a one-element placeholder
list (skills, experience, education); extraction never raises.
"""

from __future__ import annotations

import re
from typing import List, Optional

from coverwise.core.models import DEFAULT_NAME, RESUME_FALLBACKS, ResumeRecord

# \w, \d and \b are ASCII-only in these patterns
EMAIL = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b", re.ASCII)
PHONE = re.compile(r"(\+?\d{1,2}\s?)?\(?\d{3}\)?[\s.-]?\d{3}[\s.-]?\d{4}\b", re.ASCII)


def _section(headings: str) -> re.Pattern:
    # heading, optional colon, then everything up to the next "\nWord:" line or end of text
    return re.compile(rf"({headings}):?\s*([\s\S]+?)(?=\n\w+:|\Z)", re.IGNORECASE | re.ASCII)


SKILLS_SECTION = _section(r"skills|technical skills|key skills")
EXPERIENCE_SECTION = _section(r"experience|work history|employment history")
EDUCATION_SECTION = _section(r"education|academic background|qualifications")

SKILL_SPLIT = re.compile(r"[,;•·●]+\s*")

MIN_SKILL_CHARS = 2
MIN_ENTRY_CHARS = 11


# ───────────────────────────────────────── helpers ──
def _section_lines(pattern: re.Pattern, text: str) -> Optional[List[str]]:
    """Lines of the captured section with the heading line dropped; None if absent."""
    m = pattern.search(text)
    if not m:
        return None
    return m.group(0).split("\n")[1:]


def extract_name(text: str) -> str:
    for line in text.split("\n"):
        if line.strip():
            return line.strip()
    return DEFAULT_NAME


def extract_email(text: str) -> str:
    m = EMAIL.search(text)
    return m.group(0) if m else ""


def extract_phone(text: str) -> str:
    m = PHONE.search(text)
    return m.group(0) if m else ""


def extract_skills(text: str) -> List[str]:
    lines = _section_lines(SKILLS_SECTION, text) or []
    tokens = (tok.strip() for line in lines for tok in SKILL_SPLIT.split(line))
    skills = [tok for tok in tokens if len(tok) >= MIN_SKILL_CHARS]
    return skills or list(RESUME_FALLBACKS["skills"])


def _entries(pattern: re.Pattern, text: str, fallback_key: str) -> List[str]:
    lines = _section_lines(pattern, text) or []
    entries = [ln.strip() for ln in lines if len(ln.strip()) >= MIN_ENTRY_CHARS]
    return entries or list(RESUME_FALLBACKS[fallback_key])


def extract_experience(text: str) -> List[str]:
    return _entries(EXPERIENCE_SECTION, text, "experience")


def extract_education(text: str) -> List[str]:
    return _entries(EDUCATION_SECTION, text, "education")


# ───────────────────────────────────────── entry point ──
def extract_resume_fields(text: str) -> ResumeRecord:
    """Derive a fully populated ResumeRecord from plain résumé text."""
    text = text or ""
    return ResumeRecord(
        name=extract_name(text),
        email=extract_email(text),
        phone=extract_phone(text),
        skills=extract_skills(text),
        experience=extract_experience(text),
        education=extract_education(text),
    )
