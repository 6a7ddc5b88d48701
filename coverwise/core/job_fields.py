"""
COVERWISE • core/job_fields.py
Rule-based job-description field extraction.

Company and role use ordered pattern lists (first match wins).
Requirements use plain, case-sensitive substring containment, so a keyword
embedded in a longer word still counts ("Java" inside "JavaScript").
"""

from __future__ import annotations

import re
from typing import List, Optional, Sequence, Tuple

from coverwise.core.models import JOB_FALLBACKS, JobRecord

# a role phrase stops at a connective word, sentence punctuation, or the line end
_PHRASE_END = r"(?=\s+(?:at|to|with|who|from|in|for)\b|[.,;!?](?:\s|\Z)|\n|\Z)"

COMPANY_PATTERNS: Tuple[re.Pattern, ...] = (
    re.compile(r"at\s+([A-Z][a-zA-Z0-9\s-]*)", re.IGNORECASE),
    re.compile(r"company:\s*([^\n]+)", re.IGNORECASE),
    re.compile(r"about\s+([A-Z][a-zA-Z0-9\s-]*)", re.IGNORECASE),
)

ROLE_PATTERNS: Tuple[re.Pattern, ...] = (
    re.compile(r"position:\s*([^\n]+)", re.IGNORECASE),
    re.compile(r"role:\s*([^\n]+)", re.IGNORECASE),
    re.compile(rf"looking for a\s+([^\n]+?){_PHRASE_END}", re.IGNORECASE),
    re.compile(rf"seeking a\s+([^\n]+?){_PHRASE_END}", re.IGNORECASE),
)

# (trigger substring, requirement phrase), checked in this order
TRIGGER_PHRASES: Tuple[Tuple[str, str], ...] = (
    ("experience", "X years of experience"),
    ("degree", "Bachelor's degree or higher"),
    ("communication", "Strong communication skills"),
    ("team", "Team player"),
    ("leadership", "Leadership abilities"),
)

SKILL_KEYWORDS: Tuple[str, ...] = (
    "JavaScript", "Python", "Java", "C++", "React", "Angular",
    "Node.js", "SQL", "NoSQL", "AWS", "Azure", "Docker",
    "Kubernetes", "CI/CD", "Agile", "Scrum", "Figma",
    "Photoshop", "Illustrator", "SEO", "SEM", "Google Analytics",
    "Email Marketing", "Social Media", "Content Creation",
)


def _first_match(patterns: Sequence[re.Pattern], text: str) -> Optional[str]:
    for pat in patterns:
        m = pat.search(text)
        if m:
            return m.group(1).strip()
    return None


def extract_company(text: str) -> str:
    return _first_match(COMPANY_PATTERNS, text) or JOB_FALLBACKS["company"]


def extract_role(text: str) -> str:
    return _first_match(ROLE_PATTERNS, text) or JOB_FALLBACKS["role"]


def extract_requirements(text: str) -> List[str]:
    requirements = [phrase for trigger, phrase in TRIGGER_PHRASES if trigger in text]
    requirements.extend(kw for kw in SKILL_KEYWORDS if kw in text)
    return requirements or list(JOB_FALLBACKS["requirements"])


def extract_job_fields(text: str) -> JobRecord:
    """Derive a fully populated JobRecord from a free-text job description."""
    text = text or ""
    return JobRecord(
        company=extract_company(text),
        role=extract_role(text),
        requirements=extract_requirements(text),
    )
