# ============================================================
#  COVERWISE — core/composer.py
#  Cover-letter composition via a remote generative model.
#  ------------------------------------------------------------
#   • build_prompt(): ResumeRecord + JobRecord + tone → prompt
#   • GeminiComposer: generateContent REST call (httpx)
#   • OpenAIComposer: chat completion (openai SDK)
#  Responses are checked against an explicit schema before any
#  nested field is read; a mismatch is an Err, never a guess.
# ============================================================

from __future__ import annotations

import json
import threading
import textwrap
from typing import List, Optional

import httpx
from openai import APIConnectionError, APIError, APIStatusError, AsyncOpenAI
from pydantic import BaseModel, ValidationError, field_validator

from coverwise.core.config import Settings
from coverwise.core.errors import Err, Ok, Result
from coverwise.core.models import JobRecord, ResumeRecord, Tone
from coverwise.core.utils import benchmark, log_event

CONFIG_ERROR = Err("Configuration error", "Service is currently unavailable", 500)
_AI_USER_MESSAGE = "There was an issue with the AI service"


# ============================================================
# 📝 Prompt
# ============================================================

_PROMPT_TEMPLATE = textwrap.dedent(
    """\
    Write a professional cover letter for {name} applying for the {role} position at {company}.

    Resume Information:
    - Name: {name}
    - Email: {email}
    - Phone: {phone}
    - Experience: {experience}
    - Education: {education}
    - Skills: {skills}

    Job Requirements:
    {requirements}

    Tone: {tone}

    Requirements:
    - Keep it between 250-400 words
    - Address the hiring manager professionally
    - Highlight 2-3 most relevant skills from the resume
    - Mention the company name 2-3 times
    - Include 1-2 specific achievements
    - Use a {tone} tone
    - Format with proper paragraphs

    Output only the cover letter content (no headings or explanations).
    """
)


def build_prompt(resume: ResumeRecord, job: JobRecord, tone: Tone | str) -> str:
    tone_value = tone.value if isinstance(tone, Tone) else str(tone)
    return _PROMPT_TEMPLATE.format(
        name=resume.name,
        email=resume.email,
        phone=resume.phone or "Not specified",
        experience="; ".join(resume.experience),
        education="; ".join(resume.education),
        skills=", ".join(resume.skills),
        role=job.role,
        company=job.company,
        requirements="\n".join(f"- {req}" for req in job.requirements),
        tone=tone_value,
    )


# ============================================================
# 📐 Response schemas
# ============================================================

class _Part(BaseModel):
    text: str


class _Content(BaseModel):
    parts: List[_Part]

    @field_validator("parts")
    @classmethod
    def _non_empty(cls, v):
        if not v:
            raise ValueError("no parts")
        return v


class _Candidate(BaseModel):
    content: _Content


class GeminiResponse(BaseModel):
    """candidates[0].content.parts[0].text must exist and be non-blank."""

    candidates: List[_Candidate]

    @field_validator("candidates")
    @classmethod
    def _non_empty(cls, v):
        if not v:
            raise ValueError("no candidates")
        return v

    def letter_text(self) -> str:
        text = self.candidates[0].content.parts[0].text
        if not text.strip():
            raise ValueError("empty text")
        return text


class _ErrorInfo(BaseModel):
    message: str = ""


class GeminiErrorBody(BaseModel):
    error: _ErrorInfo


def _unexpected(detail: str) -> Err:
    return Err("Unexpected AI response", _AI_USER_MESSAGE, 502, detail)


def _ai_api_error(message: str) -> Err:
    return Err(f"AI API Error: {message}", _AI_USER_MESSAGE, 502, message)


# ============================================================
# 🤖 Composers
# ============================================================

class CoverLetterComposer:
    provider = "base"

    def __init__(self, settings: Settings):
        self.settings = settings

    async def _generate(self, prompt: str) -> Result[str]:
        raise NotImplementedError

    async def compose(self, resume: ResumeRecord, job: JobRecord, tone: Tone | str = Tone.formal) -> Result[str]:
        prompt = build_prompt(resume, job, tone)
        with benchmark("compose_letter", {"provider": self.provider}):
            result = await self._generate(prompt)
        if result.ok:
            log_event("letter_composed", {"provider": self.provider, "chars": len(result.value)})
        else:
            log_event(
                "letter_compose_failed",
                {"provider": self.provider, "kind": result.kind, "detail": result.detail},
                level="error",
            )
        return result


class GeminiComposer(CoverLetterComposer):
    provider = "gemini"

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__(settings)
        self._transport = transport

    async def _generate(self, prompt: str) -> Result[str]:
        if not self.settings.gemini_api_key:
            return CONFIG_ERROR

        url = f"{self.settings.gemini_api_base}/models/{self.settings.gemini_model}:generateContent"
        headers = {"Content-Type": "application/json", "x-goog-api-key": self.settings.gemini_api_key}
        payload = {"contents": [{"parts": [{"text": prompt}]}]}

        try:
            async with httpx.AsyncClient(timeout=self.settings.ai_timeout_sec, transport=self._transport) as client:
                r = await client.post(url, headers=headers, json=payload)
        except httpx.HTTPError as e:
            return Err("AI service unreachable", _AI_USER_MESSAGE, 502, f"{type(e).__name__}: {e}")

        try:
            data = r.json()
        except json.JSONDecodeError:
            return _unexpected(f"HTTP {r.status_code}: non-JSON body")

        if r.is_error:
            try:
                return _ai_api_error(GeminiErrorBody.model_validate(data).error.message)
            except ValidationError:
                return _ai_api_error(f"HTTP {r.status_code}")

        try:
            return Ok(GeminiResponse.model_validate(data).letter_text())
        except (ValidationError, ValueError) as e:
            return _unexpected(str(e))


_openai_lock = threading.Lock()
_openai_client: Optional[AsyncOpenAI] = None


def get_openai_client(settings: Settings) -> AsyncOpenAI:
    """Process-wide AsyncOpenAI client (one connection pool), built on first use."""
    global _openai_client
    if _openai_client is not None:
        return _openai_client
    with _openai_lock:
        if _openai_client is None:
            _openai_client = AsyncOpenAI(api_key=settings.openai_api_key, timeout=settings.ai_timeout_sec)
    return _openai_client


async def close_openai_client() -> None:
    global _openai_client
    with _openai_lock:
        client, _openai_client = _openai_client, None
    if client is not None:
        await client.close()


class OpenAIComposer(CoverLetterComposer):
    provider = "openai"

    def __init__(self, settings: Settings, client: Optional[AsyncOpenAI] = None):
        super().__init__(settings)
        self._client = client

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = get_openai_client(self.settings)
        return self._client

    async def _generate(self, prompt: str) -> Result[str]:
        if not self.settings.openai_api_key and self._client is None:
            return CONFIG_ERROR
        try:
            resp = await self._get_client().chat.completions.create(
                model=self.settings.openai_model,
                messages=[{"role": "user", "content": prompt}],
            )
        except APIStatusError as e:
            return _ai_api_error(e.message)
        except APIConnectionError as e:
            return Err("AI service unreachable", _AI_USER_MESSAGE, 502, str(e))
        except APIError as e:
            return _ai_api_error(str(e))

        choices = getattr(resp, "choices", None) or []
        content = choices[0].message.content if choices and choices[0].message else None
        if not isinstance(content, str) or not content.strip():
            return _unexpected("choices[0].message.content missing or empty")
        return Ok(content.strip())


_COMPOSERS = {
    "gemini": GeminiComposer,
    "openai": OpenAIComposer,
}


def make_composer(settings: Settings) -> CoverLetterComposer:
    try:
        return _COMPOSERS[settings.ai_provider](settings)
    except KeyError:
        raise ValueError(f"Unsupported AI provider: {settings.ai_provider}") from None
