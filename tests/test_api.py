import asyncio

import pytest
from fastapi.testclient import TestClient

from coverwise.api.deps import get_composer
from coverwise.api.resume import upload_resume
from coverwise.core import config
from coverwise.core.composer import CoverLetterComposer
from coverwise.core.config import Settings
from coverwise.core.errors import Err, FileTooLarge, Ok
from main import create_app

JOB_TEXT = "We are looking for a Backend Engineer at Acme Corp. Must have experience with Docker and AWS."
RESUME_DATA = {
    "name": "Jane Doe",
    "email": "jane@example.com",
    "phone": "",
    "skills": ["Go", "Rust"],
    "experience": ["Senior Engineer at Initech"],
    "education": ["B.Sc. Computer Science"],
}


class FakeComposer(CoverLetterComposer):
    provider = "fake"

    def __init__(self, settings, result=None):
        super().__init__(settings)
        self.result = result or Ok("Dear Hiring Manager at Acme Corp,")
        self.seen = []

    async def compose(self, resume, job, tone="formal"):
        self.seen.append((resume, job, tone))
        return self.result


def _client(settings, composer=None):
    app = create_app(settings)
    if composer is not None:
        app.dependency_overrides[get_composer] = lambda: composer
    return TestClient(app)


@pytest.fixture
def composer(settings):
    return FakeComposer(settings)


@pytest.fixture
def client(settings, composer):
    return _client(settings, composer)


# ---------- health ----------

def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "healthy"
    assert body["version"] == config.APP_VERSION
    assert body["timestamp"].endswith("Z")


# ---------- upload ----------

def test_upload_docx(client, resume_docx):
    r = client.post("/upload", files={"resume": ("cv.docx", resume_docx, config.DOCX_MIME)})
    assert r.status_code == 200
    body = r.json()
    assert body["name"] == "Jane Doe"
    assert body["email"] == "jane.doe@example.com"
    assert body["phone"] == "(555) 123-4567"
    assert body["skills"] == ["Go", "Rust", "Python"]
    assert body["experience"] == ["Senior Engineer at Initech, 2019-2024"]
    assert body["education"] == ["B.Sc. Computer Science, State University"]


def test_upload_without_file(client):
    r = client.post("/upload", files={"document": ("cv.docx", b"data", config.DOCX_MIME)})
    assert r.status_code == 400
    assert r.json()["error"] == "No file uploaded"


def test_upload_wrong_type(client):
    r = client.post("/upload", files={"resume": ("cv.txt", b"hello", "text/plain")})
    assert r.status_code == 400
    assert r.json() == {
        "error": "Invalid file type",
        "message": "Only PDF and DOCX files are allowed.",
        "allowedTypes": [config.PDF_MIME, config.DOCX_MIME],
    }


def test_upload_too_large(settings):
    client = _client(settings.with_overrides(max_upload_mb=1))
    r = client.post("/upload", files={"resume": ("cv.pdf", b"x" * (1024 * 1024 + 10), config.PDF_MIME)})
    assert r.status_code == 413


def test_upload_corrupt_pdf(client):
    r = client.post("/upload", files={"resume": ("cv.pdf", b"not really a pdf", config.PDF_MIME)})
    assert r.status_code == 500
    assert r.json()["error"] == "Error processing resume"
    assert "details" not in r.json()


def test_upload_corrupt_pdf_details_in_development(settings):
    client = _client(settings.with_overrides(environment="development"))
    r = client.post("/upload", files={"resume": ("cv.pdf", b"not really a pdf", config.PDF_MIME)})
    assert r.status_code == 500
    assert r.json()["details"]


# ---------- analyze-jd ----------

def test_analyze_job_description(client):
    r = client.post("/analyze-jd", json={"jobDescription": JOB_TEXT})
    assert r.status_code == 200
    assert r.json() == {
        "company": "Acme Corp",
        "role": "Backend Engineer",
        "requirements": ["X years of experience", "AWS", "Docker"],
    }


@pytest.mark.parametrize("payload", [{}, {"jobDescription": "too short"}, {"jobDescription": " " * 40}, {"jobDescription": 42}])
def test_analyze_job_description_invalid(client, payload):
    r = client.post("/analyze-jd", json=payload)
    assert r.status_code == 400
    body = r.json()
    assert body["error"] == "Invalid job description"
    assert body["message"] == "Job description must be at least 20 characters long"
    assert body["errors"]


def test_analyze_requires_json_object(client):
    r = client.post("/analyze-jd", content=b"not json", headers={"Content-Type": "application/json"})
    assert r.status_code == 400
    assert r.json()["error"] == "Invalid request"


# ---------- generate ----------

def test_generate(client, composer):
    r = client.post("/generate", json={"resumeData": RESUME_DATA, "jobDescription": JOB_TEXT, "tone": "confident"})
    assert r.status_code == 200
    body = r.json()
    assert body["coverLetter"] == "Dear Hiring Manager at Acme Corp,"
    assert body["generatedAt"].endswith("Z")
    resume, job, tone = composer.seen[0]
    assert resume.name == "Jane Doe"
    assert resume.education == ["B.Sc. Computer Science"]
    assert job.company == "Acme Corp"
    assert tone.value == "confident"


def test_generate_default_tone_and_fallbacks(client, composer):
    data = {"name": "Jane Doe", "email": "jane@example.com"}
    r = client.post("/generate", json={"resumeData": data, "jobDescription": "Build things."})
    assert r.status_code == 200
    resume, job, tone = composer.seen[0]
    assert tone.value == "formal"
    assert resume.skills == ["Various professional skills"]
    assert job.requirements == ["Various skills and experiences"]


@pytest.mark.parametrize("payload", [
    {"jobDescription": JOB_TEXT},
    {"resumeData": RESUME_DATA},
    {"resumeData": RESUME_DATA, "jobDescription": "   "},
])
def test_generate_missing_data(client, payload):
    r = client.post("/generate", json=payload)
    assert r.status_code == 400
    assert r.json()["error"] == "Missing data"


def test_generate_incomplete_resume(client):
    data = dict(RESUME_DATA, email="")
    r = client.post("/generate", json={"resumeData": data, "jobDescription": JOB_TEXT})
    assert r.status_code == 400
    assert r.json() == {"error": "Incomplete resume", "message": "Resume must include name and email"}


def test_generate_invalid_tone(client, composer):
    r = client.post("/generate", json={"resumeData": RESUME_DATA, "jobDescription": JOB_TEXT, "tone": "sarcastic"})
    assert r.status_code == 400
    assert r.json()["error"] == "Invalid tone"
    assert composer.seen == []


def test_generate_requires_payment(settings, composer):
    client = _client(settings.with_overrides(payment_required=True), composer)
    r = client.post("/generate", json={"resumeData": RESUME_DATA, "jobDescription": JOB_TEXT})
    assert r.status_code == 403
    assert r.json() == {"error": "Payment required", "message": "Please complete payment to generate cover letter"}
    assert composer.seen == []


def test_generate_with_promo_code(settings, composer):
    client = _client(settings.with_overrides(payment_required=True, promo_codes=("WELCOME",)), composer)
    r = client.post("/generate", json={"resumeData": RESUME_DATA, "jobDescription": JOB_TEXT, "promoCode": "WELCOME"})
    assert r.status_code == 200


def test_generate_ai_failure(settings):
    composer = FakeComposer(settings, Err("Unexpected AI response", "There was an issue with the AI service", 502, "no candidates"))
    client = _client(settings, composer)
    r = client.post("/generate", json={"resumeData": RESUME_DATA, "jobDescription": JOB_TEXT})
    assert r.status_code == 502
    assert r.json() == {"error": "Unexpected AI response", "message": "There was an issue with the AI service"}


def test_generate_unhandled_error_is_500(settings):
    class Boom(FakeComposer):
        async def compose(self, resume, job, tone="formal"):
            raise RuntimeError("kaboom")

    client = _client(settings, Boom(settings))
    r = client.post("/generate", json={"resumeData": RESUME_DATA, "jobDescription": JOB_TEXT})
    assert r.status_code == 500
    assert r.json()["error"] == "Internal server error"


# ---------- rate limiting ----------

def test_rate_limit(settings):
    client = _client(settings.with_overrides(rate_limit_enabled=True, rate_limit_max=2))
    for _ in range(2):
        assert client.post("/analyze-jd", json={"jobDescription": JOB_TEXT}).status_code == 200
    r = client.post("/analyze-jd", json={"jobDescription": JOB_TEXT})
    assert r.status_code == 429
    assert r.json()["error"] == "Too many requests"
    assert int(r.headers["Retry-After"]) > 0
    assert client.get("/health").status_code == 200


def test_upload_reads_at_most_one_byte_past_the_cap(settings):
    class LargeUpload:
        filename = "cv.pdf"
        content_type = config.PDF_MIME
        size = 50 * 1024 * 1024

        def __init__(self):
            self.requested = []

        async def read(self, size=-1):
            self.requested.append(size)
            return b"x" * size

    small = settings.with_overrides(max_upload_mb=1)
    upload = LargeUpload()
    with pytest.raises(FileTooLarge) as exc:
        asyncio.run(upload_resume(resume=upload, settings=small))
    assert upload.requested == [small.max_upload_bytes + 1]
    assert "got 50.00 MB" in exc.value.message


def test_upload_too_large_reports_full_size(settings):
    client = _client(settings.with_overrides(max_upload_mb=1))
    r = client.post("/upload", files={"resume": ("cv.pdf", b"x" * (3 * 1024 * 1024), config.PDF_MIME)})
    assert r.status_code == 413
    assert "got 3.00 MB" in r.json()["message"]
