import io

import pytest
from docx import Document

from coverwise.core import utils
from coverwise.core.config import Settings


@pytest.fixture(autouse=True)
def _isolated_event_log(tmp_path, monkeypatch):
    monkeypatch.setattr(utils, "LOG_PATH", tmp_path / "events.jsonl")
    monkeypatch.setattr(utils, "ERROR_LOG_PATH", tmp_path / "errors.jsonl")
    yield tmp_path


@pytest.fixture
def settings():
    return Settings(
        environment="test",
        payment_required=False,
        rate_limit_enabled=False,
        gemini_api_key="test-key",
    )


RESUME_LINES = [
    "Jane Doe",
    "jane.doe@example.com | (555) 123-4567",
    "Skills",
    "Go, Rust; Python",
    "Experience:",
    "Senior Engineer at Initech, 2019-2024",
    "Intern",
    "Education:",
    "B.Sc. Computer Science, State University",
]


def make_docx(lines=RESUME_LINES) -> bytes:
    doc = Document()
    for line in lines:
        doc.add_paragraph(line)
    buf = io.BytesIO()
    doc.save(buf)
    return buf.getvalue()


@pytest.fixture
def resume_docx() -> bytes:
    return make_docx()
