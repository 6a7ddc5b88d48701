"""
============================================================
 COVERWISE • core/config.py
 ------------------------------------------------------------
 Configuration for the resume / job-description / cover-letter
 backend: environment variables, directory paths, and the
 explicit Settings object handed to collaborators.

 Version : 1.0.0
============================================================
"""

from __future__ import annotations

import os
import threading
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional, Tuple

from dotenv import load_dotenv


# ============================================================
# 🌍 Environment Setup
# ============================================================

_env_loaded = (
    load_dotenv(dotenv_path=Path(__file__).resolve().parents[2] / ".env")
    or load_dotenv(dotenv_path=Path(__file__).resolve().parents[1] / ".env")
    or load_dotenv()
)


def _clean_env(val: str | None, default: str = "") -> str:
    v = (val if val is not None else default)
    return str(v).strip().strip('"').strip("'")


def _getenv_clean(name: str, default: str = "") -> str:
    return _clean_env(os.getenv(name), default)


def _getenv_bool(name: str, default: bool) -> bool:
    raw = _getenv_clean(name, "")
    if not raw:
        return default
    return raw.lower() in {"1", "true", "yes", "on"}


def _getenv_int(name: str, default: int) -> int:
    try:
        return int(_getenv_clean(name, str(default)))
    except ValueError:
        return default


def _getenv_list(name: str, default: Tuple[str, ...]) -> Tuple[str, ...]:
    raw = _getenv_clean(name, "")
    if not raw:
        return default
    return tuple(tok.strip() for tok in raw.split(",") if tok.strip())


# ============================================================
# 📁 Directory Structure
# ============================================================

BASE_DIR = Path(__file__).resolve().parents[2]
DATA_DIR = BASE_DIR / "data"
LOGS_DIR = DATA_DIR / "logs"


def _resolve_env_path(var_name: str, default_path: Path) -> Path:
    raw = _getenv_clean(var_name, "")
    if not raw:
        return default_path
    p = Path(os.path.expanduser(raw))
    if not p.is_absolute():
        p = BASE_DIR / p
    return p


LOG_PATH = _resolve_env_path("COVERWISE_LOG_PATH", LOGS_DIR / "events.jsonl")
ERROR_LOG_PATH = _resolve_env_path("COVERWISE_ERROR_LOG_PATH", LOGS_DIR / "errors.jsonl")


# ============================================================
# ⚙️ Core Settings
# ============================================================

APP_NAME = "COVERWISE"
APP_VERSION = "1.0.0"

PDF_MIME = "application/pdf"
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
ALLOWED_FILE_TYPES: Tuple[str, ...] = (PDF_MIME, DOCX_MIME)

TONES: Tuple[str, ...] = ("formal", "friendly", "confident")
DEFAULT_TONE = "formal"

MIN_JOB_DESCRIPTION_CHARS = 20

AI_PROVIDERS: Tuple[str, ...] = ("gemini", "openai")

GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta"
RAZORPAY_API_BASE = "https://api.razorpay.com/v1"


@dataclass(frozen=True)
class Settings:
    """Everything the HTTP layer and the external collaborators need.

    The field extractors never see this object; they only take text.
    """

    environment: str = "development"
    port: int = 3000
    cors_origins: Tuple[str, ...] = ("*",)

    # uploads
    allowed_file_types: Tuple[str, ...] = ALLOWED_FILE_TYPES
    max_upload_mb: int = 5

    # generative service
    ai_provider: str = "gemini"
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.5-flash"
    gemini_api_base: str = GEMINI_API_BASE
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"
    ai_timeout_sec: float = 60.0

    # payment gate
    payment_required: bool = True
    promo_codes: Tuple[str, ...] = ()
    razorpay_key_id: str = ""
    razorpay_key_secret: str = field(default="", repr=False)
    razorpay_api_base: str = RAZORPAY_API_BASE
    payment_timeout_sec: float = 15.0

    # rate limiting
    rate_limit_enabled: bool = True
    rate_limit_max: int = 100
    rate_limit_window_sec: int = 15 * 60

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def expose_error_details(self) -> bool:
        return self.environment.lower() == "development"

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024

    def with_overrides(self, **changes) -> "Settings":
        return replace(self, **changes)


def load_settings() -> Settings:
    """Build a Settings instance from the current environment.

    Raises ValueError for an unknown AI_PROVIDER.
    """
    ai_provider = _getenv_clean("AI_PROVIDER", "gemini").lower()
    if ai_provider not in AI_PROVIDERS:
        raise ValueError(f"Unsupported AI_PROVIDER {ai_provider!r}; expected one of: {', '.join(AI_PROVIDERS)}")

    return Settings(
        environment=_getenv_clean("COVERWISE_ENV", _getenv_clean("ENVIRONMENT", "development")).lower(),
        port=_getenv_int("PORT", 3000),
        cors_origins=_getenv_list("CORS_ORIGINS", ("*",)),
        allowed_file_types=_getenv_list("ALLOWED_FILE_TYPES", ALLOWED_FILE_TYPES),
        max_upload_mb=_getenv_int("MAX_UPLOAD_MB", 5),
        ai_provider=ai_provider,
        gemini_api_key=_getenv_clean("GEMINI_API_KEY", ""),
        gemini_model=_getenv_clean("GEMINI_MODEL", "gemini-2.5-flash"),
        gemini_api_base=_getenv_clean("GEMINI_API_BASE", GEMINI_API_BASE).rstrip("/"),
        openai_api_key=_getenv_clean("OPENAI_API_KEY", ""),
        openai_model=_getenv_clean("OPENAI_MODEL", "gpt-4o-mini"),
        ai_timeout_sec=float(_getenv_int("AI_TIMEOUT_SEC", 60)),
        payment_required=_getenv_bool("PAYMENT_REQUIRED", True),
        promo_codes=_getenv_list("PROMO_CODES", ()),
        razorpay_key_id=_getenv_clean("RAZORPAY_KEY_ID", ""),
        razorpay_key_secret=_getenv_clean("RAZORPAY_KEY_SECRET", ""),
        razorpay_api_base=_getenv_clean("RAZORPAY_API_BASE", RAZORPAY_API_BASE).rstrip("/"),
        payment_timeout_sec=float(_getenv_int("PAYMENT_TIMEOUT_SEC", 15)),
        rate_limit_enabled=_getenv_bool("RATE_LIMIT_ENABLED", True),
        rate_limit_max=_getenv_int("RATE_LIMIT_MAX", 100),
        rate_limit_window_sec=_getenv_int("RATE_LIMIT_WINDOW_SEC", 15 * 60),
    )


_settings_lock = threading.Lock()
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Process-wide Settings, built once. Routes receive it via Depends()."""
    global _settings
    if _settings is not None:
        return _settings
    with _settings_lock:
        if _settings is None:
            _settings = load_settings()
    return _settings


# ============================================================
# 📊 Diagnostics
# ============================================================

if __name__ == "__main__":
    s = get_settings()
    print("=========== COVERWISE CONFIG ===========")
    print(f"APP_NAME              : {APP_NAME}")
    print(f"VERSION               : {APP_VERSION}")
    print(f"BASE_DIR              : {BASE_DIR}")
    print(f"LOG_PATH              : {LOG_PATH}")
    print(f"ENVIRONMENT           : {s.environment}")
    print(f"AI_PROVIDER           : {s.ai_provider}")
    print(f"GEMINI_API_KEY_LEN    : {len(s.gemini_api_key)}")
    print(f"OPENAI_API_KEY_LEN    : {len(s.openai_api_key)}")
    print(f"PAYMENT_REQUIRED      : {s.payment_required}")
    print(f"PROMO_CODES           : {len(s.promo_codes)} configured")
    print(f"RATE_LIMIT            : {s.rate_limit_max} / {s.rate_limit_window_sec}s")
