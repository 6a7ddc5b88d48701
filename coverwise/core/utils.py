"""
COVERWISE • core/utils.py
Common helpers shared across backend modules: JSONL event log,
timestamps, filename sanitizing, timing.
"""

from __future__ import annotations

import json
import re
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from coverwise.core import config as _cfg

LOG_PATH: Path = Path(_cfg.LOG_PATH)
ERROR_LOG_PATH: Path = Path(_cfg.ERROR_LOG_PATH)

_LEVELS = {"debug", "info", "warn", "error"}


# ============================================================
# 🗂️ Filesystem Helpers
# ============================================================
def ensure_dir(p: Path | str) -> None:
    """Create directory (and parents) if it does not exist."""
    Path(p).mkdir(parents=True, exist_ok=True)


# ============================================================
# 🏷️ Naming Helpers
# ============================================================
def safe_filename(name: Optional[str]) -> str:
    """Convert a string into a safe, cross-platform filename."""
    if not name:
        return "file"
    name = re.sub(r"[^A-Za-z0-9_.-]", "_", name)
    name = name.strip("._") or "file"
    return name[:64]


# ============================================================
# 🧠 LOGGING & DIAGNOSTIC HELPERS
# ============================================================
def utc_now_iso() -> str:
    """Current UTC timestamp, ISO-8601 with millisecond precision and a Z suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _console_enabled() -> bool:
    return not _cfg.get_settings().is_production


def _append(path: Path, record: Dict[str, Any]) -> None:
    try:
        ensure_dir(path.parent)
        with open(path, "a", encoding="utf-8") as f:
            f.write(json.dumps(record, ensure_ascii=False, default=str) + "\n")
    except OSError as e:
        print(f"[COVERWISE] ⚠️ Failed to write event log {path}: {e}")


def log_event(event: str, meta: Optional[Dict[str, Any]] = None, level: str = "info") -> None:
    """
    Append a JSON line to the event log and echo it to the console.

      • event: short event string (e.g. "resume_parsed")
      • meta : optional JSON-serializable payload (other values coerced to str)
      • level: debug | info | warn | error; errors are also written to the
               error log

    The console echo is suppressed in production.
    """
    level = level if level in _LEVELS else "info"
    record = {
        "timestamp": utc_now_iso(),
        "level": level,
        "event": str(event),
        "meta": meta or {},
    }

    if _console_enabled():
        try:
            preview = json.dumps(record["meta"], ensure_ascii=False, default=str)
        except (TypeError, ValueError):
            preview = "(unserializable meta)"
        if len(preview) > 800:
            preview = preview[:800] + "…"
        print(f"[{record['timestamp']}] {level.upper():5} {record['event']} :: {preview}")

    _append(LOG_PATH, record)
    if level == "error":
        _append(ERROR_LOG_PATH, record)


def benchmark(name: str, meta: Optional[Dict[str, Any]] = None):
    """
    Context manager for timing code blocks.

    Example:
        with benchmark("compose_letter", {"provider": "gemini"}):
            await composer.compose(...)
    """

    class _Timer:
        def __enter__(self):
            self._start = time.perf_counter()
            return self

        def __exit__(self, exc_type, exc_val, exc_tb):
            duration_ms = (time.perf_counter() - self._start) * 1000.0
            payload = dict(meta or {})
            payload.update({"name": name, "duration_ms": round(duration_ms, 1)})
            if exc_type is not None:
                payload["error"] = exc_type.__name__
            log_event("benchmark", payload, level="debug")

    return _Timer()
