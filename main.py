"""
============================================================
 COVERWISE v1.0.0 — main.py (Web Server)
 Resume parsing, job-description analysis and AI cover letters.
 ------------------------------------------------------------
 Runs the FastAPI backend.

 Features:
   • Routers: /upload, /analyze-jd, /generate
   • Uniform {error, message[, details]} error bodies
   • Per-IP rate limiting via slowapi (skips /health)
   • Request tracing middleware (skips /health)
   • .env loading via core/config.py
============================================================
"""

from __future__ import annotations

import os
import time
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from coverwise.api import generate, jobs, resume
from coverwise.core import config
from coverwise.core.composer import close_openai_client
from coverwise.core.config import Settings, get_settings
from coverwise.core.errors import RateLimited, ServiceError
from coverwise.core.models import HealthResponse
from coverwise.core.utils import log_event, utc_now_iso

APP_VERSION = config.APP_VERSION

ROUTERS = {
    "resume": resume,
    "jobs": jobs,
    "generate": generate,
}

_UNTRACED = {"/health", "/health/", "/favicon.ico"}


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


# ============================================================
# 🚦 Rate limiting
# ============================================================

def rate_limit_string(settings: Settings) -> str:
    return f"{settings.rate_limit_max}/{settings.rate_limit_window_sec} seconds"


def make_limiter(settings: Settings) -> Limiter:
    """One in-memory fixed-window budget per client address, shared by every route."""
    return Limiter(
        key_func=get_remote_address,
        application_limits=[rate_limit_string(settings)],
        enabled=settings.rate_limit_enabled,
        headers_enabled=True,
        storage_uri="memory://",
    )


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> Response:
    log_event("rate_limited", {"ip": get_remote_address(request), "path": request.url.path, "limit": str(exc.detail)}, level="warn")
    response = JSONResponse(RateLimited().to_dict(), status_code=RateLimited.status_code)
    # adds X-RateLimit-* and Retry-After for the limit that was hit
    return request.app.state.limiter._inject_headers(response, getattr(request.state, "view_rate_limit", None))


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await close_openai_client()
    log_event("backend_stop", {})


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()

    app = FastAPI(
        title="COVERWISE API",
        description="Resume parsing, job-description analysis and AI cover-letter generation",
        version=APP_VERSION,
        lifespan=lifespan,
    )
    limiter = make_limiter(settings)
    app.state.settings = settings
    app.state.limiter = limiter
    app.dependency_overrides[get_settings] = lambda: settings

    # =================== Rate limit + CORS ==============================
    # CORS sits outside the limiter so preflights are answered first
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)
    wildcard = "*" in settings.cors_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=not wildcard,
        allow_methods=["*"], allow_headers=["*"],
    )

    # ========================= Error bodies =============================
    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):
        level = "error" if exc.status_code >= 500 else "warn"
        log_event("request_failed", {
            "path": request.url.path,
            "status": exc.status_code,
            "error": exc.error,
            "details": exc.details,
        }, level=level)
        return JSONResponse(
            exc.to_dict(include_details=settings.expose_error_details),
            status_code=exc.status_code,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = [
            {"field": ".".join(str(p) for p in err.get("loc", ())), "message": err.get("msg", "")}
            for err in exc.errors()
        ]
        log_event("request_invalid", {"path": request.url.path, "errors": errors}, level="warn")
        return JSONResponse(
            jsonable_encoder({"error": "Invalid request", "message": "The request could not be validated", "errors": errors}),
            status_code=400,
        )

    # ================ Middleware — Request/Response log ==================
    @app.middleware("http")
    async def trace_requests(request: Request, call_next):
        start = time.time()
        path = request.url.path
        method = request.method
        log_this = method != "OPTIONS" and path not in _UNTRACED

        if log_this:
            log_event("http_request", {
                "method": method,
                "path": path,
                "ip": _client_ip(request),
                "user_agent": request.headers.get("user-agent", ""),
            })
        try:
            response: Response = await call_next(request)
        except Exception as e:
            log_event("unhandled_error", {"path": path, "error": f"{type(e).__name__}: {e}"}, level="error")
            body: Dict[str, Any] = {"error": "Internal server error", "message": "Something went wrong"}
            if settings.expose_error_details:
                body["details"] = str(e)
            return JSONResponse(body, status_code=500)

        if log_this:
            ms = (time.time() - start) * 1000
            log_event("http_response", {
                "method": method, "path": path, "status": response.status_code, "ms": round(ms, 1)
            })
        return response

    # ============================= Health ===============================
    @app.get("/health", response_model=HealthResponse)
    @limiter.exempt
    def health():
        return HealthResponse(status="healthy", timestamp=utc_now_iso(), version=APP_VERSION)

    # =========================== Register Routers =======================
    for name, mod in ROUTERS.items():
        app.include_router(mod.router)
        log_event("router_registered", {"module": name, "routes": len(mod.router.routes)}, level="debug")

    return app


app = create_app()


# ============================ Web Server ================================
def start_backend():
    import uvicorn

    settings = get_settings()
    host = os.getenv("COVERWISE_HOST", "127.0.0.1")
    log_event("backend_start", {"host": host, "port": settings.port, "env": settings.environment})
    log_event("api_endpoints", {"routes": [
        "POST /upload - resume upload and parsing",
        "POST /analyze-jd - job description analysis",
        "POST /generate - cover letter generation",
        "GET /health - liveness",
    ]})
    uvicorn.run(
        app, host=host, port=settings.port,
        log_level="error", timeout_keep_alive=25,
        reload=False, access_log=False,
    )


if __name__ == "__main__":
    print(f"🚀 Launching COVERWISE v{APP_VERSION}")
    start_backend()
