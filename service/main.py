"""
SiteAudit FastAPI Service

REST API around the audit scoring and report engine.

Endpoints:
    GET  /health           - Liveness probe (process alive)
    GET  /version          - Version info
    GET  /config/defaults  - Default scoring configuration
    POST /score            - Compliance snapshot + display alerts
    POST /report           - Audit report (.docx)
    POST /report/outline   - Report structure as JSON
    POST /publish          - Forward metrics to the configured webhook
"""

import json
import logging
import os
import sys
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from siteaudit import __version__ as ENGINE_VERSION
from siteaudit.exceptions import (
    InputInvalidError,
    PublishError,
    ReportGenerationError,
    SchemaInvalidError,
    SiteAuditError,
)
from siteaudit.loader import load_scoring_config
from siteaudit.model import DEFAULT_SCORING_CONFIG

from service.routers import publish, report, scoring

# =============================================================================
# Configuration
# =============================================================================

SA_LOG_LEVEL = os.getenv("SA_LOG_LEVEL", "INFO")
SA_DOCS_ENABLED = os.getenv("SA_DOCS_ENABLED", "true").lower() == "true"
SA_MAX_REQUEST_SIZE = int(os.getenv("SA_MAX_REQUEST_SIZE", "26214400"))  # 25MB: photos are inline
SA_IMAGE_WORKERS = int(os.getenv("SA_IMAGE_WORKERS", "4"))
SA_PUBLISH_WEBHOOK_URL = os.getenv("SA_PUBLISH_WEBHOOK_URL", "")
SA_PUBLISH_TIMEOUT = float(os.getenv("SA_PUBLISH_TIMEOUT", "10"))
SA_SCORING_CONFIG = os.getenv(
    "SA_SCORING_CONFIG",
    str(Path(__file__).parent.parent / "config" / "scoring.yaml"),
)

# =============================================================================
# Logging Setup (Structured JSON)
# =============================================================================

class JSONFormatter(logging.Formatter):
    """JSON log formatter for structured logging."""

    _EXTRA_FIELDS = ("request_id", "site_name", "image_count", "duration_ms", "error_code")

    def format(self, record):
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in self._EXTRA_FIELDS:
            if hasattr(record, name):
                log_entry[name] = getattr(record, name)
        return json.dumps(log_entry)

# Configure logging
logger = logging.getLogger("siteaudit")
logger.setLevel(getattr(logging, SA_LOG_LEVEL.upper()))
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter())
    logger.addHandler(handler)

# =============================================================================
# Scoring Defaults
# =============================================================================

def load_default_config():
    """Load the default scoring config, falling back to built-in defaults."""
    path = Path(SA_SCORING_CONFIG)
    if not path.exists():
        logger.warning(f"Scoring config not found at {path}, using built-in defaults")
        return DEFAULT_SCORING_CONFIG
    return load_scoring_config(path)

DEFAULT_CONFIG = load_default_config()

# =============================================================================
# FastAPI App
# =============================================================================

app = FastAPI(
    title="SiteAudit",
    description="Maintenance audit scoring and report engine",
    version=ENGINE_VERSION,
    docs_url="/docs" if SA_DOCS_ENABLED else None,
    redoc_url="/redoc" if SA_DOCS_ENABLED else None,
    openapi_url="/openapi.json" if SA_DOCS_ENABLED else None,
)

# CORS (restrict in production)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Restrict in production
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition", "X-Request-ID", "X-Image-Count"],
)

# Include routers
app.include_router(scoring.router)
app.include_router(report.router)
app.include_router(publish.router)

scoring.configure(DEFAULT_CONFIG)
report.configure(DEFAULT_CONFIG, SA_IMAGE_WORKERS)
publish.configure(DEFAULT_CONFIG, SA_PUBLISH_WEBHOOK_URL, SA_PUBLISH_TIMEOUT)

# =============================================================================
# Response Models
# =============================================================================

class HealthResponse(BaseModel):
    """Liveness probe response."""
    status: str
    timestamp: str
    engine_version: str

class VersionResponse(BaseModel):
    """Version info response."""
    engine_version: str
    image_workers: int
    publish_configured: bool

class ConfigResponse(BaseModel):
    """Default scoring configuration."""
    sis_threshold: float
    compliance_threshold: float
    categories: list[str]
    debug_mode: bool

# =============================================================================
# Middleware
# =============================================================================

@app.middleware("http")
async def limit_request_size(request: Request, call_next):
    """Limit request body size."""
    if request.method == "POST":
        content_length = request.headers.get("content-length")
        if content_length and int(content_length) > SA_MAX_REQUEST_SIZE:
            return JSONResponse(
                status_code=413,
                content={
                    "error": "Request too large",
                    "code": "REQUEST_TOO_LARGE",
                    "details": {"max_size": SA_MAX_REQUEST_SIZE},
                    "request_id": getattr(request.state, "request_id", "unknown"),
                }
            )
    return await call_next(request)

@app.middleware("http")
async def add_request_id(request: Request, call_next):
    """Add request ID to all requests."""
    request_id = str(uuid.uuid4())[:8]
    request.state.request_id = request_id
    request.state.start_time = time.time()

    response = await call_next(request)

    response.headers["X-Request-ID"] = request_id
    logger.debug(
        f"{request.method} {request.url.path} -> {response.status_code}",
        extra={
            "request_id": request_id,
            "duration_ms": int((time.time() - request.state.start_time) * 1000),
        },
    )
    return response

# =============================================================================
# Error Handling
# =============================================================================

_STATUS_BY_ERROR = {
    SchemaInvalidError: 400,
    InputInvalidError: 400,
    ReportGenerationError: 500,
    PublishError: 502,
}

@app.exception_handler(SiteAuditError)
async def site_audit_error_handler(request: Request, exc: SiteAuditError):
    """Map engine errors to structured JSON responses."""
    request_id = getattr(request.state, "request_id", "unknown")
    status_code = _STATUS_BY_ERROR.get(type(exc), 500)

    log = logger.warning if status_code < 500 else logger.error
    log(
        f"{request.url.path} failed: {exc}",
        extra={"request_id": request_id, "error_code": exc.code},
    )
    return JSONResponse(
        status_code=status_code,
        content={
            "error": exc.message,
            "code": exc.code,
            "details": exc.details,
            "request_id": request_id,
        },
    )

# =============================================================================
# Info Endpoints
# =============================================================================

@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Liveness probe - checks if process is alive."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc).isoformat(),
        engine_version=ENGINE_VERSION,
    )

@app.get("/version", response_model=VersionResponse, tags=["Info"])
async def version_info():
    return VersionResponse(
        engine_version=ENGINE_VERSION,
        image_workers=SA_IMAGE_WORKERS,
        publish_configured=bool(SA_PUBLISH_WEBHOOK_URL),
    )

@app.get("/config/defaults", response_model=ConfigResponse, tags=["Info"])
async def config_defaults():
    """Scoring defaults applied to sessions posted without a config."""
    return ConfigResponse(
        sis_threshold=DEFAULT_CONFIG.sis_threshold,
        compliance_threshold=DEFAULT_CONFIG.compliance_threshold,
        categories=list(DEFAULT_CONFIG.categories),
        debug_mode=DEFAULT_CONFIG.debug_mode,
    )


@app.on_event("startup")
async def startup_event():
    """Log startup info."""
    logger.info("SiteAudit starting", extra={"request_id": "startup"})
    logger.info(f"Engine: v{ENGINE_VERSION}")
    logger.info(f"Scoring config: {SA_SCORING_CONFIG} ({len(DEFAULT_CONFIG.categories)} categories)")
    logger.info(f"Image workers: {SA_IMAGE_WORKERS}")
    logger.info(f"Publish webhook configured: {bool(SA_PUBLISH_WEBHOOK_URL)}")
    logger.info(f"Docs enabled: {SA_DOCS_ENABLED}")

@app.on_event("shutdown")
async def shutdown_event():
    """Log shutdown."""
    logger.info("SiteAudit shutting down")
