# main.py — Partner API Gateway
# Features:
# - Request correlation IDs and per-request timing log
# - Security headers
# - Startup configuration validation (refuses to run without a usable signing key)
# - Request validation errors reported as 400 with a readable detail
# - Health check with DB verification
# - All routers registered

import os
import uuid
import time
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

import ai_analysis
import mailer
import notifier
from auth import check_secret_key
from database import init_db, close_db, get_db_session
from telemetry import setup_telemetry

# Logging
logging.basicConfig(
    level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO),
    format="%(asctime)s [%(name)s] %(levelname)s %(message)s",
)
logger = logging.getLogger("partner")

API_VERSION = "1.0.0"


def _check_startup_config():
    """Validate configuration on startup. A bad signing key is fatal; missing integrations are not."""
    problem = check_secret_key(os.getenv("JWT_SECRET_KEY"))
    if problem:
        raise RuntimeError(
            f"{problem}. Generate one with: python -c \"import secrets; print(secrets.token_urlsafe(48))\""
        )

    if mailer.is_enabled():
        logger.info("📧 E-mail notifications enabled (SendGrid)")
    else:
        logger.warning("⚠️  SENDGRID_API_KEY not set — e-mail notifications will be skipped")

    if ai_analysis.is_enabled():
        logger.info("🤖 AI analysis enabled (Anthropic)")
    else:
        logger.warning("⚠️  ANTHROPIC_API_KEY not set — AI analysis endpoint will return 503")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"🚀 Starting Partner API v{API_VERSION}...")
    _check_startup_config()
    await init_db()
    # Initialise OpenTelemetry (no-op if OTEL_EXPORTER_OTLP_ENDPOINT not set)
    setup_telemetry(app)
    yield
    logger.info("🛑 Shutting down Partner API...")
    await notifier.drain()
    await close_db()


app = FastAPI(
    title="Partner",
    description="Founder and board collaboration platform: submissions, reviews, partnerships and meetings",
    version=API_VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# ============================================================
# CORS
# ============================================================

ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "CORS_ORIGINS",
        "http://localhost:3000,http://localhost:5173,http://localhost:8080"
    ).split(",")
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Request-ID", "X-Correlation-ID"],
    expose_headers=["X-Request-ID", "X-Correlation-ID"],
)


# ============================================================
# MIDDLEWARE: Correlation IDs + Timing
# ============================================================

@app.middleware("http")
async def correlation_id_middleware(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
    correlation_id = request.headers.get("X-Correlation-ID", request_id)
    request.state.request_id = request_id
    request.state.correlation_id = correlation_id

    start = time.perf_counter()
    response = await call_next(request)
    duration = time.perf_counter() - start

    response.headers["X-Request-ID"] = request_id
    response.headers["X-Correlation-ID"] = correlation_id
    response.headers["X-Response-Time"] = f"{duration:.4f}s"

    logger.info(
        f"{request.method} {request.url.path} → {response.status_code} "
        f"({duration:.3f}s) [rid={request_id[:8]}]"
    )
    return response


# ============================================================
# MIDDLEWARE: Security Headers
# ============================================================

@app.middleware("http")
async def security_headers_middleware(request: Request, call_next):
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    response.headers["Permissions-Policy"] = "camera=(), microphone=(), geolocation=()"
    return response


# ============================================================
# EXCEPTION HANDLERS
# ============================================================

def _describe_validation_error(err: dict) -> str:
    loc = [str(part) for part in err.get("loc", []) if part not in ("body", "query", "path")]
    msg = str(err.get("msg", "Invalid value"))
    # pydantic prefixes messages raised from our validators
    msg = msg.removeprefix("Value error, ")
    return f"{'.'.join(loc)}: {msg}" if loc else msg


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # Sanitise errors to ensure JSON serialisability
    errors = []
    for err in exc.errors():
        errors.append({
            "type": str(err.get("type", "unknown")),
            "loc": [str(part) for part in err.get("loc", [])],
            "msg": str(err.get("msg", "")),
        })

    return JSONResponse(
        status_code=400,
        content={
            "detail": "; ".join(_describe_validation_error(e) for e in exc.errors()) or "Invalid request",
            "errors": errors,
            "request_id": getattr(request.state, "request_id", None),
        },
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "request_id": getattr(request.state, "request_id", None),
        },
    )


# ============================================================
# ROUTERS
# ============================================================

from routers import (  # noqa: E402
    auth, profile, submissions, collaboration, partnerships, meetings,
    workspace, analytics, board, admin, messages,
)

app.include_router(auth.router)
app.include_router(profile.router)
app.include_router(submissions.router)
app.include_router(collaboration.router)
app.include_router(partnerships.router)
app.include_router(meetings.router)
app.include_router(workspace.router)
app.include_router(analytics.router)
app.include_router(board.router)
app.include_router(admin.router)
app.include_router(messages.router)


# ============================================================
# HEALTH & ROOT
# ============================================================

@app.get("/health")
async def health_check():
    """Health check with database connectivity verification"""
    db_status = "unknown"
    try:
        async for db in get_db_session():
            from sqlalchemy import text
            await db.execute(text("SELECT 1"))
            db_status = "connected"
            break
    except Exception as e:
        db_status = f"error: {str(e)[:100]}"

    return {
        "status": "healthy" if db_status == "connected" else "degraded",
        "version": API_VERSION,
        "environment": os.getenv("ENVIRONMENT", "development"),
        "database": db_status,
        "services": {
            "api": "operational",
            "email": "enabled" if mailer.is_enabled() else "disabled",
            "ai_analysis": "enabled" if ai_analysis.is_enabled() else "disabled",
        },
    }


@app.get("/")
async def root():
    return {
        "name": "Partner",
        "version": API_VERSION,
        "description": "Founder and board collaboration platform",
        "docs": "/docs",
        "health": "/health",
        "status": "operational",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", 8000)),
        reload=os.getenv("ENVIRONMENT") != "production",
        workers=int(os.getenv("WORKERS", 1)),
    )
