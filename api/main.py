"""
api/main.py — FastAPI application entry point.

Run with:
    uvicorn api.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from app.db.session import engine
from app.exceptions import (
    AuthError,
    DuplicateUserError,
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
    ValidationFailedError,
)
from app.logging_config import setup_logging
from api.endpoints.admin_routes import router as admin_router
from api.endpoints.auth_routes import router as auth_router
from api.endpoints.lead_routes import router as lead_router
from api.endpoints.user_routes import router as user_router
from api.endpoints.review_routes import router as review_router

logger = logging.getLogger(__name__)


# ── Lifespan ─────────────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown logic."""
    setup_logging()
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    logger.info("Database connection verified.")
    yield
    logger.info("Application shutting down.")


# ── App ───────────────────────────────────────────────────────────────────────

app = FastAPI(
    title="Lead Desk",
    description=(
        "Lead management for sales departments plus heuristic content review "
        "with weighted per-category scoring criteria."
    ),
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Error translation ────────────────────────────────────────────────────────

def _error(status_code: int, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return _error(404, exc)


@app.exception_handler(PermissionDeniedError)
async def permission_denied_handler(request: Request, exc: PermissionDeniedError):
    return _error(403, exc)


@app.exception_handler(InvalidStateError)
async def invalid_state_handler(request: Request, exc: InvalidStateError):
    return _error(400, exc)


@app.exception_handler(ValidationFailedError)
async def validation_failed_handler(request: Request, exc: ValidationFailedError):
    return _error(400, exc)


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError):
    return _error(401, exc)


@app.exception_handler(DuplicateUserError)
async def duplicate_user_handler(request: Request, exc: DuplicateUserError):
    return _error(409, exc)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Server Error"})


# ── Routers ──────────────────────────────────────────────────────────────────

app.include_router(auth_router, prefix="/auth", tags=["Auth"])
app.include_router(lead_router, prefix="/leads", tags=["Leads"])
app.include_router(review_router, prefix="/reviews", tags=["Reviews"])
app.include_router(admin_router, prefix="/admin", tags=["Admin"])
app.include_router(user_router, prefix="/admin/department-users", tags=["Admin"])


# ── Health check ─────────────────────────────────────────────────────────────

@app.get("/health", tags=["System"])
def health_check():
    """Returns service liveness status."""
    return {"status": "ok", "service": "lead-desk"}


@app.get("/", tags=["System"])
def root():
    return {
        "message": "Lead Desk is running.",
        "docs": "/docs",
    }
