"""
Student Hub GPA service - FastAPI Application Entry Point.

Feature-based modular architecture:
  Each feature in studenthub/features/ has its own schemas, service, and router.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from studenthub.config import get_settings
from studenthub.background.scheduler import init_scheduler, shutdown_scheduler

# ── Feature Routers ──────────────────────────────────────
from studenthub.features.gpa.router import router as gpa_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: startup & shutdown."""
    settings = get_settings()
    logger.info(f"{settings.APP_NAME} v{settings.APP_VERSION} starting...")
    logger.info(f"Supabase: {settings.SUPABASE_URL[:40]}...")
    init_scheduler()
    yield
    shutdown_scheduler()
    logger.info("Shutting down...")


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render errors in the same {success, message} envelope as successful responses."""
    if isinstance(exc.detail, dict):
        body = {"success": False, "message": exc.detail.get("error"), **exc.detail}
    else:
        body = {"success": False, "message": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=body, headers=exc.headers)


def create_app() -> FastAPI:
    """Application factory."""
    settings = get_settings()
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Student Hub - semester GPA, CGPA projection and retake tracking",
        lifespan=lifespan,
    )

    # ── CORS ─────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    # ── Register Feature Routers ─────────────────────────
    app.include_router(gpa_router, prefix="/api/gpa", tags=["GPA"])

    # ── Health Check ─────────────────────────────────────
    @app.get("/health", tags=["System"])
    async def health_check():
        return {
            "status": "healthy",
            "app": settings.APP_NAME,
            "version": settings.APP_VERSION,
        }

    return app


app = create_app()
