"""
EK-SMS Attendance API - Main Application Entry Point

This module initializes and configures the FastAPI application including:
- Database and Redis connections
- Background job scheduler
- CORS middleware
- API routing
- Health check endpoints
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from app import models  # noqa: F401  (registers every table on Base.metadata)
from app.api import api_router
from app.core.config import settings
from app.core.database import async_session_maker, close_db, init_db
from app.core.redis import close_redis, init_redis, ping_redis
from app.core.scheduler import (
    list_registered_jobs,
    start_scheduler,
    stop_scheduler,
    trigger_job_manually,
)
from app.modules.access_logs.jobs import register_access_log_jobs
from app.modules.access_logs.service import drain_pending_writes

logging.basicConfig(
    level=logging.DEBUG if settings.is_development else logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events including:
    - Redis connection
    - Database connection
    - Background job scheduler
    """
    logger.info(f"Starting EK-SMS Attendance API in {settings.python_env} mode...")

    # Redis backs rate limiting; without it limits are per-process
    try:
        await init_redis()
        logger.info("[OK] Redis connected")
    except Exception as e:
        logger.error(f"[FAIL] Redis connection failed: {e}")
        await close_redis()
        if settings.is_production:
            raise

    try:
        await init_db()
        logger.info("[OK] Database connected")
    except Exception as e:
        logger.error(f"[FAIL] Database connection failed: {e}")
        if settings.is_production:
            raise

    try:
        register_access_log_jobs()
        await start_scheduler()
        logger.info("[OK] Background scheduler started")
    except Exception as e:
        logger.error(f"[FAIL] Background scheduler failed to start: {e}")
        if settings.is_production:
            raise

    yield  # Application runs here

    logger.info("Shutting down EK-SMS Attendance API...")

    # Stop the scheduler first (wait for running jobs)
    await stop_scheduler()
    await drain_pending_writes()

    await close_redis()
    await close_db()
    logger.info("[OK] Cleanup complete")


app = FastAPI(
    title="EK-SMS Attendance API",
    description="Teacher attendance recording with multi-teacher consensus",
    version="0.1.0",
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    lifespan=lifespan,
)

app.include_router(api_router, prefix="/api/v1")

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """Root endpoint - API welcome message."""
    return {
        "message": "Welcome to EK-SMS Attendance API",
        "status": "running",
        "environment": settings.python_env,
    }


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint for container orchestration."""
    return {"status": "healthy"}


@app.get("/ready", tags=["Health"])
async def readiness_check() -> dict[str, str]:
    """Readiness check: database reachable."""
    try:
        async with async_session_maker() as session:
            await session.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning(f"Readiness check failed: {e}")
        raise HTTPException(status_code=503, detail={"status": "not_ready"}) from e
    return {"status": "ready"}


@app.get("/debug/redis", tags=["Debug"], include_in_schema=settings.is_development)
async def debug_redis():
    """Test Redis connection."""
    if not settings.is_development:
        raise HTTPException(status_code=404, detail="Not Found")

    return {"redis": await ping_redis()}


# ============================================
# Background Job Debug Endpoints
# ============================================
# Manual triggering for testing. In production, jobs run on schedule.


@app.get("/debug/jobs", tags=["Debug"], include_in_schema=settings.is_development)
async def list_jobs():
    """List registered background jobs and their next run time."""
    if not settings.is_development:
        raise HTTPException(status_code=404, detail="Not Found")

    return {"jobs": list_registered_jobs()}


@app.post("/debug/jobs/{job_id}/trigger", tags=["Debug"], include_in_schema=settings.is_development)
async def trigger_job(job_id: str):
    """
    Run a background job now, bypassing its schedule.

    Available jobs:
        - access_logs_purge_expired
    """
    if not settings.is_development:
        raise HTTPException(status_code=404, detail="Not Found")

    try:
        return await trigger_job_manually(job_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
