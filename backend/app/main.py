"""FastAPI application for the OMOP research export."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api import export_router
from app.core.config import settings
from app.core.database import close_db, init_db
from app.core.redis import close_redis, ping_redis

logger = logging.getLogger(__name__)

SERVICE_NAME = "omop-research-export"
VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles startup and shutdown events:
    - Startup: Create tables in debug mode
    - Shutdown: Close database and Redis connections
    """
    if settings.debug:
        await init_db()
    logger.info(f"{settings.app_name} ready")

    yield

    close_redis()
    await close_db()


app = FastAPI(
    title=settings.app_name,
    description="Incremental export of consented patient data to OMOP CDM v5.4 research files.",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(export_router)


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, Any]:
    """Health check endpoint (liveness probe).

    Use /ready for readiness checks.
    """
    return {
        "status": "healthy",
        "service": SERVICE_NAME,
        "version": VERSION,
        "timestamp": datetime.now(UTC).isoformat(),
    }


@app.get("/ready", tags=["Health"])
async def readiness_check() -> dict[str, Any]:
    """Readiness check endpoint.

    Reports whether the export queue's Redis is reachable.
    """
    redis_ok = ping_redis()
    return {
        "status": "ready" if redis_ok else "degraded",
        "service": SERVICE_NAME,
        "version": VERSION,
        "timestamp": datetime.now(UTC).isoformat(),
        "redis": redis_ok,
    }


@app.get("/", tags=["Health"])
async def root() -> dict[str, str]:
    """Root endpoint with API info."""
    return {
        "service": "OMOP Research Export API",
        "version": VERSION,
        "docs": "/docs",
        "health": "/health",
        "ready": "/ready",
    }
