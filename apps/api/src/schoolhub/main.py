"""
SchoolHub API - Main Application Entry Point

This module initializes and configures the FastAPI application including:
- Database and Redis connections
- CORS middleware
- Exception handlers for the response envelope
- API routing
- Health check endpoints
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from schoolhub import __version__
from schoolhub.api import api_router
from schoolhub.core.config import settings
from schoolhub.core.database import close_db, init_db
from schoolhub.core.redis import close_redis, init_redis
from schoolhub.core.responses import register_exception_handlers

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """
    Application lifespan manager.

    Connects Redis and the database on startup and releases both on shutdown.
    Outside production a failed connection is logged and startup continues;
    the rate limiter then falls back to in-process counters.
    """
    logger.info("Starting SchoolHub API in %s mode...", settings.python_env)

    try:
        await init_redis()
        logger.info("Redis connected")
    except Exception:
        logger.exception("Redis connection failed")
        if settings.is_production:
            raise

    try:
        await init_db()
        logger.info("Database connected")
    except Exception:
        logger.exception("Database connection failed")
        if settings.is_production:
            raise

    yield

    logger.info("Shutting down SchoolHub API...")
    await close_redis()
    await close_db()
    logger.info("Cleanup complete")


app = FastAPI(
    title="SchoolHub API",
    description="Multi-tenant school management API",
    version=__version__,
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
    lifespan=lifespan,
)

register_exception_handlers(app)

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
        "message": "Welcome to SchoolHub API",
        "status": "running",
        "environment": settings.python_env,
    }


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint for container orchestration."""
    return {"status": "healthy"}


@app.get("/ready", tags=["Health"])
async def readiness_check() -> dict[str, str]:
    """Readiness check endpoint."""
    return {"status": "ready"}
