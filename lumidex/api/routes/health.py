"""
Health check endpoints.
"""
from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from lumidex import __version__
from lumidex.db.session import get_db

router = APIRouter()
logger = structlog.get_logger()


@router.get("/health")
async def health_check(request: Request, db: AsyncSession = Depends(get_db)):
    """
    Health check endpoint.

    Returns service status, database connectivity and rate cache size.
    """
    db_ok = False
    try:
        await db.execute(text("SELECT 1"))
        db_ok = True
    except SQLAlchemyError as e:
        logger.warning("Health check: database connection failed", error=str(e))

    rate_cache = getattr(request.app.state, "rate_cache", None)

    return {
        "status": "healthy" if db_ok else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "services": {
            "api": "ok",
            "database": "ok" if db_ok else "error",
        },
        "rate_cache": rate_cache.stats() if rate_cache is not None else None,
    }


@router.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "Lumidex Variant & Price API",
        "version": __version__,
        "docs": "/docs",
    }
