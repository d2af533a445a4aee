"""
Main FastAPI application entry point.
"""
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from lumidex import __version__
from lumidex.api import api_router
from lumidex.core.cache import RateCache
from lumidex.core.config import settings
from lumidex.core.exceptions import CardNotFoundError, DataStoreError
from lumidex.core.logging import setup_logging
from lumidex.db.session import async_session_maker, init_db
from lumidex.services.engine import VariantPricingEngine

# Setup logging
setup_logging()
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Creates the schema, the shared rate cache and the engine on startup.
    """
    logger.info(
        "Starting Lumidex API",
        version=__version__,
        debug=settings.api_debug,
    )

    await init_db()

    app.state.rate_cache = RateCache(
        max_size=settings.rate_cache_max_size,
        default_ttl=settings.rate_cache_ttl_seconds,
    )
    app.state.engine = VariantPricingEngine(async_session_maker, app.state.rate_cache, settings)

    yield

    logger.info("Shutting down Lumidex API", cached_rates=len(app.state.rate_cache))


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    description="Lumidex - Pokémon TCG variant determination and price normalization",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(CardNotFoundError)
async def card_not_found_handler(request: Request, exc: CardNotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(DataStoreError)
async def data_store_error_handler(request: Request, exc: DataStoreError):
    """Store failures are reported as temporary so callers can retry."""
    logger.error(
        "Data store unavailable",
        path=request.url.path,
        method=request.method,
        error=str(exc),
    )
    return JSONResponse(
        status_code=503,
        content={
            "detail": "Service temporarily unavailable. Please try again in a moment.",
            "error_type": "data_store_unavailable",
        },
    )


# Include API routes with /api/v1 prefix
app.include_router(api_router, prefix="/api/v1")


# Middleware for request logging
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all requests."""
    logger.debug(
        "Request",
        method=request.method,
        path=request.url.path,
    )
    response = await call_next(request)
    logger.debug(
        "Response",
        method=request.method,
        path=request.url.path,
        status=response.status_code,
    )
    return response


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "lumidex.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_debug,
    )
