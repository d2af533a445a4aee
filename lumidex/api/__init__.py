"""
API module for FastAPI routes.
"""
from fastapi import APIRouter

from lumidex.api.routes import health, prices, variants

api_router = APIRouter()

# Include all route modules
api_router.include_router(health.router, tags=["Health"])
api_router.include_router(variants.router, tags=["Variants"])
api_router.include_router(prices.router, tags=["Prices"])
