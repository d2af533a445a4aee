"""
API dependencies: engine access and request validation.

Currency and price-source parameters are validated here so unsupported
codes are rejected with 422 before the engine is reached.
"""
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, Query, Request, status

from lumidex.core.config import settings
from lumidex.core.constants import (
    CurrencyCode,
    PriceSource,
    normalize_currency,
    normalize_price_source,
)
from lumidex.services.engine import VariantPricingEngine


def get_engine(request: Request) -> VariantPricingEngine:
    """Engine created at startup and stored on app.state."""
    return request.app.state.engine


def get_target_currency(
    currency: Annotated[Optional[str], Query(description="EUR, USD, GBP or NOK")] = None,
) -> CurrencyCode:
    """Validate the requested display currency, defaulting from settings."""
    value = currency if currency is not None else settings.default_currency
    code = normalize_currency(value)
    if code is None:
        supported = ", ".join(c.value for c in CurrencyCode)
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Unsupported currency '{value}'. Supported: {supported}",
        )
    return code


def get_price_source(
    source: Annotated[Optional[str], Query(description="tcgplayer or cardmarket")] = None,
) -> PriceSource:
    """Validate the preferred price source, defaulting from settings."""
    value = source if source is not None else settings.default_price_source
    price_source = normalize_price_source(value)
    if price_source is None:
        supported = ", ".join(s.value for s in PriceSource)
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Unsupported price source '{value}'. Supported: {supported}",
        )
    return price_source


EngineDep = Annotated[VariantPricingEngine, Depends(get_engine)]
CurrencyDep = Annotated[CurrencyCode, Depends(get_target_currency)]
PriceSourceDep = Annotated[PriceSource, Depends(get_price_source)]
