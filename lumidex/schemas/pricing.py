"""
Price Pydantic schemas for API responses.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from lumidex.core.constants import CurrencyCode, PriceSource, PriceType, ResolutionTier, VariantKind


class PriceRecordResponse(BaseModel):
    """One price row from one source."""
    source: PriceSource
    variant: VariantKind
    bucket: str
    currency: CurrencyCode
    low: Optional[float] = None
    mid: Optional[float] = None
    high: Optional[float] = None
    market: Optional[float] = None
    direct_low: Optional[float] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class VariantPricesResponse(BaseModel):
    primary: Optional[PriceRecordResponse] = None
    alternate: Optional[PriceRecordResponse] = None

    model_config = ConfigDict(from_attributes=True)


class CheapestPriceResponse(BaseModel):
    """Cheapest usable price, converted to the requested currency when possible."""
    price: float
    currency: CurrencyCode
    source: PriceSource
    variant: VariantKind
    price_type: PriceType
    original_price: float
    original_currency: CurrencyCode
    is_approximate: bool = False
    fallback_tier: Optional[ResolutionTier] = None
    conversion_error: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ConversionResponse(BaseModel):
    original_amount: float
    converted_amount: float
    from_currency: CurrencyCode
    to_currency: CurrencyCode
    rate: float
    is_approximate: bool = False
    fallback_tier: Optional[ResolutionTier] = None
    error: Optional[str] = None
    is_converted: bool = True

    model_config = ConfigDict(from_attributes=True)


class NormalizedPriceResponse(BaseModel):
    """Normalized price view of a card."""
    card_id: str
    cheapest: Optional[CheapestPriceResponse] = None
    per_variant: dict[VariantKind, VariantPricesResponse] = Field(default_factory=dict)
    source_used: Optional[PriceSource] = None
    has_fallback: bool = False
    conversion: Optional[ConversionResponse] = None
    formatted_price: Optional[str] = Field(
        None,
        description='Display string for the cheapest price, "~" prefixed when approximate',
    )

    model_config = ConfigDict(from_attributes=True)
