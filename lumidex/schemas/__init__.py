"""
Pydantic schemas for API request/response validation.
"""
from lumidex.schemas.pricing import (
    CheapestPriceResponse,
    ConversionResponse,
    NormalizedPriceResponse,
    PriceRecordResponse,
    VariantPricesResponse,
)
from lumidex.schemas.variants import (
    CustomVariantResponse,
    DisplayVariantsResponse,
    SetVariantsResponse,
    VariantFlagResponse,
)

__all__ = [
    "CheapestPriceResponse",
    "ConversionResponse",
    "NormalizedPriceResponse",
    "PriceRecordResponse",
    "VariantPricesResponse",
    "CustomVariantResponse",
    "DisplayVariantsResponse",
    "SetVariantsResponse",
    "VariantFlagResponse",
]
