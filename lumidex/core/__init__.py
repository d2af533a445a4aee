"""
Core module containing configuration and shared utilities.
"""
from lumidex.core.config import settings
from lumidex.core.constants import (
    Confidence,
    CurrencyCode,
    CustomVariantType,
    Era,
    PriceSource,
    PriceType,
    RarePolicy,
    ResolutionTier,
    VariantKind,
    VariantSource,
    STANDARD_VARIANT_KINDS,
    VARIANT_ORDER,
    normalize_currency,
    normalize_price_source,
    normalize_variant_bucket,
)

__all__ = [
    "settings",
    "Confidence",
    "CurrencyCode",
    "CustomVariantType",
    "Era",
    "PriceSource",
    "PriceType",
    "RarePolicy",
    "ResolutionTier",
    "VariantKind",
    "VariantSource",
    "STANDARD_VARIANT_KINDS",
    "VARIANT_ORDER",
    "normalize_currency",
    "normalize_price_source",
    "normalize_variant_bucket",
]
