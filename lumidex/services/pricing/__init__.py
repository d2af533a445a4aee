"""Pricing services: exchange-rate resolution and price normalization."""
from .currency import (
    APPROXIMATE_RATES,
    ConversionResult,
    ExchangeRateResolver,
    RateResolution,
    format_converted_price,
)
from .normalizer import CheapestPrice, NormalizedPrice, PriceNormalizer, PriceRecord, VariantPrices

__all__ = [
    "APPROXIMATE_RATES",
    "ConversionResult",
    "ExchangeRateResolver",
    "RateResolution",
    "format_converted_price",
    "CheapestPrice",
    "NormalizedPrice",
    "PriceNormalizer",
    "PriceRecord",
    "VariantPrices",
]
