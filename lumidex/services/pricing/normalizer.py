"""
Price normalization across the two price sources.

Picks the cheapest usable price for a card from every source's rows,
converts it to the caller's currency and groups rows per variant for
display. A stored price of 0 is a feed placeholder and never counts.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Mapping, Optional, Sequence

import structlog

from lumidex.core.constants import (
    VARIANT_ORDER,
    CurrencyCode,
    PriceSource,
    PriceType,
    ResolutionTier,
    VariantKind,
)
from lumidex.services.pricing.currency import (
    ConversionResult,
    ConversionUnavailableError,
    ExchangeRateResolver,
    RateResolution,
)

logger = structlog.get_logger()


@dataclass(frozen=True)
class PriceRecord:
    """
    One price observation for a card variant from one source.

    `bucket` keeps the raw variant key from the feed, since several buckets
    can map to the same VariantKind (e.g. both 1st edition buckets).
    """

    card_id: str
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

    def value(self, price_type: PriceType) -> Optional[float]:
        """Price for a field, or None when missing or zero."""
        value = getattr(self, price_type.value)
        if value is None or value <= 0:
            return None
        return float(value)


@dataclass(frozen=True)
class CheapestPrice:
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


@dataclass(frozen=True)
class VariantPrices:
    """Rows for one variant: primary from the preferred source when it has data."""

    primary: Optional[PriceRecord]
    alternate: Optional[PriceRecord] = None


@dataclass(frozen=True)
class NormalizedPrice:
    """
    Normalized price view of a card.

    Attributes:
        cheapest: Cheapest usable price in the target currency, None without data
        per_variant: Rows per variant kind, in display order
        source_used: Source that supplied primary data
        has_fallback: True when the preferred source had no data
        conversion: Conversion applied to the cheapest price, if any
    """

    card_id: str
    cheapest: Optional[CheapestPrice]
    per_variant: Mapping[VariantKind, VariantPrices] = field(default_factory=dict)
    source_used: Optional[PriceSource] = None
    has_fallback: bool = False
    conversion: Optional[ConversionResult] = None


def _visit_order(
    records: Sequence[PriceRecord],
    preferred_source: PriceSource,
) -> list[PriceRecord]:
    # Preferred source first, then display order, then raw bucket name
    return sorted(
        records,
        key=lambda r: (r.source is not preferred_source, VARIANT_ORDER.index(r.variant), r.bucket),
    )


class PriceNormalizer:
    """Selects and converts the cheapest price for a card."""

    def __init__(self, resolver: ExchangeRateResolver):
        self.resolver = resolver

    async def _comparison_rates(
        self,
        records: Sequence[PriceRecord],
        target_currency: CurrencyCode,
    ) -> dict[CurrencyCode, Optional[RateResolution]]:
        rates: dict[CurrencyCode, Optional[RateResolution]] = {}
        for record in records:
            if record.currency in rates or record.currency is target_currency:
                continue
            try:
                rates[record.currency] = await self.resolver.resolve(
                    record.currency, target_currency, allow_approximate=True
                )
            except ConversionUnavailableError:
                # Compared by raw value
                rates[record.currency] = None
        return rates

    async def normalize(
        self,
        card_id: str,
        records: Sequence[PriceRecord],
        target_currency: CurrencyCode,
        preferred_source: PriceSource,
    ) -> NormalizedPrice:
        """
        Normalize a card's price rows.

        Args:
            card_id: Card the rows belong to
            records: Rows from every source
            target_currency: Currency to display the cheapest price in
            preferred_source: Source whose rows populate the primary fields

        Returns:
            NormalizedPrice; `cheapest` is None when no row has a usable price
        """
        if not records:
            return NormalizedPrice(card_id=card_id, cheapest=None)

        ordered = _visit_order(records, preferred_source)
        rates = await self._comparison_rates(ordered, target_currency)

        winner: Optional[tuple[PriceRecord, PriceType, float]] = None
        best: Optional[float] = None
        for record in ordered:
            resolution = rates.get(record.currency)
            for price_type in PriceType:
                value = record.value(price_type)
                if value is None:
                    continue
                comparable = value * resolution.rate if resolution is not None else value
                # Strictly smaller only; the first row visited wins ties
                if best is None or comparable < best:
                    best = comparable
                    winner = (record, price_type, value)

        cheapest = None
        conversion = None
        if winner is not None:
            record, price_type, value = winner
            if record.currency is not target_currency:
                resolution = rates.get(record.currency)
                if resolution is not None:
                    # Tier from the comparison lookup; cache hits carry none
                    conversion = ConversionResult(
                        original_amount=value,
                        converted_amount=round(value * resolution.rate, 2),
                        from_currency=record.currency,
                        to_currency=target_currency,
                        rate=resolution.rate,
                        is_approximate=resolution.is_approximate,
                        fallback_tier=resolution.fallback_tier,
                    )
                else:
                    conversion = await self.resolver.convert(
                        value, record.currency, target_currency, allow_approximate=True
                    )
                cheapest = CheapestPrice(
                    price=conversion.converted_amount,
                    currency=conversion.to_currency,
                    source=record.source,
                    variant=record.variant,
                    price_type=price_type,
                    original_price=value,
                    original_currency=record.currency,
                    is_approximate=conversion.is_approximate,
                    fallback_tier=conversion.fallback_tier,
                    conversion_error=conversion.error,
                )
            else:
                cheapest = CheapestPrice(
                    price=round(value, 2),
                    currency=record.currency,
                    source=record.source,
                    variant=record.variant,
                    price_type=price_type,
                    original_price=value,
                    original_currency=record.currency,
                )
        else:
            logger.debug("No usable price in rows", card_id=card_id, rows=len(records))

        per_variant = self._group_by_variant(ordered, preferred_source)
        sources = {record.source for record in ordered}
        if preferred_source in sources:
            source_used: Optional[PriceSource] = preferred_source
        else:
            source_used = ordered[0].source

        return NormalizedPrice(
            card_id=card_id,
            cheapest=cheapest,
            per_variant=per_variant,
            source_used=source_used,
            has_fallback=source_used is not preferred_source,
            conversion=conversion,
        )

    @staticmethod
    def _group_by_variant(
        ordered: Sequence[PriceRecord],
        preferred_source: PriceSource,
    ) -> dict[VariantKind, VariantPrices]:
        primary: dict[VariantKind, PriceRecord] = {}
        alternate: dict[VariantKind, PriceRecord] = {}
        for record in ordered:
            if record.source is preferred_source:
                primary.setdefault(record.variant, record)
            else:
                alternate.setdefault(record.variant, record)

        grouped = {}
        for kind in VARIANT_ORDER:
            if kind in primary:
                grouped[kind] = VariantPrices(primary=primary[kind], alternate=alternate.get(kind))
            elif kind in alternate:
                grouped[kind] = VariantPrices(primary=alternate[kind])
        return grouped
