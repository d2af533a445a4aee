"""
Currency conversion with a tiered exchange-rate fallback chain.

Rates are resolved in order: identity, cache, direct stored rate, inverse
of the opposite stored rate, cross rate through an intermediate currency,
and finally a hand-maintained approximate table. Only the approximate
tier is optional; callers that must not show an estimated value pass
allow_approximate=False.
"""
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Sequence, Union

import structlog

from lumidex.core.cache import RateCache
from lumidex.core.constants import CurrencyCode, ResolutionTier
from lumidex.core.exceptions import ConversionUnavailableError, DataStoreError

if TYPE_CHECKING:
    from lumidex.repositories.interfaces import ExchangeRateReader

logger = structlog.get_logger()

CurrencyLike = Union[CurrencyCode, str]


# Approximate rates, used only when nothing better is available.
# 1 unit of the first currency = rate units of the second.
APPROXIMATE_RATES: dict[tuple[CurrencyCode, CurrencyCode], float] = {
    (CurrencyCode.EUR, CurrencyCode.USD): 1.08,
    (CurrencyCode.EUR, CurrencyCode.GBP): 0.86,
    (CurrencyCode.EUR, CurrencyCode.NOK): 11.80,
    (CurrencyCode.USD, CurrencyCode.EUR): 0.93,
    (CurrencyCode.USD, CurrencyCode.GBP): 0.79,
    (CurrencyCode.USD, CurrencyCode.NOK): 10.90,
    (CurrencyCode.GBP, CurrencyCode.EUR): 1.16,
    (CurrencyCode.GBP, CurrencyCode.USD): 1.27,
    (CurrencyCode.GBP, CurrencyCode.NOK): 13.70,
    (CurrencyCode.NOK, CurrencyCode.EUR): 0.085,
    (CurrencyCode.NOK, CurrencyCode.USD): 0.092,
    (CurrencyCode.NOK, CurrencyCode.GBP): 0.073,
}

FALLBACK_TIERS = frozenset({
    ResolutionTier.INVERSE,
    ResolutionTier.CROSS,
    ResolutionTier.APPROXIMATE,
})

CURRENCY_SYMBOLS: dict[CurrencyCode, str] = {
    CurrencyCode.EUR: "€",
    CurrencyCode.USD: "$",
    CurrencyCode.GBP: "£",
}


@dataclass(frozen=True)
class RateResolution:
    rate: float
    tier: ResolutionTier
    is_approximate: bool = False

    @property
    def fallback_tier(self) -> Optional[ResolutionTier]:
        return self.tier if self.tier in FALLBACK_TIERS else None


@dataclass(frozen=True)
class ConversionResult:
    """
    Outcome of converting one amount.

    When no rate was available the amount is returned unchanged with
    to_currency equal to from_currency and `error` set.
    """

    original_amount: float
    converted_amount: float
    from_currency: CurrencyCode
    to_currency: CurrencyCode
    rate: float
    is_approximate: bool = False
    fallback_tier: Optional[ResolutionTier] = None
    error: Optional[str] = None

    @property
    def is_converted(self) -> bool:
        return self.error is None


def _code(currency: CurrencyLike) -> CurrencyCode:
    return currency if isinstance(currency, CurrencyCode) else CurrencyCode(currency)


class ExchangeRateResolver:
    """
    Resolves exchange rates for currency pairs.

    Args:
        reader: Source of stored rates (latest row per pair)
        cache: Shared rate cache
        intermediates: Currencies tried, in order, for cross rates
        approximate_rates: Last-resort rate table
    """

    def __init__(
        self,
        reader: "ExchangeRateReader",
        cache: RateCache,
        intermediates: Sequence[CurrencyLike] = (CurrencyCode.USD, CurrencyCode.EUR),
        approximate_rates: Optional[dict[tuple[CurrencyCode, CurrencyCode], float]] = None,
    ):
        self.reader = reader
        self.cache = cache
        self.intermediates = tuple(_code(c) for c in intermediates)
        self.approximate_rates = APPROXIMATE_RATES if approximate_rates is None else approximate_rates

    async def resolve(
        self,
        from_currency: CurrencyLike,
        to_currency: CurrencyLike,
        allow_approximate: bool = True,
        use_cache: bool = True,
        max_cache_age: Optional[float] = None,
    ) -> RateResolution:
        """
        Resolve the rate for converting from_currency into to_currency.

        Raises:
            ConversionUnavailableError: If no tier produced a rate
            DataStoreError: If the store failed and approximation is not allowed
        """
        source = _code(from_currency)
        target = _code(to_currency)

        # Ahead of the cache lookup; identity pairs are never cached, so the result is the same
        if source is target:
            return RateResolution(1.0, ResolutionTier.IDENTITY)

        if use_cache:
            cached = self.cache.get(source.value, target.value, max_age=max_cache_age)
            if cached is not None:
                return RateResolution(cached, ResolutionTier.CACHE)

        try:
            resolution = await self._resolve_from_store(source, target)
        except DataStoreError as e:
            if not allow_approximate:
                raise
            logger.warning(
                "Exchange rate store unavailable, falling back to approximate rate",
                from_currency=source.value,
                to_currency=target.value,
                error=str(e),
            )
            resolution = None

        if resolution is not None:
            self.cache.set(source.value, target.value, resolution.rate)
            return resolution

        if allow_approximate:
            rate = self.approximate_rates.get((source, target))
            if rate:
                logger.info(
                    "Using approximate exchange rate",
                    from_currency=source.value,
                    to_currency=target.value,
                    rate=rate,
                )
                return RateResolution(rate, ResolutionTier.APPROXIMATE, is_approximate=True)

        raise ConversionUnavailableError(
            f"No exchange rate available for {source.value} -> {target.value}"
        )

    async def _lookup(self, from_currency: CurrencyCode, to_currency: CurrencyCode) -> Optional[float]:
        rate = await self.reader.get_latest_rate(from_currency.value, to_currency.value)
        if rate is None or rate <= 0:
            return None
        return float(rate)

    async def _resolve_from_store(
        self,
        source: CurrencyCode,
        target: CurrencyCode,
    ) -> Optional[RateResolution]:
        direct = await self._lookup(source, target)
        if direct is not None:
            return RateResolution(direct, ResolutionTier.DIRECT)

        inverse = await self._lookup(target, source)
        if inverse is not None:
            return RateResolution(1 / inverse, ResolutionTier.INVERSE)

        for intermediate in self.intermediates:
            if intermediate in (source, target):
                continue
            first = await self._lookup(source, intermediate)
            if first is None:
                continue
            second = await self._lookup(intermediate, target)
            if second is None:
                continue
            logger.debug(
                "Resolved cross rate",
                from_currency=source.value,
                to_currency=target.value,
                via=intermediate.value,
            )
            return RateResolution(first * second, ResolutionTier.CROSS)

        return None

    async def convert(
        self,
        amount: float,
        from_currency: CurrencyLike,
        to_currency: CurrencyLike,
        allow_approximate: bool = True,
        use_cache: bool = True,
        max_cache_age: Optional[float] = None,
    ) -> ConversionResult:
        """
        Convert an amount, rounding to 2 decimals.

        Never raises when no rate exists; the result then carries the
        original amount in the original currency and an error message.
        """
        source = _code(from_currency)
        target = _code(to_currency)

        try:
            resolution = await self.resolve(
                source,
                target,
                allow_approximate=allow_approximate,
                use_cache=use_cache,
                max_cache_age=max_cache_age,
            )
        except ConversionUnavailableError as e:
            logger.warning(
                "Currency conversion unavailable",
                amount=amount,
                from_currency=source.value,
                to_currency=target.value,
            )
            return ConversionResult(
                original_amount=amount,
                converted_amount=amount,
                from_currency=source,
                to_currency=source,
                rate=1.0,
                error=str(e),
            )

        return ConversionResult(
            original_amount=amount,
            converted_amount=round(amount * resolution.rate, 2),
            from_currency=source,
            to_currency=target,
            rate=resolution.rate,
            is_approximate=resolution.is_approximate,
            fallback_tier=resolution.fallback_tier,
        )

    async def convert_batch(
        self,
        amounts: Sequence[float],
        from_currency: CurrencyLike,
        to_currency: CurrencyLike,
        allow_approximate: bool = True,
    ) -> list[ConversionResult]:
        """Convert several amounts of one currency pair with a single rate lookup."""
        if not amounts:
            return []

        first = await self.convert(amounts[0], from_currency, to_currency, allow_approximate)
        results = [first]
        for amount in amounts[1:]:
            if first.is_converted:
                converted = round(amount * first.rate, 2)
            else:
                converted = amount
            results.append(
                ConversionResult(
                    original_amount=amount,
                    converted_amount=converted,
                    from_currency=first.from_currency,
                    to_currency=first.to_currency,
                    rate=first.rate,
                    is_approximate=first.is_approximate,
                    fallback_tier=first.fallback_tier,
                    error=first.error,
                )
            )
        return results

    async def can_convert(
        self,
        from_currency: CurrencyLike,
        to_currency: CurrencyLike,
        allow_approximate: bool = False,
    ) -> bool:
        """Whether a rate exists for the pair without resorting to estimates by default."""
        try:
            await self.resolve(from_currency, to_currency, allow_approximate=allow_approximate)
        except (ConversionUnavailableError, DataStoreError):
            return False
        return True

    def clear_cache(self) -> None:
        self.cache.clear()
        logger.info("Exchange rate cache cleared")

    def cache_stats(self) -> dict:
        return self.cache.stats()


def format_price(amount: float, currency: CurrencyLike, approximate: bool = False) -> str:
    """Format an amount, e.g. "€3.50" or "NOK 38.40"; "~" marks estimates."""
    code = _code(currency)
    value = f"{amount:,.2f}"
    symbol = CURRENCY_SYMBOLS.get(code)
    formatted = f"{symbol}{value}" if symbol else f"{code.value} {value}"
    return f"~{formatted}" if approximate else formatted


def format_converted_price(result: ConversionResult) -> str:
    """
    Format a conversion result for display.

    Approximate results are prefixed with "~", e.g. "~€3.50".
    """
    return format_price(result.converted_amount, result.to_currency, result.is_approximate)
