"""Tests for exchange rate resolution and conversion."""
import pytest

from lumidex.core.cache import RateCache
from lumidex.core.constants import CurrencyCode, ResolutionTier
from lumidex.core.exceptions import ConversionUnavailableError, DataStoreError
from lumidex.services.pricing.currency import (
    ExchangeRateResolver,
    format_converted_price,
    format_price,
)


class FakeRateReader:
    """Stored rates keyed by (from, to)."""

    def __init__(self, rates: dict[tuple[str, str], float] | None = None):
        self.rates = rates or {}
        self.calls = 0

    async def get_latest_rate(self, from_currency: str, to_currency: str):
        self.calls += 1
        return self.rates.get((from_currency, to_currency))


class FailingRateReader:
    async def get_latest_rate(self, from_currency: str, to_currency: str):
        raise DataStoreError("connection refused")


def make_resolver(rates=None, **kwargs) -> ExchangeRateResolver:
    return ExchangeRateResolver(FakeRateReader(rates), RateCache(), **kwargs)


class TestResolve:

    @pytest.mark.asyncio
    async def test_identity(self):
        resolver = make_resolver()
        resolution = await resolver.resolve("EUR", CurrencyCode.EUR)

        assert resolution.rate == 1.0
        assert resolution.tier is ResolutionTier.IDENTITY
        assert resolver.reader.calls == 0

    @pytest.mark.asyncio
    async def test_identity_is_not_cached(self):
        resolver = make_resolver()
        await resolver.resolve("NOK", "NOK")
        second = await resolver.resolve("NOK", "NOK")

        assert second.tier is ResolutionTier.IDENTITY
        assert second.fallback_tier is None
        assert len(resolver.cache) == 0

    @pytest.mark.asyncio
    async def test_direct_rate_then_cache(self):
        resolver = make_resolver({("USD", "EUR"): 0.9})

        first = await resolver.resolve("USD", "EUR")
        assert first.rate == 0.9
        assert first.tier is ResolutionTier.DIRECT
        assert first.fallback_tier is None
        calls = resolver.reader.calls

        second = await resolver.resolve("USD", "EUR")
        assert second.rate == 0.9
        assert second.tier is ResolutionTier.CACHE
        assert resolver.reader.calls == calls

    @pytest.mark.asyncio
    async def test_bypass_cache(self):
        resolver = make_resolver({("USD", "EUR"): 0.9})
        await resolver.resolve("USD", "EUR")

        resolution = await resolver.resolve("USD", "EUR", use_cache=False)
        assert resolution.tier is ResolutionTier.DIRECT

    @pytest.mark.asyncio
    async def test_inverse_rate(self):
        resolver = make_resolver({("EUR", "USD"): 1.25})
        resolution = await resolver.resolve("USD", "EUR")

        assert resolution.rate == pytest.approx(0.8)
        assert resolution.tier is ResolutionTier.INVERSE
        assert resolution.fallback_tier is ResolutionTier.INVERSE
        assert not resolution.is_approximate

    @pytest.mark.asyncio
    async def test_cross_rate(self):
        resolver = make_resolver({("GBP", "USD"): 1.25, ("USD", "NOK"): 10.0})
        resolution = await resolver.resolve("GBP", "NOK")

        assert resolution.rate == pytest.approx(12.5)
        assert resolution.tier is ResolutionTier.CROSS

    @pytest.mark.asyncio
    async def test_non_positive_stored_rate_ignored(self):
        resolver = make_resolver({("USD", "EUR"): 0, ("EUR", "USD"): 1.25})
        resolution = await resolver.resolve("USD", "EUR")

        assert resolution.tier is ResolutionTier.INVERSE

    @pytest.mark.asyncio
    async def test_approximate_only_when_allowed(self):
        resolver = make_resolver()

        resolution = await resolver.resolve("EUR", "USD", allow_approximate=True)
        assert resolution.rate == 1.08
        assert resolution.is_approximate
        assert resolution.tier is ResolutionTier.APPROXIMATE

        with pytest.raises(ConversionUnavailableError):
            await resolver.resolve("EUR", "USD", allow_approximate=False)

    @pytest.mark.asyncio
    async def test_approximate_rates_not_cached(self):
        resolver = make_resolver()
        await resolver.resolve("EUR", "USD")

        assert len(resolver.cache) == 0

    @pytest.mark.asyncio
    async def test_store_failure_degrades_to_approximate(self):
        resolver = ExchangeRateResolver(FailingRateReader(), RateCache())
        resolution = await resolver.resolve("EUR", "NOK")

        assert resolution.tier is ResolutionTier.APPROXIMATE
        assert resolution.rate == 11.80

    @pytest.mark.asyncio
    async def test_store_failure_propagates_without_approximation(self):
        resolver = ExchangeRateResolver(FailingRateReader(), RateCache())

        with pytest.raises(DataStoreError):
            await resolver.resolve("EUR", "NOK", allow_approximate=False)
        assert not await resolver.can_convert("EUR", "NOK")


class TestConvert:

    @pytest.mark.asyncio
    async def test_rounds_to_two_decimals(self):
        resolver = make_resolver({("USD", "EUR"): 0.9})
        result = await resolver.convert(3.333, "USD", "EUR")

        assert result.converted_amount == 3.0
        assert result.to_currency is CurrencyCode.EUR
        assert result.is_converted

    @pytest.mark.asyncio
    async def test_unavailable_returns_original_amount(self):
        resolver = make_resolver(approximate_rates={})
        result = await resolver.convert(10.0, "EUR", "USD")

        assert result.converted_amount == 10.0
        assert result.to_currency is CurrencyCode.EUR
        assert result.rate == 1.0
        assert result.error is not None
        assert not result.is_converted

    @pytest.mark.asyncio
    async def test_convert_batch_single_lookup(self):
        resolver = make_resolver({("USD", "EUR"): 0.9})
        results = await resolver.convert_batch([1.0, 2.0, 10.0], "USD", "EUR")

        assert [r.converted_amount for r in results] == [0.9, 1.8, 9.0]
        assert resolver.reader.calls == 1

    @pytest.mark.asyncio
    async def test_can_convert_defaults_to_exact_rates(self):
        resolver = make_resolver({("USD", "EUR"): 0.9})

        assert await resolver.can_convert("USD", "EUR")
        assert not await resolver.can_convert("GBP", "NOK")
        assert await resolver.can_convert("GBP", "NOK", allow_approximate=True)

    @pytest.mark.asyncio
    async def test_clear_cache(self):
        resolver = make_resolver({("USD", "EUR"): 0.9})
        await resolver.resolve("USD", "EUR")
        assert resolver.cache_stats()["size"] == 1

        resolver.clear_cache()
        assert resolver.cache_stats()["size"] == 0


class TestFormatting:

    def test_symbol_currencies(self):
        assert format_price(3.5, CurrencyCode.EUR) == "€3.50"
        assert format_price(1234.5, "USD") == "$1,234.50"
        assert format_price(0.79, "GBP") == "£0.79"

    def test_code_currencies(self):
        assert format_price(38.4, "NOK") == "NOK 38.40"

    def test_approximate_prefix(self):
        assert format_price(3.5, "EUR", approximate=True) == "~€3.50"

    @pytest.mark.asyncio
    async def test_format_converted_price(self):
        resolver = make_resolver()
        result = await resolver.convert(10.0, "USD", "NOK")

        assert format_converted_price(result) == "~NOK 109.00"
