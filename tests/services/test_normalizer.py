"""Tests for cheapest-price selection and conversion."""
import pytest

from lumidex.core.cache import RateCache
from lumidex.core.constants import CurrencyCode, PriceSource, PriceType, ResolutionTier, VariantKind
from lumidex.services.pricing.currency import ExchangeRateResolver
from lumidex.services.pricing.normalizer import PriceNormalizer, PriceRecord

CM = PriceSource.CARDMARKET
TCG = PriceSource.TCGPLAYER


class FakeRateReader:
    def __init__(self, rates: dict[tuple[str, str], float] | None = None):
        self.rates = rates or {}

    async def get_latest_rate(self, from_currency: str, to_currency: str):
        return self.rates.get((from_currency, to_currency))


def record(
    source: PriceSource,
    currency: CurrencyCode = CurrencyCode.EUR,
    variant: VariantKind = VariantKind.HOLO,
    bucket: str = "holofoil",
    **prices,
) -> PriceRecord:
    return PriceRecord(
        card_id="swsh4-082",
        source=source,
        variant=variant,
        bucket=bucket,
        currency=currency,
        **prices,
    )


def make_normalizer(rates=None, **kwargs) -> PriceNormalizer:
    return PriceNormalizer(ExchangeRateResolver(FakeRateReader(rates), RateCache(), **kwargs))


class TestCheapestPrice:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("preferred", [CM, TCG])
    async def test_cheapest_regardless_of_preferred_source(self, preferred):
        records = [record(CM, market=5.00), record(TCG, market=3.50)]
        result = await make_normalizer().normalize("swsh4-082", records, CurrencyCode.EUR, preferred)

        assert result.cheapest.price == 3.50
        assert result.cheapest.source is TCG
        assert result.cheapest.price_type is PriceType.MARKET

    @pytest.mark.asyncio
    async def test_zero_is_missing(self):
        records = [record(CM, low=0, mid=2.00, market=0)]
        result = await make_normalizer().normalize("swsh4-082", records, CurrencyCode.EUR, CM)

        assert result.cheapest.price == 2.00
        assert result.cheapest.price_type is PriceType.MID

    @pytest.mark.asyncio
    async def test_all_zero_gives_no_price(self):
        records = [record(CM, low=0, market=0), record(TCG, market=None)]
        result = await make_normalizer().normalize("swsh4-082", records, CurrencyCode.EUR, CM)

        assert result.cheapest is None
        assert VariantKind.HOLO in result.per_variant

    @pytest.mark.asyncio
    async def test_no_records(self):
        result = await make_normalizer().normalize("swsh4-082", [], CurrencyCode.EUR, CM)

        assert result.cheapest is None
        assert result.source_used is None
        assert result.per_variant == {}

    @pytest.mark.asyncio
    async def test_tie_goes_to_preferred_source(self):
        records = [record(TCG, market=3.00), record(CM, market=3.00)]
        result = await make_normalizer().normalize("swsh4-082", records, CurrencyCode.EUR, CM)

        assert result.cheapest.source is CM

    @pytest.mark.asyncio
    async def test_tie_within_source_goes_to_display_order(self):
        records = [
            record(CM, variant=VariantKind.REVERSE_HOLO_STANDARD, bucket="reverseHolofoil", low=1.00),
            record(CM, variant=VariantKind.NORMAL, bucket="normal", low=1.00),
        ]
        result = await make_normalizer().normalize("swsh4-082", records, CurrencyCode.EUR, CM)

        assert result.cheapest.variant is VariantKind.NORMAL

    @pytest.mark.asyncio
    async def test_compares_in_target_currency(self):
        # 4.00 USD = 3.60 EUR, cheaper than 3.80 EUR
        records = [record(CM, market=3.80), record(TCG, currency=CurrencyCode.USD, market=4.00)]
        normalizer = make_normalizer({("USD", "EUR"): 0.9})
        result = await normalizer.normalize("swsh4-082", records, CurrencyCode.EUR, CM)

        assert result.cheapest.source is TCG
        assert result.cheapest.price == 3.60
        assert result.cheapest.currency is CurrencyCode.EUR
        assert result.cheapest.original_price == 4.00
        assert result.cheapest.original_currency is CurrencyCode.USD
        assert not result.cheapest.is_approximate


class TestConversion:

    @pytest.mark.asyncio
    async def test_same_currency_not_converted(self):
        result = await make_normalizer().normalize(
            "swsh4-082", [record(CM, market=5.00)], CurrencyCode.EUR, CM
        )

        assert result.conversion is None
        assert result.cheapest.currency is CurrencyCode.EUR

    @pytest.mark.asyncio
    async def test_approximate_conversion_flagged(self):
        result = await make_normalizer().normalize(
            "swsh4-082", [record(CM, market=5.00)], CurrencyCode.NOK, CM
        )

        assert result.cheapest.price == 59.00
        assert result.cheapest.is_approximate
        assert result.conversion.is_approximate

    @pytest.mark.asyncio
    async def test_unconvertible_keeps_original_currency(self):
        normalizer = make_normalizer(approximate_rates={})
        result = await normalizer.normalize(
            "swsh4-082", [record(TCG, currency=CurrencyCode.USD, market=2.00)], CurrencyCode.EUR, TCG
        )

        assert result.cheapest.price == 2.00
        assert result.cheapest.currency is CurrencyCode.USD
        assert result.cheapest.conversion_error is not None

    @pytest.mark.asyncio
    async def test_inverse_rate_tier_reported(self):
        # Only USD -> EUR stored; EUR -> USD is its inverse
        normalizer = make_normalizer({("USD", "EUR"): 0.8})
        result = await normalizer.normalize(
            "swsh4-082", [record(CM, market=4.00)], CurrencyCode.USD, CM
        )

        assert result.cheapest.price == 5.00
        assert result.cheapest.fallback_tier is ResolutionTier.INVERSE
        assert result.conversion.fallback_tier is ResolutionTier.INVERSE
        assert result.conversion.rate == 1.25
        assert not result.cheapest.is_approximate

    @pytest.mark.asyncio
    async def test_cross_rate_tier_reported(self):
        normalizer = make_normalizer({("GBP", "USD"): 1.25, ("USD", "NOK"): 10.0})
        result = await normalizer.normalize(
            "swsh4-082", [record(CM, currency=CurrencyCode.GBP, market=2.00)], CurrencyCode.NOK, CM
        )

        assert result.cheapest.price == 25.00
        assert result.cheapest.fallback_tier is ResolutionTier.CROSS

    @pytest.mark.asyncio
    async def test_direct_rate_has_no_fallback_tier(self):
        normalizer = make_normalizer({("USD", "EUR"): 0.9})
        result = await normalizer.normalize(
            "swsh4-082", [record(TCG, currency=CurrencyCode.USD, market=4.00)], CurrencyCode.EUR, TCG
        )

        assert result.cheapest.price == 3.60
        assert result.cheapest.fallback_tier is None


class TestSourceSelection:

    @pytest.mark.asyncio
    async def test_preferred_source_present(self):
        records = [record(CM, market=5.00), record(TCG, currency=CurrencyCode.USD, market=6.00)]
        result = await make_normalizer().normalize("swsh4-082", records, CurrencyCode.EUR, CM)

        assert result.source_used is CM
        assert not result.has_fallback
        holo = result.per_variant[VariantKind.HOLO]
        assert holo.primary.source is CM
        assert holo.alternate.source is TCG

    @pytest.mark.asyncio
    async def test_falls_back_to_other_source(self):
        records = [record(TCG, currency=CurrencyCode.USD, market=6.00)]
        result = await make_normalizer().normalize("swsh4-082", records, CurrencyCode.USD, CM)

        assert result.source_used is TCG
        assert result.has_fallback
        assert result.per_variant[VariantKind.HOLO].primary.source is TCG
        assert result.per_variant[VariantKind.HOLO].alternate is None
