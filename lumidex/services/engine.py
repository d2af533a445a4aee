"""
Variant and price engine facade.

Wires the read repositories to the classifier, override merger and price
normalizer. The pipeline functions only depend on the read protocols in
lumidex.repositories.interfaces. Every engine operation opens its own
database session, so batch calls can run cards concurrently.

Usage:
    engine = VariantPricingEngine(async_session_maker, rate_cache)
    variants = await engine.get_display_variants("swsh4-082")
    price = await engine.get_normalized_price(
        "swsh4-082", CurrencyCode.NOK, PriceSource.CARDMARKET
    )
"""
import asyncio
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Mapping, Optional, Sequence, TypeVar

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lumidex.core.cache import RateCache
from lumidex.core.config import Settings, settings as default_settings
from lumidex.core.constants import CurrencyCode, Era, PriceSource, VariantKind
from lumidex.core.exceptions import CardNotFoundError, DataStoreError
from lumidex.repositories.card_repo import CardRepository
from lumidex.repositories.custom_variant_repo import CustomVariantRepository
from lumidex.repositories.exchange_rate_repo import ExchangeRateRepository
from lumidex.repositories.interfaces import CardReader, CustomVariantReader, PriceReader, RuleReader
from lumidex.repositories.price_repo import PriceRepository
from lumidex.repositories.rule_repo import RuleRepository
from lumidex.services.pricing.currency import ExchangeRateResolver
from lumidex.services.pricing.normalizer import NormalizedPrice, PriceNormalizer
from lumidex.services.variants.classifier import VariantClassifier, VariantFlag
from lumidex.services.variants.overrides import CustomVariantData, merge

logger = structlog.get_logger()

T = TypeVar("T")


@dataclass(frozen=True)
class DisplayVariants:
    """Variants to show for a card after classification and overrides."""

    card_id: str
    era: Era
    display: tuple[VariantKind, ...]
    hidden: tuple[VariantKind, ...]
    custom: tuple[CustomVariantData, ...]
    flags: tuple[VariantFlag, ...]
    explanations: tuple[str, ...]
    replaced_by: Mapping[VariantKind, int] = field(default_factory=dict)


@dataclass(frozen=True)
class BatchPriceResult:
    """
    Outcome of a batch normalization.

    Cards that failed are listed in `errors`; cards still running when the
    deadline passed are listed in `timed_out`.
    """

    results: Mapping[str, NormalizedPrice]
    errors: Mapping[str, str] = field(default_factory=dict)
    timed_out: tuple[str, ...] = ()

    @property
    def is_complete(self) -> bool:
        return not self.errors and not self.timed_out


@dataclass(frozen=True)
class BatchVariantsResult:
    """Display variants for many cards; same partial-result shape as BatchPriceResult."""

    results: Mapping[str, DisplayVariants]
    errors: Mapping[str, str] = field(default_factory=dict)
    timed_out: tuple[str, ...] = ()

    @property
    def is_complete(self) -> bool:
        return not self.errors and not self.timed_out


async def _run_batch(
    card_ids: Sequence[str],
    worker: Callable[[str], Awaitable[T]],
    concurrency: int,
    timeout: Optional[float],
    operation: str,
) -> tuple[dict[str, T], dict[str, str], tuple[str, ...]]:
    """
    Run `worker` for every distinct card id.

    At most `concurrency` cards run at once. Cards still running after
    `timeout` seconds are cancelled. CardNotFoundError and DataStoreError
    are collected per card; any other exception propagates.

    Returns:
        (results in request order, errors, timed out card ids)
    """
    unique_ids = list(dict.fromkeys(card_ids))
    if not unique_ids:
        return {}, {}, ()

    semaphore = asyncio.Semaphore(max(1, concurrency))

    async def run(card_id: str) -> T:
        async with semaphore:
            return await worker(card_id)

    tasks = {asyncio.create_task(run(card_id)): card_id for card_id in unique_ids}
    done, pending = await asyncio.wait(tasks, timeout=timeout)

    for task in pending:
        task.cancel()
    if pending:
        await asyncio.gather(*pending, return_exceptions=True)

    results: dict[str, T] = {}
    errors: dict[str, str] = {}
    for task in done:
        card_id = tasks[task]
        exc = task.exception()
        if exc is None:
            results[card_id] = task.result()
        elif isinstance(exc, (CardNotFoundError, DataStoreError)):
            errors[card_id] = str(exc)
        else:
            raise exc

    timed_out = tuple(card_id for card_id in unique_ids if card_id not in results and card_id not in errors)
    if errors or timed_out:
        logger.warning(
            "Batch incomplete",
            operation=operation,
            requested=len(unique_ids),
            succeeded=len(results),
            failed=len(errors),
            timed_out=len(timed_out),
        )

    # Keep request order
    ordered = {card_id: results[card_id] for card_id in unique_ids if card_id in results}
    return ordered, errors, timed_out


async def build_display_variants(
    card_id: str,
    cards: CardReader,
    rules: RuleReader,
    customs: CustomVariantReader,
    draft_variants: Sequence[CustomVariantData] = (),
) -> DisplayVariants:
    """
    Classify a card and apply its custom variants.

    Drafts are merged after the stored custom variants.

    Raises:
        CardNotFoundError: If the card does not exist
    """
    card = await cards.get_card_input(card_id)
    if card is None:
        raise CardNotFoundError(card_id)
    tables = await rules.load_tables()
    stored = await customs.list_active(card_id)

    classification = VariantClassifier(tables).classify(card)
    merged = merge(classification.flags, [*stored, *draft_variants])

    return DisplayVariants(
        card_id=card_id,
        era=classification.era,
        display=merged.display,
        hidden=merged.hidden,
        custom=merged.custom,
        flags=classification.flags,
        explanations=classification.explanations + merged.explanations,
        replaced_by=merged.replaced_by,
    )


async def normalize_card_price(
    card_id: str,
    cards: CardReader,
    prices: PriceReader,
    resolver: ExchangeRateResolver,
    target_currency: CurrencyCode,
    preferred_source: PriceSource,
) -> NormalizedPrice:
    """
    Cheapest price of one card.

    Raises:
        CardNotFoundError: If the card does not exist
    """
    if not await cards.card_exists(card_id):
        raise CardNotFoundError(card_id)
    records = await prices.records_for_card(card_id)
    return await PriceNormalizer(resolver).normalize(card_id, records, target_currency, preferred_source)


class VariantPricingEngine:
    """Entry point for variant display and normalized pricing."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        rate_cache: RateCache,
        settings: Optional[Settings] = None,
    ):
        self.session_factory = session_factory
        self.rate_cache = rate_cache
        self.settings = settings or default_settings

    def _resolver(self, session: AsyncSession) -> ExchangeRateResolver:
        return ExchangeRateResolver(
            ExchangeRateRepository(session),
            self.rate_cache,
            intermediates=self.settings.cross_rate_intermediates,
        )

    async def _classify_and_merge(
        self,
        card_id: str,
        draft_variants: Sequence[CustomVariantData] = (),
    ) -> DisplayVariants:
        async with self.session_factory() as session:
            return await build_display_variants(
                card_id,
                CardRepository(session),
                RuleRepository(session),
                CustomVariantRepository(session),
                draft_variants,
            )

    async def get_display_variants(self, card_id: str) -> DisplayVariants:
        """
        Variants to display for a card.

        Raises:
            CardNotFoundError: If the card does not exist
            DataStoreError: If the store cannot be read
        """
        return await self._classify_and_merge(card_id)

    async def preview_variants(
        self,
        card_id: str,
        draft_variants: Sequence[CustomVariantData] = (),
    ) -> DisplayVariants:
        """
        Admin preview of a card's variants.

        Runs the same pipeline as get_display_variants. Unsaved drafts are
        merged after the stored custom variants.
        """
        return await self._classify_and_merge(card_id, draft_variants)

    async def get_normalized_price(
        self,
        card_id: str,
        target_currency: CurrencyCode,
        preferred_source: PriceSource,
    ) -> NormalizedPrice:
        """
        Cheapest price of a card in the target currency.

        Raises:
            CardNotFoundError: If the card does not exist
            DataStoreError: If price rows cannot be read
        """
        async with self.session_factory() as session:
            return await normalize_card_price(
                card_id,
                CardRepository(session),
                PriceRepository(session),
                self._resolver(session),
                target_currency,
                preferred_source,
            )

    async def _set_card_ids(self, set_id: str) -> list[str]:
        async with self.session_factory() as session:
            return await CardRepository(session).list_card_ids(set_id)

    async def normalize_many(
        self,
        card_ids: Sequence[str],
        target_currency: CurrencyCode,
        preferred_source: PriceSource,
        timeout: Optional[float] = None,
    ) -> BatchPriceResult:
        """
        Normalize prices for many cards concurrently.

        At most `price_batch_concurrency` cards run at once. Unfinished cards
        are abandoned when `timeout` seconds pass and reported as timed out.
        """

        async def worker(card_id: str) -> NormalizedPrice:
            return await self.get_normalized_price(card_id, target_currency, preferred_source)

        results, errors, timed_out = await _run_batch(
            card_ids,
            worker,
            self.settings.price_batch_concurrency,
            timeout,
            operation="normalize_prices",
        )
        return BatchPriceResult(results=results, errors=errors, timed_out=timed_out)

    async def normalize_set(
        self,
        set_id: str,
        target_currency: CurrencyCode,
        preferred_source: PriceSource,
        timeout: Optional[float] = None,
    ) -> BatchPriceResult:
        """Normalize prices for every card in a set."""
        card_ids = await self._set_card_ids(set_id)
        logger.info("Normalizing set prices", set_id=set_id, cards=len(card_ids))
        return await self.normalize_many(card_ids, target_currency, preferred_source, timeout=timeout)

    async def display_variants_many(
        self,
        card_ids: Sequence[str],
        timeout: Optional[float] = None,
    ) -> BatchVariantsResult:
        """
        Display variants for many cards concurrently.

        Shares the concurrency limit and deadline handling of normalize_many.
        """
        results, errors, timed_out = await _run_batch(
            card_ids,
            self.get_display_variants,
            self.settings.price_batch_concurrency,
            timeout,
            operation="display_variants",
        )
        return BatchVariantsResult(results=results, errors=errors, timed_out=timed_out)

    async def display_variants_for_set(
        self,
        set_id: str,
        timeout: Optional[float] = None,
    ) -> BatchVariantsResult:
        """Display variants for every card in a set."""
        card_ids = await self._set_card_ids(set_id)
        logger.info("Classifying set variants", set_id=set_id, cards=len(card_ids))
        return await self.display_variants_many(card_ids, timeout=timeout)
