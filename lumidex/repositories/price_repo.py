"""
Price repository for per-variant price rows.

Converts stored rows into PriceRecord values for the normalizer. Rows with
a variant bucket or source we do not track are skipped.
"""
from typing import Optional, Sequence

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lumidex.core.constants import (
    get_currency_for_price_source,
    normalize_currency,
    normalize_price_source,
    normalize_variant_bucket,
)
from lumidex.models.price import CardPrice
from lumidex.repositories.base import BaseRepository
from lumidex.services.pricing.normalizer import PriceRecord

logger = structlog.get_logger()


def _amount(value) -> Optional[float]:
    return float(value) if value is not None else None


def to_price_record(row: CardPrice) -> Optional[PriceRecord]:
    """Convert a stored row, or return None if it cannot be interpreted."""
    source = normalize_price_source(row.source)
    if source is None:
        logger.debug("Skipping price row with unknown source", card_id=row.card_id, source=row.source)
        return None

    variant = normalize_variant_bucket(row.variant)
    if variant is None:
        logger.debug("Skipping price row with unknown variant", card_id=row.card_id, variant=row.variant)
        return None

    currency = normalize_currency(row.currency)
    if currency is None:
        currency = get_currency_for_price_source(source)
        logger.warning(
            "Price row has unsupported currency, assuming source currency",
            card_id=row.card_id,
            source=source.value,
            currency=row.currency,
            assumed=currency.value,
        )

    return PriceRecord(
        card_id=row.card_id,
        source=source,
        variant=variant,
        bucket=row.variant,
        currency=currency,
        low=_amount(row.low),
        mid=_amount(row.mid),
        high=_amount(row.high),
        market=_amount(row.market),
        direct_low=_amount(row.direct_low),
        updated_at=row.last_updated,
    )


class PriceRepository(BaseRepository[CardPrice]):
    """Repository for card price rows."""

    def __init__(self, db: AsyncSession):
        super().__init__(CardPrice, db)

    async def records_for_card(self, card_id: str) -> list[PriceRecord]:
        """All interpretable price rows for a card."""
        records = await self.records_for_cards([card_id])
        return records.get(card_id, [])

    async def records_for_cards(self, card_ids: Sequence[str]) -> dict[str, list[PriceRecord]]:
        """
        Price rows for several cards.

        Returns:
            Mapping of card id to its records; cards without rows map to []
        """
        grouped: dict[str, list[PriceRecord]] = {card_id: [] for card_id in card_ids}
        if not card_ids:
            return grouped

        stmt = (
            select(CardPrice)
            .where(CardPrice.card_id.in_(list(card_ids)))
            .order_by(CardPrice.card_id, CardPrice.id)
        )
        result = await self._execute(stmt)
        for row in result.scalars().all():
            record = to_price_record(row)
            if record is not None:
                grouped.setdefault(row.card_id, []).append(record)
        return grouped
