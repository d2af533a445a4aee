"""
Card repository for catalog reads.

Supplies the classifier with a card's descriptive attributes joined with
its set, and lists the cards of a set for batch pricing.
"""
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lumidex.models.card import Card, CardSet
from lumidex.repositories.base import BaseRepository
from lumidex.services.variants.classifier import CardInput, signals_from_price_buckets


class CardRepository(BaseRepository[Card]):
    """Repository for card and set lookups."""

    def __init__(self, db: AsyncSession):
        super().__init__(Card, db)

    async def card_exists(self, card_id: str) -> bool:
        return await self.exists(card_id=card_id)

    async def get_card_input(self, card_id: str) -> CardInput | None:
        """
        Load classification inputs for a card.

        Returns:
            CardInput, or None if the card does not exist
        """
        stmt = (
            select(Card, CardSet)
            .outerjoin(CardSet, CardSet.set_id == Card.set_id)
            .where(Card.card_id == card_id)
        )
        result = await self._execute(stmt)
        row = result.first()
        if row is None:
            return None

        card, card_set = row
        return CardInput(
            card_id=card.card_id,
            set_id=card.set_id,
            number=card.number,
            rarity=card.rarity,
            release_date=card_set.release_date if card_set else None,
            series=card_set.series if card_set else None,
            variant_signals=signals_from_price_buckets(card.price_buckets),
        )

    async def list_card_ids(self, set_id: str) -> list[str]:
        """Card ids of a set, ordered by id."""
        result = await self._execute(
            select(Card.card_id).where(Card.set_id == set_id).order_by(Card.id)
        )
        return list(result.scalars().all())
