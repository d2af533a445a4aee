"""
CardPrice model holding per-variant price observations.

One row per (card, source, variant bucket). Each numeric tier is nullable;
a stored 0 is a placeholder written by the feeds, not a real price.
"""
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, ForeignKey, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lumidex.db.base import Base

if TYPE_CHECKING:
    from lumidex.models.card import Card


class CardPrice(Base):
    """
    Price observation for one card variant from one price source.

    Attributes:
        card_id: Catalog id of the card
        source: 'tcgplayer' or 'cardmarket'
        variant: Raw variant bucket from the feed (e.g. 'holofoil')
        currency: Currency code the tiers are expressed in
        low / mid / high / market / direct_low: Price tiers
        last_updated: When the source last refreshed this row
    """

    __tablename__ = "card_prices"

    card_id: Mapped[str] = mapped_column(
        ForeignKey("cards.card_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    source: Mapped[str] = mapped_column(String(20), nullable=False)
    variant: Mapped[str] = mapped_column(String(50), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")

    # Price tiers
    low: Mapped[Optional[float]] = mapped_column(Numeric(10, 2), nullable=True)
    mid: Mapped[Optional[float]] = mapped_column(Numeric(10, 2), nullable=True)
    high: Mapped[Optional[float]] = mapped_column(Numeric(10, 2), nullable=True)
    market: Mapped[Optional[float]] = mapped_column(Numeric(10, 2), nullable=True)
    direct_low: Mapped[Optional[float]] = mapped_column(Numeric(10, 2), nullable=True)

    url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    last_updated: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    card: Mapped["Card"] = relationship("Card", back_populates="prices")

    __table_args__ = (
        UniqueConstraint("card_id", "source", "variant", name="uq_card_prices_card_source_variant"),
    )

    def __repr__(self) -> str:
        return (
            f"<CardPrice {self.card_id} {self.source}/{self.variant}: "
            f"market={self.market} {self.currency}>"
        )
