"""
Card and set models for the Pokémon TCG catalog.

Rows are populated by the catalog ingestion job; the engine only reads them.
"""
from datetime import date
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import JSON, Date, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lumidex.db.base import Base

if TYPE_CHECKING:
    from lumidex.models.custom_variant import CustomVariant
    from lumidex.models.price import CardPrice


class CardSet(Base):
    """
    Represents a printed set (expansion).

    The series name and release date are the inputs for era detection.
    """

    __tablename__ = "card_sets"

    set_id: Mapped[str] = mapped_column(String(32), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    series: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    release_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    total_cards: Mapped[Optional[int]] = mapped_column(nullable=True)

    cards: Mapped[list["Card"]] = relationship(
        "Card", back_populates="card_set", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<CardSet {self.set_id}: {self.name}>"


class Card(Base):
    """
    Represents a single card printing within a set.

    `card_id` is the catalog identifier (e.g. "swsh4-082"), `number` the
    collector number printed on the card.
    """

    __tablename__ = "cards"

    card_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    set_id: Mapped[str] = mapped_column(
        ForeignKey("card_sets.set_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    number: Mapped[str] = mapped_column(String(20), nullable=False)
    rarity: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    supertype: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)

    # Raw per-variant price buckets as delivered by the TCGPlayer feed,
    # e.g. {"holofoil": {"market": 4.2}, "reverseHolofoil": {...}}
    price_buckets: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)

    card_set: Mapped["CardSet"] = relationship("CardSet", back_populates="cards")
    prices: Mapped[list["CardPrice"]] = relationship(
        "CardPrice", back_populates="card", cascade="all, delete-orphan"
    )
    custom_variants: Mapped[list["CustomVariant"]] = relationship(
        "CustomVariant", back_populates="card", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("ix_cards_set_number", "set_id", "number"),
    )

    def __repr__(self) -> str:
        return f"<Card {self.card_id} #{self.number} ({self.rarity})>"
