"""
CustomVariant model for administrator-defined card variants.

Variants are never deleted by the application; they are switched off with
is_active=False so collection entries pointing at them stay valid.
"""
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, ForeignKey, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lumidex.db.base import Base

if TYPE_CHECKING:
    from lumidex.models.card import Card


class CustomVariant(Base):
    """
    Admin-authored variant such as a collection-box exclusive.

    `replaces_standard_variant` names the standard variant kind this one
    hides from the default display, if any.
    """

    __tablename__ = "custom_card_variants"

    card_id: Mapped[str] = mapped_column(
        ForeignKey("cards.card_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    variant_name: Mapped[str] = mapped_column(String(100), nullable=False)
    variant_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    source_product: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    price_usd: Mapped[Optional[float]] = mapped_column(Numeric(10, 2), nullable=True)
    price_eur: Mapped[Optional[float]] = mapped_column(Numeric(10, 2), nullable=True)

    replaces_standard_variant: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)
    created_by: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    card: Mapped["Card"] = relationship("Card", back_populates="custom_variants")

    __table_args__ = (
        UniqueConstraint("card_id", "variant_name", name="uq_custom_card_variants_card_name"),
    )

    def __repr__(self) -> str:
        state = "active" if self.is_active else "inactive"
        return f"<CustomVariant {self.id} {self.card_id}/{self.variant_name} ({state})>"
