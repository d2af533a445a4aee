"""
Stored rule rows for the variant classifier.

These tables hold administrator configuration that is merged on top of the
built-in defaults in lumidex.services.variants.rules.
"""
from typing import Any, Optional

from sqlalchemy import JSON, Boolean, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from lumidex.db.base import Base


class SetPolicyRow(Base):
    """Which print styles a set has and how its rares behave."""

    __tablename__ = "set_policies"

    set_id: Mapped[str] = mapped_column(String(32), unique=True, nullable=False, index=True)
    has_standard_reverse: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    has_pokeball_reverse: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    has_masterball_reverse: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    has_first_edition: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    rare_policy: Mapped[str] = mapped_column(String(20), default="auto", nullable=False)
    era: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)

    def __repr__(self) -> str:
        return f"<SetPolicyRow {self.set_id} era={self.era} rare_policy={self.rare_policy}>"


class RarityMappingRow(Base):
    """
    Variant expectations for a (rarity, era) pair.

    The three lists hold VariantKind values.
    """

    __tablename__ = "rarity_mappings"

    rarity: Mapped[str] = mapped_column(String(64), nullable=False)
    era: Mapped[str] = mapped_column(String(32), nullable=False)
    allowed_variants: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    force_variants: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    exclude_variants: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)

    __table_args__ = (
        UniqueConstraint("rarity", "era", name="uq_rarity_mappings_rarity_era"),
    )

    def __repr__(self) -> str:
        return f"<RarityMappingRow {self.rarity}/{self.era}>"


class CardExceptionRow(Base):
    """
    Per-card printing anomaly.

    `variant_changes` maps VariantKind values to booleans, e.g.
    {"reverse_holo_pokeball": false}.
    """

    __tablename__ = "card_variant_exceptions"

    set_id: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    card_number: Mapped[str] = mapped_column(String(20), nullable=False)
    variant_changes: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("set_id", "card_number", name="uq_card_variant_exceptions_set_number"),
    )

    def __repr__(self) -> str:
        return f"<CardExceptionRow {self.set_id}#{self.card_number}>"
