"""
ExchangeRate model storing observed currency rates over time.

Rows are append-only; the newest row for a pair is the current rate.
A->B and B->A are independent rows and either may be missing.
"""
from datetime import datetime

from sqlalchemy import DateTime, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from lumidex.db.base import Base


class ExchangeRate(Base):
    """One observed rate: 1 unit of from_currency = rate units of to_currency."""

    __tablename__ = "exchange_rates"

    from_currency: Mapped[str] = mapped_column(String(3), nullable=False)
    to_currency: Mapped[str] = mapped_column(String(3), nullable=False)
    rate: Mapped[float] = mapped_column(Numeric(18, 8), nullable=False)
    observed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint(
            "from_currency", "to_currency", "observed_at",
            name="uq_exchange_rates_pair_observed",
        ),
    )

    def __repr__(self) -> str:
        return f"<ExchangeRate {self.from_currency}->{self.to_currency} {self.rate} at {self.observed_at}>"
