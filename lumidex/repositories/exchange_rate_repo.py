"""
Exchange rate repository.

The newest row for a pair is the current rate. Rows are only appended.
"""
from typing import Any, Optional

from sqlalchemy import select, tuple_
from sqlalchemy.ext.asyncio import AsyncSession

from lumidex.models.exchange_rate import ExchangeRate
from lumidex.repositories.base import BaseRepository


class ExchangeRateRepository(BaseRepository[ExchangeRate]):
    """Repository for stored exchange rates."""

    def __init__(self, db: AsyncSession):
        super().__init__(ExchangeRate, db)

    async def get_latest_rate(self, from_currency: str, to_currency: str) -> Optional[float]:
        """
        Get the most recent rate for a pair.

        Returns:
            Rate as float, or None if the pair has never been stored
        """
        stmt = (
            select(ExchangeRate.rate)
            .where(
                ExchangeRate.from_currency == from_currency,
                ExchangeRate.to_currency == to_currency,
            )
            .order_by(ExchangeRate.observed_at.desc(), ExchangeRate.id.desc())
            .limit(1)
        )
        result = await self._execute(stmt)
        rate = result.scalar_one_or_none()
        return float(rate) if rate is not None else None

    async def store_rates(self, rows: list[dict[str, Any]]) -> int:
        """
        Append rate rows, skipping ones already stored for the same
        pair and observation time.

        Args:
            rows: Dicts with from_currency, to_currency, rate and observed_at

        Returns:
            Number of rows inserted
        """
        if not rows:
            return 0

        keys = [(r["from_currency"], r["to_currency"], r["observed_at"]) for r in rows]
        stmt = select(
            ExchangeRate.from_currency,
            ExchangeRate.to_currency,
            ExchangeRate.observed_at,
        ).where(
            tuple_(
                ExchangeRate.from_currency,
                ExchangeRate.to_currency,
            ).in_([(k[0], k[1]) for k in keys]),
            ExchangeRate.observed_at.in_(list({k[2] for k in keys})),
        )
        result = await self._execute(stmt)
        existing = {
            (row.from_currency, row.to_currency, _naive(row.observed_at))
            for row in result.all()
        }

        new_rows = [
            row for row, key in zip(rows, keys)
            if (key[0], key[1], _naive(key[2])) not in existing
        ]
        await self.bulk_create(new_rows)
        return len(new_rows)


def _naive(value):
    # SQLite drops tzinfo on read; compare on wall-clock value
    return value.replace(tzinfo=None) if value is not None else None
