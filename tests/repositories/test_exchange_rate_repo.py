"""Tests for stored exchange rates."""
from datetime import datetime, timedelta, timezone

import pytest

from lumidex.repositories.exchange_rate_repo import ExchangeRateRepository

DAY = datetime(2026, 10, 17, tzinfo=timezone.utc)


def rate_row(from_currency: str, to_currency: str, rate: float, observed_at: datetime = DAY) -> dict:
    return {
        "from_currency": from_currency,
        "to_currency": to_currency,
        "rate": rate,
        "observed_at": observed_at,
    }


@pytest.mark.asyncio
async def test_latest_rate_is_newest_observation(db_session):
    repo = ExchangeRateRepository(db_session)
    await repo.store_rates([
        rate_row("EUR", "NOK", 11.5, DAY - timedelta(days=1)),
        rate_row("EUR", "NOK", 11.7, DAY),
    ])
    await db_session.commit()

    assert await repo.get_latest_rate("EUR", "NOK") == pytest.approx(11.7)


@pytest.mark.asyncio
async def test_missing_pair(db_session):
    repo = ExchangeRateRepository(db_session)

    assert await repo.get_latest_rate("EUR", "NOK") is None


@pytest.mark.asyncio
async def test_pairs_are_directional(db_session):
    repo = ExchangeRateRepository(db_session)
    await repo.store_rates([rate_row("EUR", "USD", 1.08)])
    await db_session.commit()

    assert await repo.get_latest_rate("USD", "EUR") is None


@pytest.mark.asyncio
async def test_duplicate_observations_skipped(db_session):
    repo = ExchangeRateRepository(db_session)
    rows = [rate_row("EUR", "USD", 1.08), rate_row("EUR", "NOK", 11.7)]

    assert await repo.store_rates(rows) == 2
    await db_session.commit()

    again = rows + [rate_row("EUR", "GBP", 0.86)]
    assert await repo.store_rates(again) == 1
    await db_session.commit()

    assert await repo.count() == 3


@pytest.mark.asyncio
async def test_store_nothing(db_session):
    assert await ExchangeRateRepository(db_session).store_rates([]) == 0
