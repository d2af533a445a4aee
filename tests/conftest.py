"""
Pytest configuration and fixtures.

Provides fixtures for:
- A throwaway SQLite database with the full schema
- A seeded catalog (sets, cards, prices, exchange rates)
- The pricing engine wired to the test database
- HTTP client with the engine and database dependencies overridden
"""
import os

# Must be set before lumidex.core.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("API_DEBUG", "false")

from datetime import date, datetime, timezone
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from lumidex.api.deps import get_engine
from lumidex.core.cache import RateCache
from lumidex.core.config import settings
from lumidex.db.session import get_db, init_db
from lumidex.main import app
from lumidex.models import Card, CardPrice, CardSet, CustomVariant, ExchangeRate
from lumidex.services.engine import VariantPricingEngine

RATES_OBSERVED_AT = datetime(2026, 10, 17, tzinfo=timezone.utc)


@pytest_asyncio.fixture(scope="function")
async def test_engine(tmp_path):
    """Create test database engine with every table."""
    # File-backed so concurrent sessions see the same database
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'lumidex.db'}",
        echo=False,
    )
    await init_db(bind=engine)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session_maker(test_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture(scope="function")
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    async with session_maker() as session:
        yield session
        await session.rollback()


@pytest.fixture
def rate_cache() -> RateCache:
    return RateCache(max_size=64, default_ttl=300)


# -----------------------------------------------------------------------------
# Catalog Fixtures
# -----------------------------------------------------------------------------

@pytest_asyncio.fixture
async def catalog(db_session) -> None:
    """
    Seed a small catalog.

    - swsh4-082: Rare Holo with Cardmarket (EUR) and TCGPlayer (USD) prices
    - sv8pt5-001: Common without any price rows
    - base1-4: WotC Rare Holo
    """
    db_session.add_all([
        CardSet(
            set_id="swsh4",
            name="Vivid Voltage",
            series="Sword & Shield",
            release_date=date(2020, 11, 13),
            total_cards=185,
        ),
        CardSet(
            set_id="sv8pt5",
            name="Prismatic Evolutions",
            series="Scarlet & Violet",
            release_date=date(2025, 1, 17),
            total_cards=131,
        ),
        CardSet(
            set_id="base1",
            name="Base",
            series="Base",
            release_date=date(1999, 1, 9),
            total_cards=102,
        ),
    ])
    db_session.add_all([
        Card(
            card_id="swsh4-082",
            set_id="swsh4",
            name="Pikachu",
            number="082",
            rarity="Rare Holo",
            supertype="Pokémon",
            price_buckets={
                "holofoil": {"low": 2.1, "market": 4.2},
                # Placeholder bucket, not a signal
                "reverseHolofoil": {"low": 0, "market": None},
            },
        ),
        Card(
            card_id="sv8pt5-001",
            set_id="sv8pt5",
            name="Exeggcute",
            number="001",
            rarity="Common",
            supertype="Pokémon",
        ),
        Card(
            card_id="base1-4",
            set_id="base1",
            name="Charizard",
            number="4",
            rarity="Rare Holo",
            supertype="Pokémon",
        ),
    ])
    db_session.add_all([
        CardPrice(
            card_id="swsh4-082",
            source="cardmarket",
            variant="holofoil",
            currency="EUR",
            low=0,
            mid=6.00,
            market=5.00,
        ),
        CardPrice(
            card_id="swsh4-082",
            source="tcgplayer",
            variant="holofoil",
            currency="USD",
            market=3.50,
            high=9.99,
        ),
        CardPrice(
            card_id="swsh4-082",
            source="tcgplayer",
            variant="mystery_bucket",
            currency="USD",
            market=0.01,
        ),
    ])
    db_session.add(
        ExchangeRate(
            from_currency="USD",
            to_currency="EUR",
            rate=0.9,
            observed_at=RATES_OBSERVED_AT,
        )
    )
    await db_session.commit()


@pytest_asyncio.fixture
async def pokeball_custom_variant(db_session, catalog) -> CustomVariant:
    """Active custom variant replacing swsh4-082's standard reverse holo."""
    variant = CustomVariant(
        card_id="swsh4-082",
        variant_name="pokeball_exclusive",
        variant_type="reverse_holo_pokeball",
        display_name="Poké Ball Reverse (Collection Box)",
        description="Collection box exclusive",
        source_product="Pikachu V Box",
        price_usd=12.50,
        replaces_standard_variant="reverse_holo_standard",
        is_active=True,
        created_by="admin",
    )
    db_session.add(variant)
    await db_session.commit()
    await db_session.refresh(variant)
    return variant


@pytest.fixture
def pricing_engine(session_maker, rate_cache) -> VariantPricingEngine:
    """Engine reading from the test database."""
    return VariantPricingEngine(session_maker, rate_cache, settings)


@pytest_asyncio.fixture(scope="function")
async def client(session_maker, pricing_engine, rate_cache) -> AsyncGenerator[AsyncClient, None]:
    """Create test HTTP client against the test database."""

    async def override_get_db():
        async with session_maker() as session:
            yield session

    # Lifespan does not run under ASGITransport
    app.state.rate_cache = rate_cache
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_engine] = lambda: pricing_engine

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
